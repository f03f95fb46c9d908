"""Shared fixtures: small product factory and an in-memory catalog."""
from __future__ import annotations

import pytest

from catalog_search.models import Product
from catalog_search.store import InMemoryProductStore


def make_product(**overrides) -> Product:
    fields = {
        "title": "Generic Phone",
        "description": "A phone",
        "rating": 4.0,
        "reviewCount": 100,
        "stock": 50,
        "price": 10000,
        "mrp": 10000,
        "unitsSold": 500,
        "metadata": {"category": "phones", "brand": "Generic", "model": "G1"},
    }
    fields.update(overrides)
    return Product(**fields).with_derived_fields()


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def iphone_catalog() -> InMemoryProductStore:
    return InMemoryProductStore(
        [
            make_product(
                id="iphone-16",
                title="Apple iPhone 16 (Black, 128GB)",
                description="Latest Apple smartphone",
                price=79900,
                mrp=79900,
                metadata={"category": "phones", "brand": "Apple", "model": "iPhone 16", "color": "Black", "storage": "128GB"},
            ),
            make_product(
                id="iphone-16-pro-max",
                title="Apple iPhone 16 Pro Max (Black, 1TB)",
                description="Latest Apple smartphone",
                price=159900,
                mrp=159900,
                metadata={"category": "phones", "brand": "Apple", "model": "iPhone 16 Pro Max", "color": "Black", "storage": "1TB"},
            ),
            make_product(
                id="galaxy-s24",
                title="Samsung Galaxy S24 (Blue, 256GB)",
                description="Flagship Android smartphone",
                price=79999,
                mrp=84999,
                metadata={"category": "phones", "brand": "Samsung", "model": "Galaxy S24", "color": "Blue", "storage": "256GB"},
            ),
            make_product(
                id="old-iphone",
                title="Apple iPhone 12",
                description="Discontinued Apple smartphone",
                price=39900,
                mrp=49900,
                isActive=False,
                metadata={"category": "phones", "brand": "Apple", "model": "iPhone 12"},
            ),
        ]
    )
