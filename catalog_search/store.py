"""Product store contract and the in-process implementation.

The search core only reads through :class:`ProductStore`. Writes (create,
update, soft-delete) live on the same object because the store owns the
product lifecycle; every write recomputes derived fields via
:meth:`Product.with_derived_fields`.
"""
from __future__ import annotations

import logging
import re
import threading
import uuid
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from .errors import InvalidQuery, ProductNotFound
from .models import Product

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+")


@dataclass(frozen=True)
class ProductFilter:
    """Store-agnostic predicate over catalog products."""

    active_only: bool = True
    text: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    color: Optional[str] = None
    storage: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None


class ProductStore(Protocol):
    # Bumped on every write this process makes; part of the search cache key.
    generation: int

    def find_active_matching(self, product_filter: ProductFilter) -> List[Product]: ...

    def find_active_sample(self, max_count: int) -> List[Product]: ...

    def count_matching(self, product_filter: ProductFilter) -> int: ...

    def get(self, product_id: str) -> Product: ...

    def save(self, product: Product) -> Product: ...

    def update(self, product_id: str, changes: Dict[str, Any]) -> Product: ...

    def update_metadata(self, product_id: str, metadata: Dict[str, str]) -> Product: ...

    def deactivate(self, product_id: str) -> Product: ...

    def list_active(self, product_filter: ProductFilter, offset: int, limit: int) -> List[Product]: ...

    def mark_changed(self) -> None: ...


def merge_changes(product: Product, changes: Dict[str, Any]) -> Product:
    """Apply a partial update and re-validate the result."""
    payload = product.model_dump()
    payload.update({key: value for key, value in changes.items() if key != "id"})
    try:
        merged = Product.model_validate(payload)
    except ValueError as exc:
        raise InvalidQuery(f"Invalid product update: {exc}") from exc
    return merged.with_derived_fields()


def matches_filter(product: Product, product_filter: ProductFilter) -> bool:
    """Python rendition of the filter semantics the Elasticsearch store uses."""
    if product_filter.active_only and not product.isActive:
        return False
    if product_filter.text:
        words = set(_WORD_RE.findall(product.searchable_text()))
        terms = _WORD_RE.findall(product_filter.text.lower())
        if not any(term in words for term in terms):
            return False
    if product_filter.price_min is not None and product.price < product_filter.price_min:
        return False
    if product_filter.price_max is not None and product.price > product_filter.price_max:
        return False
    metadata = product.metadata
    if product_filter.color and product_filter.color.lower() not in (metadata.get("color") or "").lower():
        return False
    if product_filter.storage and product_filter.storage.lower() not in (metadata.get("storage") or "").lower():
        return False
    if product_filter.category and product_filter.category.lower() != (metadata.get("category") or "").lower():
        return False
    if product_filter.brand and product_filter.brand.lower() not in product.brand.lower():
        return False
    return True


class InMemoryProductStore:
    """Dict-backed store used by tests and the ``--catalog`` CLI mode."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: Dict[str, Product] = {}
        self._lock = threading.Lock()
        self.generation = 0
        for product in products:
            self.save(product)

    def mark_changed(self) -> None:
        with self._lock:
            self.generation += 1

    def _snapshot(self) -> List[Product]:
        with self._lock:
            return list(self._products.values())

    def find_active_matching(self, product_filter: ProductFilter) -> List[Product]:
        active = replace(product_filter, active_only=True)
        return [product for product in self._snapshot() if matches_filter(product, active)]

    def find_active_sample(self, max_count: int) -> List[Product]:
        return [product for product in self._snapshot() if product.isActive][:max_count]

    def count_matching(self, product_filter: ProductFilter) -> int:
        return sum(1 for product in self._snapshot() if matches_filter(product, product_filter))

    def get(self, product_id: str) -> Product:
        with self._lock:
            product = self._products.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def save(self, product: Product) -> Product:
        stored = product.with_derived_fields()
        if not stored.id:
            stored = stored.model_copy(update={"id": uuid.uuid4().hex})
        with self._lock:
            self._products[stored.id] = stored
            self.generation += 1
        logger.debug("saved product id=%s title=%r", stored.id, stored.title)
        return stored

    def _modify(self, product_id: str, changes_for: Callable[[Product], Dict[str, Any]]) -> Product:
        # Read, merge and write under one lock hold.
        with self._lock:
            current = self._products.get(product_id)
            if current is None:
                raise ProductNotFound(product_id)
            merged = merge_changes(current, changes_for(current))
            self._products[product_id] = merged
            self.generation += 1
        return merged

    def update(self, product_id: str, changes: Dict[str, Any]) -> Product:
        return self._modify(product_id, lambda current: changes)

    def update_metadata(self, product_id: str, metadata: Dict[str, str]) -> Product:
        return self._modify(product_id, lambda current: {"metadata": {**current.metadata, **metadata}})

    def deactivate(self, product_id: str) -> Product:
        return self.update(product_id, {"isActive": False})

    def list_active(self, product_filter: ProductFilter, offset: int, limit: int) -> List[Product]:
        return self.find_active_matching(product_filter)[offset : offset + limit]
