"""Bulk catalog import: JSON product file -> Elasticsearch index."""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Iterable

from elasticsearch import Elasticsearch, helpers
from pydantic import ValidationError

from .config import settings
from .indexing import drop_index, ensure_index, index_is_empty
from .models import Product

logger = logging.getLogger(__name__)


def load_products(path: Path) -> list[Product]:
    """Read a JSON array of product records, skipping invalid entries."""
    if not path.exists():
        logger.warning("Products file %s is missing", path)
        return []
    with path.open("r", encoding="utf-8") as fh:
        raw_items = json.load(fh)
    products: list[Product] = []
    for position, raw in enumerate(raw_items):
        try:
            product = Product.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Skipping product #%s in %s: %s", position, path, exc)
            continue
        products.append(_prepare_product(product))
    return products


def _prepare_product(product: Product) -> Product:
    prepared = product.with_derived_fields()
    if not prepared.id:
        prepared = prepared.model_copy(update={"id": uuid.uuid4().hex})
    return prepared


def _iter_actions(index: str, products: Iterable[Product]) -> Iterable[dict]:
    for product in products:
        yield {
            "_index": index,
            "_id": product.id,
            "_source": product.model_dump(),
        }


async def import_products(es: Elasticsearch, path: Path | None = None) -> int:
    """Bulk-index the product file. Returns the number of indexed documents."""
    products = load_products(path or Path(settings.products_path))
    if not products:
        return 0
    indexed, errors = await asyncio.to_thread(
        helpers.bulk, es, _iter_actions(settings.es_index, products), raise_on_error=False
    )
    if errors:
        logger.warning("Bulk import into %s rejected %s documents", settings.es_index, len(errors))
    logger.info("Bulk import into %s indexed %s products", settings.es_index, indexed)
    return indexed


async def import_if_empty(es: Elasticsearch) -> int:
    if not await index_is_empty(es):
        return 0
    return await import_products(es)


async def reindex_data(es: Elasticsearch) -> int:
    """Drop and rebuild the index from the product file."""
    await drop_index(es)
    await ensure_index(es)
    return await import_products(es)
