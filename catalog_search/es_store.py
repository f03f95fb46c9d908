"""Product store backed by an Elasticsearch index."""
from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from functools import lru_cache
from typing import Any, Dict, List

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError

from .config import settings
from .errors import ProductNotFound, RetrievalError
from .models import Product
from .store import ProductFilter, merge_changes

logger = logging.getLogger(__name__)

TEXT_FIELDS = ["title^3", "description", "metadata.brand^2", "metadata.model^2"]


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    """Process-wide synchronous client; callers wrap blocking calls in ``asyncio.to_thread``."""
    logger.info("Connecting to Elasticsearch at %s", settings.es_host)
    return Elasticsearch(settings.es_host)


def _contains(field: str, value: str) -> dict:
    return {
        "wildcard": {
            field: {"value": f"*{value.lower()}*", "case_insensitive": True},
        }
    }


def build_es_query(product_filter: ProductFilter) -> Dict[str, Any]:
    """Translate a :class:`ProductFilter` into a ``bool`` query clause."""

    must: List[dict] = []
    filters: List[dict] = []

    if product_filter.active_only:
        filters.append({"term": {"isActive": True}})
    if product_filter.text:
        must.append(
            {
                "multi_match": {
                    "query": product_filter.text,
                    "fields": TEXT_FIELDS,
                    "type": "most_fields",
                }
            }
        )
    price_range: Dict[str, float] = {}
    if product_filter.price_min is not None:
        price_range["gte"] = product_filter.price_min
    if product_filter.price_max is not None:
        price_range["lte"] = product_filter.price_max
    if price_range:
        filters.append({"range": {"price": price_range}})
    if product_filter.color:
        filters.append(_contains("metadata.color", product_filter.color))
    if product_filter.storage:
        filters.append(_contains("metadata.storage", product_filter.storage))
    if product_filter.category:
        filters.append({"term": {"metadata.category": {"value": product_filter.category, "case_insensitive": True}}})
    if product_filter.brand:
        filters.append(_contains("metadata.brand.raw", product_filter.brand))

    if not must and not filters:
        return {"match_all": {}}
    return {"bool": {"must": must, "filter": filters}}


def _to_product(hit: dict) -> Product:
    source = dict(hit.get("_source", {}))
    source.setdefault("id", hit.get("_id"))
    return Product.model_validate(source)


class ElasticsearchProductStore:
    """:class:`~catalog_search.store.ProductStore` over one ES index.

    Transport and API failures are reported as :class:`RetrievalError`; a
    missing document as :class:`ProductNotFound`.
    """

    def __init__(self, es: Elasticsearch, index: str | None = None, candidate_limit: int | None = None) -> None:
        self.es = es
        self.index = index or settings.es_index
        self.candidate_limit = candidate_limit or settings.candidate_limit
        self.generation = 0

    def mark_changed(self) -> None:
        """Record a write made outside this store, such as a bulk reindex."""
        self.generation += 1

    def _search(self, query: dict, size: int, offset: int = 0) -> List[Product]:
        logger.debug("ES query index=%s size=%s from=%s payload=%s", self.index, size, offset, query)
        try:
            response = self.es.search(index=self.index, query=query, size=size, from_=offset)
        except (ApiError, TransportError) as exc:
            raise RetrievalError(f"Elasticsearch search failed: {exc}") from exc
        hits = response.get("hits", {}).get("hits", [])
        return [_to_product(hit) for hit in hits]

    def find_active_matching(self, product_filter: ProductFilter) -> List[Product]:
        query = build_es_query(replace(product_filter, active_only=True))
        return self._search(query, self.candidate_limit)

    def find_active_sample(self, max_count: int) -> List[Product]:
        return self._search(build_es_query(ProductFilter()), max_count)

    def count_matching(self, product_filter: ProductFilter) -> int:
        try:
            response = self.es.count(index=self.index, query=build_es_query(product_filter))
        except (ApiError, TransportError) as exc:
            raise RetrievalError(f"Elasticsearch count failed: {exc}") from exc
        return int(response.get("count", 0))

    def list_active(self, product_filter: ProductFilter, offset: int, limit: int) -> List[Product]:
        query = build_es_query(replace(product_filter, active_only=True))
        return self._search(query, limit, offset)

    def get(self, product_id: str) -> Product:
        try:
            response = self.es.get(index=self.index, id=product_id)
        except NotFoundError as exc:
            raise ProductNotFound(product_id) from exc
        except (ApiError, TransportError) as exc:
            raise RetrievalError(f"Elasticsearch get failed: {exc}") from exc
        return _to_product(response)

    def _write(self, product: Product) -> Product:
        try:
            self.es.index(index=self.index, id=product.id, document=product.model_dump(), refresh="wait_for")
        except (ApiError, TransportError) as exc:
            raise RetrievalError(f"Elasticsearch write failed: {exc}") from exc
        self.mark_changed()
        return product

    def save(self, product: Product) -> Product:
        stored = product.with_derived_fields()
        if not stored.id:
            stored = stored.model_copy(update={"id": uuid.uuid4().hex})
        logger.info("Indexing product id=%s title=%r", stored.id, stored.title)
        return self._write(stored)

    def update(self, product_id: str, changes: Dict[str, Any]) -> Product:
        return self._write(merge_changes(self.get(product_id), changes))

    def update_metadata(self, product_id: str, metadata: Dict[str, str]) -> Product:
        current = self.get(product_id)
        return self._write(merge_changes(current, {"metadata": {**current.metadata, **metadata}}))

    def deactivate(self, product_id: str) -> Product:
        return self.update(product_id, {"isActive": False})
