"""FastAPI application wiring the catalog search service."""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .cache import get_cache
from .config import settings
from .errors import CatalogSearchError, InvalidQuery, status_for
from .es_store import ElasticsearchProductStore, get_client
from .importer import import_if_empty, reindex_data
from .indexing import ensure_index, index_is_empty
from .models import MetadataUpdate, Product
from .search_service import SearchService
from .store import InMemoryProductStore, ProductFilter, ProductStore

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# Force a predictable logging setup even when run under uvicorn. ``force=True``
# replaces uvicorn's default handlers.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Catalog Search Service")


@lru_cache(maxsize=1)
def get_store() -> ProductStore:
    if settings.store_backend == "memory":
        logger.info("Using in-memory product store")
        return InMemoryProductStore()
    return ElasticsearchProductStore(get_client(), settings.es_index)


def get_search_service(store: ProductStore = Depends(get_store)) -> SearchService:
    return SearchService(store, cache=get_cache())


def _dump(product: Product) -> Dict[str, Any]:
    return product.model_dump(mode="json", by_alias=True)


@app.exception_handler(CatalogSearchError)
async def catalog_error_handler(request: Request, exc: CatalogSearchError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"success": False, "error": str(exc)})


@app.on_event("startup")
async def startup_event() -> None:
    if settings.store_backend != "elasticsearch":
        return
    es = get_client()
    await ensure_index(es)
    if settings.load_on_startup:
        imported = await import_if_empty(es)
        if imported:
            logger.info("Imported %s products on startup", imported)


@app.get("/health")
async def health() -> dict:
    payload: Dict[str, Any] = {"status": "OK", "store": settings.store_backend}
    if settings.store_backend == "elasticsearch":
        es = get_client()
        status = await asyncio.to_thread(es.cluster.health)
        payload["elasticsearch"] = status.get("status")
        payload["index"] = settings.es_index
        payload["empty"] = await index_is_empty(es)
    return payload


@app.get("/api/v1/search/product")
async def search_products(
    query: str = Query("", description="Search query"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    service: SearchService = Depends(get_search_service),
) -> dict:
    if not query.strip():
        raise InvalidQuery("Search query is required")
    result = await service.search(query, page=page, limit=limit)
    return {"success": True, **result.model_dump(mode="json", by_alias=True)}


@app.post("/api/v1/product", status_code=201)
async def create_product(product: Product, store: ProductStore = Depends(get_store)) -> dict:
    saved = await asyncio.to_thread(store.save, product)
    return {"success": True, "productId": saved.id, "message": "Product created successfully"}


# Declared before /product/{product_id} so "meta-data" is not taken for an id.
@app.put("/api/v1/product/meta-data")
async def update_metadata(payload: MetadataUpdate, store: ProductStore = Depends(get_store)) -> dict:
    updated = await asyncio.to_thread(store.update_metadata, payload.productId, payload.metadata)
    return {"success": True, "productId": updated.id, "metadata": updated.metadata}


@app.get("/api/v1/product/{product_id}")
async def get_product(product_id: str, store: ProductStore = Depends(get_store)) -> dict:
    product = await asyncio.to_thread(store.get, product_id)
    return {"success": True, "data": _dump(product)}


@app.put("/api/v1/product/{product_id}")
async def update_product(
    product_id: str,
    changes: Dict[str, Any] = Body(...),
    store: ProductStore = Depends(get_store),
) -> dict:
    product = await asyncio.to_thread(store.update, product_id, changes)
    return {"success": True, "data": _dump(product)}


@app.delete("/api/v1/product/{product_id}")
async def delete_product(product_id: str, store: ProductStore = Depends(get_store)) -> dict:
    await asyncio.to_thread(store.deactivate, product_id)
    return {"success": True, "message": "Product deactivated successfully"}


@app.get("/api/v1/products")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    category: str | None = None,
    brand: str | None = None,
    min_price: float | None = Query(None, alias="minPrice"),
    max_price: float | None = Query(None, alias="maxPrice"),
    store: ProductStore = Depends(get_store),
) -> dict:
    product_filter = ProductFilter(
        category=category,
        brand=brand,
        price_min=min_price,
        price_max=max_price,
    )
    products = await asyncio.to_thread(store.list_active, product_filter, (page - 1) * limit, limit)
    total = await asyncio.to_thread(store.count_matching, product_filter)
    return {
        "success": True,
        "data": [_dump(product) for product in products],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": -(-total // limit),
        },
    }


@app.post("/reindex")
async def reindex(store: ProductStore = Depends(get_store)) -> dict:
    if settings.store_backend != "elasticsearch":
        raise InvalidQuery("Reindex needs the elasticsearch store backend")
    count = await reindex_data(get_client())
    store.mark_changed()
    return {"indexed": count}
