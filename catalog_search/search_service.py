"""Search orchestration: parse -> retrieve -> rank -> paginate."""
from __future__ import annotations

import asyncio
import logging
from time import perf_counter

from .cache import CacheBackend, search_cache_key
from .config import settings
from .errors import InvalidQuery, RetrievalError
from .models import SearchMetadata, SearchResponse
from .parser import QueryParser
from .ranker import Ranker, paginate
from .retriever import CandidateRetriever
from .store import ProductStore

logger = logging.getLogger(__name__)


class SearchService:
    def __init__(
        self,
        store: ProductStore,
        *,
        parser: QueryParser | None = None,
        retriever: CandidateRetriever | None = None,
        ranker: Ranker | None = None,
        cache: CacheBackend | None = None,
        cache_ttl_seconds: int | None = None,
    ) -> None:
        self.store = store
        self.parser = parser or QueryParser()
        self.retriever = retriever or CandidateRetriever(store)
        self.ranker = ranker or Ranker()
        self.cache = cache
        self.cache_ttl_seconds = settings.cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds

    async def search(
        self,
        query: str,
        page: int | None = None,
        limit: int | None = None,
        deadline: float | None = None,
    ) -> SearchResponse:
        """Run one search.

        ``deadline`` (seconds) bounds the store round-trip only; exceeding it
        raises :class:`RetrievalError`. Store errors propagate unchanged.
        """
        if query is None or not query.strip():
            raise InvalidQuery("Search query is required")
        page = page or 1
        limit = limit or settings.default_page_size

        t0 = perf_counter()
        cache_key = None
        if self.cache is not None:
            cache_key = search_cache_key(query, page, limit, self.store.generation)
            cached = self.cache.get(cache_key)
            if cached is not None:
                response = SearchResponse.model_validate(cached)
                response.metadata.processingTimeMs = round((perf_counter() - t0) * 1000, 2)
                logger.info("cache_hit q=%r page=%s limit=%s", query, page, limit)
                return response

        parsed = self.parser.parse(query)
        t1 = perf_counter()
        retrieval = asyncio.to_thread(self.retriever.retrieve, parsed)
        try:
            candidates = await asyncio.wait_for(retrieval, timeout=deadline)
        except asyncio.TimeoutError as exc:
            raise RetrievalError(f"Product store did not answer within {deadline}s") from exc
        t2 = perf_counter()
        ranked = self.ranker.rank(candidates, parsed)
        data = paginate(ranked, page, limit)
        t3 = perf_counter()

        total_ms = (t3 - t0) * 1000
        logger.info(
            "timing: total=%.2fms parse=%.2fms retrieve=%.2fms rank=%.2fms q=%r candidates=%s page=%s limit=%s",
            total_ms,
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
            (t3 - t2) * 1000,
            query,
            len(ranked),
            page,
            limit,
        )

        response = SearchResponse(
            data=data,
            metadata=SearchMetadata(
                totalResults=len(ranked),
                page=page,
                limit=limit,
                processingTimeMs=round(total_ms, 2),
                query=parsed,
            ),
        )
        if cache_key is not None and self.cache_ttl_seconds > 0:
            self.cache.set(cache_key, response.model_dump(mode="json", by_alias=True), self.cache_ttl_seconds)
            logger.debug("cache_store q=%r ttl=%s", query, self.cache_ttl_seconds)
        return response
