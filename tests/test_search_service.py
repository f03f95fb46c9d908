"""End-to-end tests for the search pipeline over an in-memory catalog."""

import asyncio
import time

import pytest

from catalog_search.cache import InMemoryCache
from catalog_search.errors import InvalidQuery, RetrievalError
from catalog_search.search_service import SearchService
from catalog_search.store import InMemoryProductStore


def run(coro):
    return asyncio.run(coro)


def test_cheap_intent_ranks_the_cheaper_iphone_first(iphone_catalog):
    service = SearchService(iphone_catalog)

    response = run(service.search("Sasta iPhone"))

    ids = [item.id for item in response.data]
    assert ids == ["iphone-16", "iphone-16-pro-max"]
    assert response.metadata.query.cheapIntent is True
    assert response.metadata.query.tokens == ["iphone"]


def test_inactive_products_never_surface(iphone_catalog):
    response = run(SearchService(iphone_catalog).search("apple iphone"))

    assert "old-iphone" not in {item.id for item in response.data}


def test_envelope_metadata(iphone_catalog):
    response = run(SearchService(iphone_catalog).search("samsung", page=1, limit=5))

    meta = response.metadata
    assert meta.totalResults == 1
    assert (meta.page, meta.limit) == (1, 5)
    assert meta.processingTimeMs >= 0
    assert meta.query.originalQuery == "samsung"
    assert response.data[0].id == "galaxy-s24"


def test_misspelling_outside_the_lexicon_uses_the_fallback(iphone_catalog):
    response = run(SearchService(iphone_catalog).search("samsnug"))

    assert [item.id for item in response.data] == ["galaxy-s24"]


def test_pages_through_results(product_factory):
    store = InMemoryProductStore([product_factory(id=f"p{i}", title=f"Phone {i}") for i in range(25)])
    service = SearchService(store)

    sizes = [len(run(service.search("phone", page=page, limit=10)).data) for page in (1, 2, 3, 4)]

    assert sizes == [10, 10, 5, 0]


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_is_rejected(iphone_catalog, query):
    with pytest.raises(InvalidQuery):
        run(SearchService(iphone_catalog).search(query))


class FailingStore:
    def find_active_matching(self, product_filter):
        raise RetrievalError("connection refused")

    def find_active_sample(self, max_count):
        raise RetrievalError("connection refused")


def test_store_errors_propagate():
    with pytest.raises(RetrievalError):
        run(SearchService(FailingStore()).search("phone"))


class SlowStore:
    def find_active_matching(self, product_filter):
        time.sleep(0.5)
        return []

    def find_active_sample(self, max_count):
        return []


def test_deadline_aborts_at_the_store_round_trip():
    with pytest.raises(RetrievalError):
        run(SearchService(SlowStore()).search("phone", deadline=0.05))


class CountingStore(InMemoryProductStore):
    def __init__(self, products):
        super().__init__(products)
        self.calls = 0

    def find_active_matching(self, product_filter):
        self.calls += 1
        return super().find_active_matching(product_filter)


def test_cached_envelope_is_served_without_touching_the_store(product_factory):
    store = CountingStore([product_factory(id="p1")])
    service = SearchService(store, cache=InMemoryCache(), cache_ttl_seconds=60)

    first = run(service.search("phone"))
    second = run(service.search("phone"))

    assert store.calls == 1
    assert second.data[0].id == first.data[0].id
    assert second.data[0].score == first.data[0].score


def test_deactivated_product_leaves_cached_results(iphone_catalog):
    service = SearchService(iphone_catalog, cache=InMemoryCache(), cache_ttl_seconds=300)

    before = run(service.search("apple iphone"))
    iphone_catalog.deactivate("iphone-16")
    after = run(service.search("apple iphone"))

    assert "iphone-16" in {item.id for item in before.data}
    assert "iphone-16" not in {item.id for item in after.data}


def test_price_update_is_reflected_after_a_cached_search(iphone_catalog):
    service = SearchService(iphone_catalog, cache=InMemoryCache(), cache_ttl_seconds=300)

    run(service.search("apple iphone"))
    iphone_catalog.update("iphone-16", {"price": 69900})
    after = run(service.search("apple iphone"))

    prices = {item.id: item.price for item in after.data}
    assert prices["iphone-16"] == 69900


def test_cached_hit_reports_its_own_original_query(iphone_catalog):
    service = SearchService(iphone_catalog, cache=InMemoryCache(), cache_ttl_seconds=300)

    run(service.search("Sasta iPhone"))
    response = run(service.search("sasta  iphone"))

    assert response.metadata.query.originalQuery == "sasta  iphone"
