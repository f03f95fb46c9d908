"""Tests for the local search cache and its keys."""

from catalog_search.cache import InMemoryCache, search_cache_key


def test_keys_follow_the_raw_query_and_paging():
    assert search_cache_key("sasta iphone", 1, 20) == search_cache_key("sasta iphone", 1, 20)
    assert search_cache_key("Sasta  iPhone", 1, 20) != search_cache_key("sasta iphone", 1, 20)
    assert search_cache_key("sasta iphone", 1, 20) != search_cache_key("sasta iphone", 2, 20)


def test_keys_change_with_the_store_generation():
    assert search_cache_key("phone", 1, 20, generation=3) != search_cache_key("phone", 1, 20, generation=4)


def test_expired_entries_are_dropped():
    cache = InMemoryCache()
    cache.set("k", {"v": 1}, ttl=0)

    assert cache.get("k") is None


def test_least_recently_used_entry_is_evicted():
    cache = InMemoryCache(max_entries=2)
    cache.set("a", {"v": "a"}, ttl=60)
    cache.set("b", {"v": "b"}, ttl=60)
    cache.get("a")
    cache.set("c", {"v": "c"}, ttl=60)

    assert cache.get("b") is None
    assert cache.get("a") == {"v": "a"}
    assert cache.get("c") == {"v": "c"}
