"""Search envelope caching: Redis when reachable, a bounded local map otherwise.

Entries are the JSON form of a :class:`SearchResponse`, keyed by a digest of
the raw query text, the requested page window and the store generation, so a
write through the store retires every earlier entry.
"""
from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "catalog-search:"
LOCAL_MAX_ENTRIES = 1024


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set(self, key: str, value: Dict[str, Any], ttl: int) -> None: ...


def search_cache_key(query: str, page: int, limit: int, generation: int = 0) -> str:
    """Key on the raw query text and the store generation it was computed at."""
    digest = hashlib.sha1(f"{generation}|{page}|{limit}|{query}".encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}{digest}"


@dataclass
class RedisCache:
    client: redis.Redis

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("Redis get %s failed: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Dropping undecodable cache entry %s", key)
            return None

    def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        try:
            self.client.setex(key, ttl, json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Redis set %s failed: %s", key, exc)


class InMemoryCache:
    """TTL map that evicts the least recently used entry past ``max_entries``."""

    def __init__(self, max_entries: int = LOCAL_MAX_ENTRIES) -> None:
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, tuple[float, Dict[str, Any]]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return payload

    def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + ttl, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)


_cache: CacheBackend | None = None


def get_cache() -> CacheBackend | None:
    """Process-wide cache, or ``None`` when ``CACHE_TTL_SECONDS`` is 0."""
    global _cache
    if settings.cache_ttl_seconds <= 0:
        return None
    if _cache is None:
        client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
        try:
            client.ping()
        except redis.RedisError:
            logger.warning("Redis not available at %s:%s, caching in process", settings.redis_host, settings.redis_port)
            _cache = InMemoryCache()
        else:
            logger.info("Using Redis cache at %s:%s", settings.redis_host, settings.redis_port)
            _cache = RedisCache(client)
    return _cache
