"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    mapping_path: str = _get_env("MAPPING_PATH", "product-mapping.json")
    products_path: str = _get_env("PRODUCTS_PATH", "products.json")
    store_backend: str = _get_env("STORE_BACKEND", "elasticsearch")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    load_on_startup: bool = _get_env("LOAD_ON_STARTUP", "true").lower() in {"1", "true", "yes"}
    # Upper bound on hits pulled from the store for one strict match.
    candidate_limit: int = int(_get_env("CANDIDATE_LIMIT", "10000"))
    # Bounded sample scanned by the approximate fallback.
    fuzzy_sample_size: int = int(_get_env("FUZZY_SAMPLE_SIZE", "1000"))
    price_tolerance: float = float(_get_env("PRICE_TOLERANCE", "0.2"))
    price_cap: float = float(_get_env("PRICE_CAP", "150000"))
    default_page_size: int = int(_get_env("DEFAULT_PAGE_SIZE", "20"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
