"""Products index lifecycle: create from the JSON mapping, drop, inspect."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import BadRequestError, NotFoundError

from .config import settings

logger = logging.getLogger(__name__)


def load_index_definition(mapping_path: str | Path | None = None) -> dict:
    """Read ``settings``/``mappings`` for the products index."""
    path = Path(mapping_path or settings.mapping_path)
    with path.open("r", encoding="utf-8") as fh:
        definition = json.load(fh)
    if "mappings" not in definition:
        raise ValueError(f"{path} has no 'mappings' section")
    return definition


async def ensure_index(es: Elasticsearch, index: str | None = None) -> bool:
    """Create the index if missing. Returns True when it was created."""
    index = index or settings.es_index
    if await asyncio.to_thread(es.indices.exists, index=index):
        return False
    definition = load_index_definition()
    logger.info("Creating index %s from %s", index, settings.mapping_path)
    try:
        await asyncio.to_thread(
            es.indices.create,
            index=index,
            settings=definition.get("settings"),
            mappings=definition["mappings"],
        )
    except BadRequestError as exc:
        # Another worker may have won the race.
        if getattr(exc, "error", "") == "resource_already_exists_exception":
            logger.info("Index %s already exists", index)
            return False
        logger.exception("Failed to create index %s: %s", index, exc)
        raise
    return True


async def drop_index(es: Elasticsearch, index: str | None = None) -> None:
    index = index or settings.es_index
    try:
        await asyncio.to_thread(es.indices.delete, index=index)
    except NotFoundError:
        logger.debug("Index %s did not exist", index)


async def index_is_empty(es: Elasticsearch, index: str | None = None) -> bool:
    try:
        response = await asyncio.to_thread(es.count, index=index or settings.es_index)
    except NotFoundError:
        return True
    return response.get("count", 0) == 0
