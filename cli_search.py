"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Iterable

from catalog_search.config import settings
from catalog_search.errors import CatalogSearchError
from catalog_search.importer import load_products
from catalog_search.models import SearchResponse
from catalog_search.search_service import SearchService
from catalog_search.store import InMemoryProductStore, ProductStore

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_store(catalog: Path | None) -> ProductStore:
    if catalog is not None:
        return InMemoryProductStore(load_products(catalog))
    from catalog_search.es_store import ElasticsearchProductStore, get_client

    return ElasticsearchProductStore(get_client(), settings.es_index)


def perform_query(service: SearchService, query: str, page: int, limit: int) -> SearchResponse:
    return asyncio.run(service.search(query, page=page, limit=limit))


def pretty_print_response(query: str, payload: SearchResponse) -> None:
    meta = payload.metadata
    eta = meta.processingTimeMs
    color = GREEN if eta < 200 else RED
    eta_label = f"{color}{eta:.1f} ms{RESET}"
    parsed = meta.query
    print(
        f"Query: {query} | cleaned: {parsed.cleanedText!r} | results: {meta.totalResults} "
        f"| page {meta.page} | ETA: {eta_label}"
    )
    intents = {
        "price": parsed.priceIntent.targetValue if parsed.priceIntent else None,
        "cheap": parsed.cheapIntent,
        "expensive": parsed.expensiveIntent,
        "color": parsed.color,
        "storage": parsed.storage,
    }
    active = ", ".join(f"{key}={value}" for key, value in intents.items() if value)
    if active:
        print(f"  intents: {active}")
    offset = (meta.page - 1) * meta.limit
    for idx, item in enumerate(payload.data, start=offset + 1):
        print(f"  {idx:02d}. score={item.score:.2f} | {item.brand} | {item.price:.0f} | {item.title}")


def run_query(service: SearchService, query: str, page: int, limit: int) -> None:
    try:
        response = perform_query(service, query, page, limit)
    except CatalogSearchError as exc:
        print(f"{RED}error:{RESET} {exc}")
        return
    pretty_print_response(query, response)


def interactive_shell(service: SearchService, limit: int) -> None:
    print("Interactive catalog search. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not query:
            continue
        if query.lower() in {"exit", "quit"}:
            return
        run_query(service, query, 1, limit)


def batch_mode(service: SearchService, file_path: Path, limit: int) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            run_query(service, query, 1, limit)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the catalog search service")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--catalog", type=Path, help="JSON product file searched in memory instead of Elasticsearch")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, default=settings.default_page_size)
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.getLevelName(settings.log_level.upper()))
    service = SearchService(build_store(args.catalog))

    if args.batch:
        batch_mode(service, args.batch, args.limit)
        return 0
    if args.query:
        run_query(service, args.query, args.page, args.limit)
        return 0
    interactive_shell(service, args.limit)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
