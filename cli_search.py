"""Terminal client that runs the in-process search over a catalog file."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from time import perf_counter
from typing import Iterable, Sequence

from portal_search.catalog import load_catalog
from portal_search.config import settings
from portal_search.models import Product, SearchFilters, SearchResult, SmartSearchResult
from portal_search.search import search

MAX_RESULTS = 100
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
RESET = "\033[0m"


def perform_query(query: str, catalog: Sequence[Product], filters: SearchFilters) -> tuple[SmartSearchResult, float]:
    start = perf_counter()
    response = search(query, catalog, filters)
    return response, (perf_counter() - start) * 1000


def _print_rows(rows: Iterable[SearchResult]) -> None:
    for idx, item in enumerate(rows, start=1):
        product = item.product
        print(
            f"  {idx:02d}. score={item.score:.2f} [{item.matchType.value}] | {product.brand or '-'} | "
            f"{product.itemCode} | {product.name}"
            + (f" ({item.reason})" if item.reason else "")
        )


def pretty_print_response(query: str, payload: SmartSearchResult, eta: float) -> None:
    color = GREEN if eta < 200 else RED
    eta_label = f"{color}{eta:.1f} ms{RESET}"
    print(f"Query: {query!r} | results: {len(payload.results)} | ETA: {eta_label}")
    if payload.noResultsMessage:
        print(f"  {YELLOW}{payload.noResultsMessage}{RESET}")
    _print_rows(payload.results[:MAX_RESULTS])
    if payload.suggestions:
        print("  Suggestions:")
        _print_rows(payload.suggestions)


def interactive_shell(catalog: Sequence[Product], filters: SearchFilters) -> None:
    print(f"Interactive product search over {len(catalog)} products. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if query.lower() in {"exit", "quit"}:
            return
        response, eta = perform_query(query, catalog, filters)
        pretty_print_response(query, response, eta)


def batch_mode(file_path: Path, catalog: Sequence[Product], filters: SearchFilters) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            response, eta = perform_query(query, catalog, filters)
            pretty_print_response(query, response, eta)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the catalog search")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--catalog", type=Path, default=Path(settings.catalog_path), help="Catalog JSON file")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--category", action="append", default=[], help="Restrict to a category (repeatable)")
    parser.add_argument("--brand", action="append", default=[], help="Restrict to a brand (repeatable)")
    parser.add_argument("--verbose", action="store_true", help="Log search timings")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    catalog = load_catalog(args.catalog)
    filters = SearchFilters(categories=frozenset(args.category), brands=frozenset(args.brand))

    if args.batch:
        batch_mode(args.batch, catalog, filters)
        return 0
    if args.query is not None:
        response, eta = perform_query(args.query, catalog, filters)
        pretty_print_response(args.query, response, eta)
        return 0
    interactive_shell(catalog, filters)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
