"""Terminal client that reuses the in-process store, query and stats logic."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Iterable

from items_api.config import settings
from items_api.errors import ItemsError
from items_api.query import find, find_by_id, parse_page_params
from items_api.stats import compute_stats
from items_api.store import DataStore

DEFAULT_LIMIT = 20
GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def pretty_print_page(query: str | None, payload: dict) -> None:
    items = payload.get("items", [])
    total = payload.get("total", 0)
    offset = payload.get("offset", 0)
    color = GREEN if items else RED
    label = f"{color}{len(items)}/{total}{RESET}"
    print(f"Query: {query or '*'} | offset: {offset} | shown: {label}")
    for idx, item in enumerate(items, start=offset + 1):
        price = item.get("price")
        price_repr = f"{price:.2f}" if isinstance(price, (int, float)) else "-"
        print(f"  {idx:03d}. id={item.get('id')} | {item.get('name')} | {price_repr}")


async def run(args: argparse.Namespace) -> int:
    store = DataStore(args.data)
    records = await store.load_records()
    if args.stats:
        stats = compute_stats(records)
        print(f"Items: {stats['total']} | average price: {stats['averagePrice']:.2f}")
        return 0
    if args.id is not None:
        print(json.dumps(find_by_id(records, args.id), ensure_ascii=False, indent=2))
        return 0
    offset, limit = parse_page_params(args.offset, args.limit)
    page = find(records, query=args.query, offset=offset, limit=limit)
    pretty_print_page(args.query, page.as_dict())
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the items data file")
    parser.add_argument("query", nargs="?", help="Case-insensitive name substring. Lists everything if omitted.")
    parser.add_argument("--offset", default="0", help="Number of matches to skip")
    parser.add_argument("--limit", default=str(DEFAULT_LIMIT), help="Page size")
    parser.add_argument("--id", help="Print a single item by id")
    parser.add_argument("--stats", action="store_true", help="Print item count and average price")
    parser.add_argument("--data", type=Path, default=Path(settings.data_path), help="Path to the items JSON file")
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        return asyncio.run(run(args))
    except ItemsError as exc:
        print(f"{RED}error:{RESET} {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
