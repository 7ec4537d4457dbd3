"""Command line front end for quotegen.

Usage
-----
::

    quotegen show                      # random quote from the selected category
    quotegen show --category Motivation
    quotegen add "Stay hungry." Motivation
    quotegen list
    quotegen categories
    quotegen filter Motivation         # remember a category ("all" clears it)
    quotegen export quotes.json
    quotegen import quotes.json
    quotegen sync
    quotegen watch --interval 15       # sync periodically until Ctrl-C

Options::

    --storage FILE       Storage file (default: ~/.quotegen/storage.json)
    --base-url URL       Remote API base URL
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any

from quotegen.client import QuoteClient
from quotegen.config import QuoteConfig
from quotegen.exceptions import QuoteError
from quotegen.models import Quote
from quotegen.sync import SyncResult

LOG = logging.getLogger("quotegen.cli")


def _format_quote(quote: Quote) -> str:
    return f'"{quote.text}" - {quote.category}'


def _print_result(result: SyncResult) -> None:
    print(result.message)
    for conflict in result.conflicts:
        print(f"  conflict id={conflict.id}: {conflict.local.text!r} -> {conflict.remote.text!r}")
    if result.publish_failures:
        print(f"  {result.publish_failures} quote(s) could not be published")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quotegen", description="Dynamic quote generator")
    parser.add_argument("--storage", type=Path, help="Storage file")
    parser.add_argument("--base-url", help="Remote API base URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Show a random quote")
    show.add_argument("--category", help="Category to draw from (default: selected filter)")

    add = sub.add_parser("add", help="Add a quote")
    add.add_argument("text")
    add.add_argument("category")
    add.add_argument("--no-publish", action="store_true", help="Do not send the quote to the server")

    listing = sub.add_parser("list", help="List quotes")
    listing.add_argument("--category", help="Only this category")

    sub.add_parser("categories", help="List categories")

    select = sub.add_parser("filter", help="Remember a category filter")
    select.add_argument("category")

    export = sub.add_parser("export", help="Export quotes to a JSON file")
    export.add_argument("path", type=Path)

    imp = sub.add_parser("import", help="Import quotes from a JSON file")
    imp.add_argument("path", type=Path)

    sub.add_parser("sync", help="Sync with the server once")

    watch = sub.add_parser("watch", help="Sync periodically until interrupted")
    watch.add_argument("--interval", type=float, help="Seconds between syncs")

    return parser


def _config_from_args(args: argparse.Namespace) -> QuoteConfig:
    overrides: dict[str, Any] = {}
    if args.storage is not None:
        overrides["storage_path"] = args.storage
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.command == "add" and args.no_publish:
        overrides["publish_on_add"] = False
    if args.command == "watch" and args.interval is not None:
        overrides["sync_interval"] = args.interval
    return QuoteConfig.from_env(**overrides)


async def run(args: argparse.Namespace, config: QuoteConfig) -> int:
    """Execute one command against an open client."""
    on_sync = _print_result if args.command == "watch" else None
    config = dataclasses.replace(config, auto_sync=False)

    async with QuoteClient(config, on_sync=on_sync) as client:
        store = client.store

        if args.command == "show":
            quote = store.random_quote(args.category)
            print(_format_quote(quote) if quote else "No quotes available in this category.")
        elif args.command == "add":
            quote = client.add_quote(args.text, args.category)
            await client.wait_for_background()
            print(f"Quote added successfully! (id={quote.id})")
        elif args.command == "list":
            for quote in store.filtered(args.category):
                print(f"{quote.id:>14}  {_format_quote(quote)}")
        elif args.command == "categories":
            selected = store.selected_category
            for category in store.categories():
                marker = "*" if category == selected else " "
                print(f"{marker} {category}")
        elif args.command == "filter":
            store.select_category(args.category)
            print(f"Filter set to {store.selected_category!r}")
        elif args.command == "export":
            target = client.export_file(args.path)
            print(f"Exported {len(store)} quote(s) to {target}")
        elif args.command == "import":
            imported = client.import_file(args.path)
            print(f"Quotes imported successfully! ({len(imported)} added)")
        elif args.command == "sync":
            result = await client.sync()
            _print_result(result)
            return 0 if result.success else 1
        elif args.command == "watch":
            client.start_auto_sync(immediate=True)
            LOG.info("Syncing every %.1fs; press Ctrl-C to stop", config.sync_interval)
            await asyncio.Event().wait()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = _config_from_args(args)
        return asyncio.run(run(args, config))
    except KeyboardInterrupt:
        return 130
    except QuoteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
