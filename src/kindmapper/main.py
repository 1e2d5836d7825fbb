#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from kindmapper.bootstrap import open_store
from kindmapper.common.logging import configure_logging
from kindmapper.config import ConfigurationError, get_store_config
from kindmapper.core.clauses import KEY_PROPERTY, Limit, Order
from kindmapper.errors import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from kindmapper.core.clauses import Clause
    from kindmapper.domain.ports.store import Row, StoreClient

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kindmapper", description="Inspect a kindmapper store")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Open the configured store, creating the SQL schema")
    subparsers.add_parser("kinds", help="List the kinds holding records")

    count = subparsers.add_parser("count", help="Count the records of a kind")
    count.add_argument("kind", help="Native kind name")

    show = subparsers.add_parser("show", help="Print one record as JSON")
    show.add_argument("kind", help="Native kind name")
    show.add_argument("id", type=int, help="Record id")

    dump = subparsers.add_parser("dump", help="Print the records of a kind as JSON lines")
    dump.add_argument("kind", help="Native kind name")
    dump.add_argument("--limit", type=int, help="Maximum number of records to print")
    dump.add_argument("--desc", action="store_true", help="Newest (highest id) first")

    return parser.parse_args(list(argv))


def _format_row(row: Row) -> str:
    return json.dumps({"id": row.key.id, **row.properties}, sort_keys=True, default=str)


def _init(store: StoreClient, args: argparse.Namespace) -> int:
    _ = store, args
    print("Store ready")
    return 0


def _kinds(store: StoreClient, args: argparse.Namespace) -> int:
    _ = args
    for kind in store.kinds():
        print(kind)
    return 0


def _count(store: StoreClient, args: argparse.Namespace) -> int:
    print(store.count(args.kind, ()))
    return 0


def _show(store: StoreClient, args: argparse.Namespace) -> int:
    row = store.get(store.key(args.kind, args.id))
    if row is None:
        print(f"No {args.kind} record with id {args.id}", file=sys.stderr)
        return 1
    print(_format_row(row))
    return 0


def _dump(store: StoreClient, args: argparse.Namespace) -> int:
    if args.limit is not None and args.limit < 0:
        print("Error: --limit must be non-negative", file=sys.stderr)
        return 2
    clauses: list[Clause] = [Order(KEY_PROPERTY, descending=args.desc)]
    if args.limit is not None:
        clauses.append(Limit(args.limit))
    with store.run_query(args.kind, clauses) as rows:
        for row in rows:
            print(_format_row(row))
    return 0


COMMANDS: dict[str, Callable[[StoreClient, argparse.Namespace], int]] = {
    "init": _init,
    "kinds": _kinds,
    "count": _count,
    "show": _show,
    "dump": _dump,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Command line entry point."""
    load_dotenv()
    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config = get_store_config()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        sql_echo=config.database.echo if config.database else False,
    )

    try:
        store = open_store(config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except StoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        status = COMMANDS[parsed_args.command](store, parsed_args)
    except StoreError as exc:
        log.debug("Command %s failed", parsed_args.command, exc_info=exc)
        print(f"Error: {exc}", file=sys.stderr)
        status = 1
    finally:
        store.close()

    if status:
        sys.exit(status)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
