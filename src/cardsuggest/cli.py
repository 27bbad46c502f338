"""Command-line entry point: ``python -m cardsuggest <command>``.

Commands print their results on stdout; logs and errors go to stderr. A
``CardSuggestError`` is reported as the JSON error envelope with exit
status 1. Invalid configuration aborts before any command runs.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from cardsuggest.config import Settings
from cardsuggest.errors import CardSuggestError
from cardsuggest.log_setup import configure_logging
from cardsuggest.state import create_app_state
from cardsuggest.suggest import parse_query

if TYPE_CHECKING:
    from cardsuggest.state import AppState

log = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardsuggest",
        description="Card catalog suggestions backed by a local catalog cache.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    suggest = sub.add_parser("suggest", help="print suggestions for a query")
    suggest.add_argument("query", nargs="?", default="", help='e.g. "Lili" or "t:cre"')
    suggest.add_argument(
        "--prefix",
        "-p",
        default=None,
        help="category prefix (s, t, r, c, cond, f, is, lang); parsed from the query if omitted",
    )

    sub.add_parser("refresh", help="fetch the catalog now, regardless of age")
    sub.add_parser("status", help="show cache age and size")
    sub.add_parser("clear", help="empty the catalog cache")
    return parser


async def _suggest(state: AppState, args: argparse.Namespace) -> None:
    if args.prefix is None:
        prefix, query = parse_query(args.query)
    else:
        prefix, query = args.prefix, args.query
    for candidate in await state.engine.get_suggestions_by_prefix(prefix, query):
        print(candidate.value)


async def _refresh(state: AppState, args: argparse.Namespace) -> None:
    content = await state.cache.refresh(state.fetcher.fetch_all)
    print(
        json.dumps(
            {
                "names": len(content.names),
                "sets": len(content.sets),
                "types": len(content.all_types()),
            }
        )
    )


async def _status(state: AppState, args: argparse.Namespace) -> None:
    cache = state.cache
    timestamp = cache.last_fetch_timestamp
    content = cache.content
    print(
        json.dumps(
            {
                "last_fetch_timestamp": timestamp,
                "last_fetch": (
                    datetime.fromtimestamp(timestamp / 1000, UTC).isoformat() if timestamp else None
                ),
                "stale": cache.is_stale(state.settings.cache.max_age_ms),
                "names": len(content.names) if content else 0,
                "sets": len(content.sets) if content else 0,
                "types": len(content.all_types()) if content else 0,
            }
        )
    )


async def _clear(state: AppState, args: argparse.Namespace) -> None:
    await state.cache.clear()


_COMMANDS = {
    "suggest": _suggest,
    "refresh": _refresh,
    "status": _status,
    "clear": _clear,
}


async def run(settings: Settings, args: argparse.Namespace) -> int:
    try:
        async with create_app_state(settings) as state:
            await _COMMANDS[args.command](state, args)
    except CardSuggestError as exc:
        log.error("command_failed", command=args.command, code=exc.code)
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}", file=sys.stderr)
        return 2
    configure_logging(settings.logging)
    return asyncio.run(run(settings, args))
