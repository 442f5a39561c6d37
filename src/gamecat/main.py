#!/usr/bin/env python3

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from gamecat.adapters.records import load_records
from gamecat.app import init_db, merge_games, persist_records
from gamecat.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain the gamecat catalog")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the database schema")

    persist = subparsers.add_parser("persist", help="Persist processed records")
    persist.add_argument("records", type=Path, help="JSONL (or .json array) records file")
    persist.add_argument(
        "--run-id",
        type=int,
        help="Existing pipeline run to attach items to (a new run is created otherwise)",
    )
    persist.add_argument(
        "--no-create",
        action="store_true",
        help="Only update existing games; unmatched records fail",
    )

    merge = subparsers.add_parser("merge", help="Merge a duplicate game into its keeper")
    merge.add_argument("--keeper-id", type=int, help="Internal id of the surviving game")
    merge.add_argument("--loser-id", type=int, help="Internal id of the game to fold in")
    merge.add_argument("--steam-id", type=int, help="Steam app id of the keeper")
    merge.add_argument("--rawg-id", type=int, help="RAWG id of the duplicate")
    merge.add_argument(
        "--ids",
        type=int,
        nargs=2,
        metavar=("A", "B"),
        help="Two internal ids; the keeper is picked automatically",
    )
    merge.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )

    return parser.parse_args(list(argv))


def _validate_merge_args(args: argparse.Namespace) -> None:
    by_internal = args.keeper_id is not None or args.loser_id is not None
    by_external = args.steam_id is not None or args.rawg_id is not None
    by_pair = args.ids is not None
    if sum((by_internal, by_external, by_pair)) != 1:
        raise ValueError("Use exactly one of --keeper-id/--loser-id, --steam-id/--rawg-id, --ids")
    if by_internal and (args.keeper_id is None or args.loser_id is None):
        raise ValueError("--keeper-id and --loser-id must be given together")
    if by_external and (args.steam_id is None or args.rawg_id is None):
        raise ValueError("--steam-id and --rawg-id must be given together")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "merge":
            _validate_merge_args(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        if parsed_args.command == "init-db":
            init_db()
        elif parsed_args.command == "persist":
            records = load_records(parsed_args.records)
            result = persist_records(
                records,
                run_id=parsed_args.run_id,
                allow_create=not parsed_args.no_create,
            )
            for failure in result.failures:
                log.warning(
                    "Failed %s: %s (%s)",
                    failure.record.identity,
                    failure.reason.value,
                    failure.message,
                )
            if result.failed and not (result.created or result.updated):
                sys.exit(1)
        elif parsed_args.command == "merge":
            ids = tuple(parsed_args.ids) if parsed_args.ids is not None else None
            report = merge_games(
                keeper_id=parsed_args.keeper_id,
                loser_id=parsed_args.loser_id,
                steam_id=parsed_args.steam_id,
                rawg_id=parsed_args.rawg_id,
                game_ids=ids,
                dry_run=parsed_args.dry_run,
            )
            log.info("Merge report: %s", json.dumps(report.as_dict()))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
