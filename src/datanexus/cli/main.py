from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from datanexus.cli.commands import (
    backfill_cmd,
    gaps_cmd,
    ingest_cmd,
    init_cmd,
    query_cmd,
    refresh_cmd,
    reset_cmd,
    web_cmd,
)
from datanexus.cli.context import CLIContext
from datanexus.core.config import load_paths
from datanexus.core.errors import DataNexusError
from datanexus.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datanexus",
        description="DataNexus market intelligence CLI",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .datanexus data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    reset_cmd.register(subparsers)
    ingest_cmd.register(subparsers)
    refresh_cmd.register(subparsers)
    backfill_cmd.register(subparsers)
    gaps_cmd.register(subparsers)
    query_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except DataNexusError as exc:
        logger.error(str(exc))
        return 1
