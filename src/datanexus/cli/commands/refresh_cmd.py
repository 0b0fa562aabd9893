from __future__ import annotations

import argparse
import asyncio

from datanexus.application.services.ingestion_service import IngestionService
from datanexus.application.services.project_service import ProjectService
from datanexus.cli.context import CLIContext
from datanexus.cli.options import add_captures_arg, add_date_arg, category_arg, items_table, resolve_date
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.providers.capture_provider import CaptureDirectoryProvider


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("refresh", help="Fetch and ingest one category for one date")
    parser.add_argument("--category", required=True, type=category_arg)
    add_date_arg(parser)
    add_captures_arg(parser)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()
    date = resolve_date(args)

    provider = CaptureDirectoryProvider(args.captures or ctx.paths.captures_dir)
    service = IngestionService(MarketItemRepo(ctx.paths.db_path), provider=provider)
    outcome = asyncio.run(service.refresh(args.category, date))
    if outcome is None:
        ctx.console.print(f"[yellow]Fetch for {args.category.value} already in flight[/yellow]")
        return 0

    ctx.console.print(items_table(list(outcome.result.items), title=f"{date} · {args.category.label}"))
    if not outcome.persisted:
        ctx.console.print(f"[red]Store write failed[/red] {outcome.store_error}")
        return 1
    ctx.console.print(f"[green]Stored[/green] {len(outcome.stored_items)} item(s)")
    return 0
