from __future__ import annotations

import argparse

from rich.table import Table

from datanexus.application.services.project_service import ProjectService
from datanexus.cli.context import CLIContext
from datanexus.cli.options import add_date_arg, resolve_date
from datanexus.domain.models.market_item import Category
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("gaps", help="Show which categories have no items for a date")
    add_date_arg(parser)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()
    date = resolve_date(args)

    missing = MarketItemRepo(ctx.paths.db_path).missing_categories_for_date(date)

    out = Table(title=f"Completeness {date}")
    out.add_column("Category")
    out.add_column("Label")
    out.add_column("Status")
    for category in Category:
        status = "[red]missing[/red]" if category in missing else "[green]present[/green]"
        out.add_row(category.value, category.label, status)
    ctx.console.print(out)
    return 0
