from __future__ import annotations

import argparse
import asyncio

from datanexus.application.services.project_service import ProjectService
from datanexus.application.services.query_service import QueryService, build_query_params
from datanexus.cli.context import CLIContext
from datanexus.cli.options import items_table
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("query", help="Filter stored items, newest date first")
    parser.add_argument("--start-date", help="Inclusive lower date bound (YYYY-MM-DD)")
    parser.add_argument("--end-date", help="Inclusive upper date bound (YYYY-MM-DD)")
    parser.add_argument("--region", help="Substring of the region")
    parser.add_argument("--entity", dest="entity_keyword", help="Case-insensitive keyword in entity or title")
    parser.add_argument("--category", help="Exact category")
    parser.add_argument("--limit", type=int, default=100)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()
    params = build_query_params(
        start_date=args.start_date,
        end_date=args.end_date,
        region=args.region,
        entity_keyword=args.entity_keyword,
        category=args.category,
    )

    items = asyncio.run(QueryService(MarketItemRepo(ctx.paths.db_path)).query(params))
    shown = items[: args.limit] if args.limit > 0 else items
    ctx.console.print(items_table(shown, title=f"Market Items ({len(shown)} of {len(items)})"))
    return 0
