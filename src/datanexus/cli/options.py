from __future__ import annotations

import argparse
from pathlib import Path

from rich.markup import escape
from rich.table import Table

from datanexus.core.time import is_iso_date, today_iso
from datanexus.domain.models.market_item import Category, MarketItem


def category_arg(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def date_arg(value: str) -> str:
    if not is_iso_date(value):
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}; expected YYYY-MM-DD")
    return value


def add_date_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--date",
        type=date_arg,
        default=None,
        help="Calendar date as YYYY-MM-DD (default: today).",
    )


def add_captures_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--captures",
        type=Path,
        default=None,
        help="Directory of captured responses laid out as <date>/<category>.json "
        "(default: the project's captures directory).",
    )


def resolve_date(args: argparse.Namespace) -> str:
    return args.date or today_iso()


def items_table(items: list[MarketItem], title: str) -> Table:
    out = Table(title=title)
    out.add_column("ID")
    out.add_column("Date")
    out.add_column("Category")
    out.add_column("Region")
    out.add_column("Title", overflow="fold")
    out.add_column("Entity", overflow="fold")
    out.add_column("Amount")
    out.add_column("Sources", overflow="fold")

    for item in items:
        sources = ", ".join(source.uri for source in item.sources)
        out.add_row(
            "" if item.id is None else str(item.id),
            item.date,
            item.category.value,
            escape(item.region),
            escape(item.title),
            escape(item.entity),
            escape(item.amount),
            sources,
        )
    return out
