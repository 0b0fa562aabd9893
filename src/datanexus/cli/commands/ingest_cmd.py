from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from rich.panel import Panel

from datanexus.application.services.ingestion_service import IngestionService
from datanexus.application.services.project_service import ProjectService
from datanexus.cli.context import CLIContext
from datanexus.cli.options import add_date_arg, category_arg, items_table, resolve_date
from datanexus.core.errors import ConfigurationError
from datanexus.domain.models.market_item import GroundingSource
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.providers.grounding import sources_from_payload


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "ingest",
        help="Repair, normalize and store a raw model response saved to disk",
    )
    parser.add_argument("--file", required=True, help="Raw model response text (JSON, possibly fenced or malformed)")
    parser.add_argument(
        "--sources",
        help="JSON file with the response's grounding sources ([{title, uri}] or groundingChunks)",
    )
    parser.add_argument("--category", required=True, type=category_arg)
    add_date_arg(parser)
    parser.set_defaults(handler=run)


def _load_sources(path: Path | None) -> list[GroundingSource]:
    if path is None:
        return []
    resolved = path.expanduser().resolve()
    if not resolved.is_file():
        raise ConfigurationError(f"Sources file not found: {resolved}")
    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Sources file is not valid JSON: {resolved}: {exc}") from exc
    return sources_from_payload(payload)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()

    response_path = Path(args.file).expanduser().resolve()
    if not response_path.is_file():
        raise ConfigurationError(f"Response file not found: {response_path}")
    raw_text = response_path.read_text(encoding="utf-8")
    sources = _load_sources(Path(args.sources) if args.sources else None)
    date = resolve_date(args)

    service = IngestionService(MarketItemRepo(ctx.paths.db_path))
    outcome = asyncio.run(service.ingest_response(args.category, date, raw_text, sources))

    ctx.console.print(
        Panel.fit(
            "\n".join(
                [
                    f"Category: {outcome.category.value}",
                    f"Date: {outcome.date}",
                    f"Items: {len(outcome.result.items)}",
                    f"Sources: {len(outcome.result.sources)}",
                    f"Persisted: {'yes' if outcome.persisted else 'no'}",
                ]
            ),
            title="Ingest Summary",
        )
    )
    if outcome.stored_items:
        ctx.console.print(items_table(outcome.stored_items, title="Stored Items"))
    if not outcome.persisted:
        ctx.console.print(f"[red]Store write failed[/red] {outcome.store_error}")
        return 1
    return 0
