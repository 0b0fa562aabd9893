from __future__ import annotations

import argparse
import asyncio

from rich.markup import escape
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from datanexus.application.services.backfill_service import BackfillProgress, BackfillService
from datanexus.application.services.ingestion_service import IngestionService
from datanexus.application.services.project_service import ProjectService
from datanexus.cli.context import CLIContext
from datanexus.cli.options import add_captures_arg, add_date_arg, resolve_date
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.providers.capture_provider import CaptureDirectoryProvider


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "backfill",
        help="Fetch every category still missing for a date, one after another",
    )
    add_date_arg(parser)
    add_captures_arg(parser)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    ProjectService(ctx.paths).require_initialized()
    date = resolve_date(args)

    repo = MarketItemRepo(ctx.paths.db_path)
    provider = CaptureDirectoryProvider(args.captures or ctx.paths.captures_dir)
    service = BackfillService(IngestionService(repo, provider=provider), repo)

    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=ctx.console,
    )

    with progress:
        task = progress.add_task(f"Backfilling {date}", total=None)

        def _on_progress(snapshot: BackfillProgress) -> None:
            current = snapshot.current.value if snapshot.current else ""
            progress.update(
                task,
                total=snapshot.total,
                completed=snapshot.finished,
                description=f"Backfilling {date} ({current})",
            )

        plan = asyncio.run(service.run_session(date, on_progress=_on_progress))

    if not len(plan):
        ctx.console.print(f"[green]Nothing missing for {date}[/green]")
        return 0

    out = Table(title=f"Backfill {date}")
    out.add_column("Category")
    out.add_column("Status")
    out.add_column("Items")
    out.add_column("Error", overflow="fold")
    for step in plan:
        out.add_row(step.category.value, step.status, str(step.item_count), escape(step.error or ""))
    ctx.console.print(out)

    return 1 if plan.failed_steps else 0
