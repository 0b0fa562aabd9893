from __future__ import annotations

import argparse

from datanexus.application.services.project_service import ProjectService
from datanexus.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "reset",
        help="Delete the store and recreate it with the current schema version",
    )
    parser.add_argument("--yes", action="store_true", help="Confirm that every stored item is discarded")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not args.yes:
        ctx.console.print("[red]Refusing to reset without --yes[/red] (all stored items would be lost)")
        return 2

    result = ProjectService(ctx.paths).reset_store()
    ctx.console.print(f"[green]Store recreated[/green] {result.db_path}")
    return 0
