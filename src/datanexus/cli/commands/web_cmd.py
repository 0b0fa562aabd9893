from __future__ import annotations

import argparse

from datanexus.cli.context import CLIContext
from datanexus.cli.options import add_captures_arg
from datanexus.infrastructure.providers.capture_provider import CaptureDirectoryProvider
from datanexus.web.app import create_app


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("web", help="Run the JSON API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument(
        "--no-backfill",
        action="store_true",
        help="Skip backfilling today's missing categories on startup",
    )
    add_captures_arg(parser)
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    try:
        import uvicorn
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("uvicorn is required for web mode. Install project dependencies.") from exc

    provider = CaptureDirectoryProvider(args.captures or ctx.paths.captures_dir)
    app = create_app(ctx.paths, provider=provider, backfill_on_start=not args.no_backfill)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0
