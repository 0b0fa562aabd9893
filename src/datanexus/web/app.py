from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from datanexus.application.services.backfill_service import BackfillPlan, BackfillService
from datanexus.application.services.ingestion_service import IngestionService, IngestOutcome
from datanexus.application.services.project_service import ProjectService
from datanexus.application.services.query_service import QueryService, build_query_params
from datanexus.core.citation import split_citation_markers
from datanexus.core.config import AppPaths
from datanexus.core.errors import ConfigurationError, ProviderError
from datanexus.core.time import is_iso_date, today_iso
from datanexus.domain.models.market_item import Category, GroundingSource
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.providers.base import SearchProvider

logger = logging.getLogger(__name__)


class SourceModel(BaseModel):
    title: str = ""
    uri: str = ""


class IngestRequest(BaseModel):
    category: str
    date: str | None = None
    raw_text: str
    sources: list[SourceModel] = Field(default_factory=list)


class RefreshRequest(BaseModel):
    date: str | None = None


class BackfillRequest(BaseModel):
    date: str | None = None


def _jsonable(value: Any) -> Any:
    if is_dataclass(value):
        return _jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
    return value


def _outcome_payload(outcome: IngestOutcome) -> dict[str, Any]:
    sources = list(outcome.result.sources)
    items = outcome.stored_items if outcome.persisted and outcome.stored_items else list(outcome.result.items)
    return {
        "ok": outcome.persisted,
        "category": outcome.category.value,
        "date": outcome.date,
        "timestamp": outcome.result.timestamp,
        "persisted": outcome.persisted,
        "store_error": outcome.store_error,
        "sources": _jsonable(sources),
        "items": [
            {
                **_jsonable(item),
                "summary_segments": _jsonable(split_citation_markers(item.summary, sources)),
            }
            for item in items
        ],
    }


def create_app(
    paths: AppPaths,
    provider: SearchProvider | None = None,
    backfill_on_start: bool = False,
) -> FastAPI:
    """Build the JSON API.

    With ``backfill_on_start`` and a provider, the categories still missing for
    today are backfilled in the background once the server starts. Shutdown
    waits for that pass to finish.
    """
    project_service = ProjectService(paths)
    project_service.init_project()

    repo = MarketItemRepo(paths.db_path)
    ingestion_service = IngestionService(repo, provider=provider)
    backfill_service = BackfillService(ingestion_service, repo)
    query_service = QueryService(repo)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        task: asyncio.Task[BackfillPlan] | None = None
        if backfill_on_start and provider is not None:
            today = today_iso()
            logger.info("Starting session backfill for %s", today)
            task = asyncio.create_task(backfill_service.run_session(today))
        app.state.startup_backfill = task
        yield
        if task is not None:
            await task

    app = FastAPI(title="DataNexus", version="0.1.0", lifespan=lifespan)

    def parse_category(value: str) -> Category:
        try:
            return Category.parse(value)
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    def parse_date(value: str | None) -> str:
        if value is None:
            return today_iso()
        if not is_iso_date(value):
            raise HTTPException(status_code=400, detail=f"Invalid date {value!r}; expected YYYY-MM-DD")
        return value

    @app.post("/api/init")
    def api_init() -> dict[str, Any]:
        result = project_service.init_project()
        return {
            "ok": True,
            "db_path": str(result.db_path),
            "paths_created": [str(p) for p in result.paths_created],
        }

    @app.get("/api/items")
    async def api_items(
        start_date: str | None = Query(default=None),
        end_date: str | None = Query(default=None),
        region: str | None = Query(default=None),
        entity_keyword: str | None = Query(default=None),
        category: str | None = Query(default=None),
    ) -> dict[str, Any]:
        try:
            params = build_query_params(
                start_date=start_date,
                end_date=end_date,
                region=region,
                entity_keyword=entity_keyword,
                category=category,
            )
        except ConfigurationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        items = await query_service.query(params)
        return {"ok": True, "count": len(items), "items": _jsonable(items)}

    @app.get("/api/completeness/{date}")
    async def api_completeness(date: str) -> dict[str, Any]:
        day = parse_date(date)
        missing = await query_service.missing_categories(day)
        return {
            "ok": True,
            "date": day,
            "missing": [category.value for category in missing],
            "complete": not missing,
        }

    @app.get("/api/status")
    def api_status() -> dict[str, Any]:
        categories = {}
        for category, status in ingestion_service.statuses.items():
            result = ingestion_service.results[category]
            categories[category.value] = {
                "label": category.label,
                "loading": status.loading,
                "error": status.error,
                "item_count": len(result.items) if result is not None else None,
                "timestamp": result.timestamp if result is not None else None,
            }
        return {
            "ok": True,
            "categories": categories,
            "backfill": {
                "finished": backfill_service.progress.finished,
                "total": backfill_service.progress.total,
                "current": backfill_service.progress.current.value if backfill_service.progress.current else None,
            },
        }

    @app.post("/api/ingest")
    async def api_ingest(req: IngestRequest) -> dict[str, Any]:
        category = parse_category(req.category)
        day = parse_date(req.date)
        sources = [GroundingSource(title=s.title, uri=s.uri) for s in req.sources]
        outcome = await ingestion_service.ingest_response(category, day, req.raw_text, sources)
        return _outcome_payload(outcome)

    @app.post("/api/refresh/{category}")
    async def api_refresh(category: str, req: RefreshRequest | None = None) -> dict[str, Any]:
        parsed = parse_category(category)
        day = parse_date(req.date if req else None)
        try:
            outcome = await ingestion_service.refresh(parsed, day)
        except ProviderError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        if outcome is None:
            return {"ok": False, "busy": True, "category": parsed.value, "date": day}
        return _outcome_payload(outcome)

    @app.post("/api/backfill")
    async def api_backfill(req: BackfillRequest | None = None) -> dict[str, Any]:
        day = parse_date(req.date if req else None)
        plan = await backfill_service.run_session(day)
        return {
            "ok": not plan.failed_steps,
            "date": plan.date,
            "steps": _jsonable(plan.steps),
            "progress": _jsonable(backfill_service.progress),
        }

    return app
