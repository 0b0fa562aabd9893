from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace

from datanexus.application.services.ingestion_service import IngestionService
from datanexus.core.errors import BackfillError
from datanexus.domain.models.market_item import Category
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo

logger = logging.getLogger(__name__)

STEP_PENDING = "pending"
STEP_DONE = "done"
STEP_FAILED = "failed"
STEP_SKIPPED = "skipped"


@dataclass(slots=True)
class BackfillProgress:
    finished: int = 0
    total: int = 0
    current: Category | None = None

    @property
    def complete(self) -> bool:
        return self.finished >= self.total


@dataclass(slots=True)
class BackfillStep:
    category: Category
    date: str
    status: str = STEP_PENDING
    error: str | None = None
    item_count: int = 0


class BackfillPlan:
    """One step per category missing on ``date``, in enumeration order."""

    def __init__(self, date: str, categories: list[Category]) -> None:
        self.date = date
        self.steps = [BackfillStep(category=category, date=date) for category in categories]

    def __iter__(self) -> Iterator[BackfillStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def failed_steps(self) -> list[BackfillStep]:
        return [step for step in self.steps if step.status == STEP_FAILED]


ProgressCallback = Callable[[BackfillProgress], None]


class BackfillService:
    """Completes missing categories for a date, one fetch at a time.

    ``run_session`` performs a single pass per service instance. Already-present
    categories are never re-checked and failed steps are not retried
    automatically; ``retry_step`` re-runs one on request.
    """

    def __init__(self, ingestion: IngestionService, repo: MarketItemRepo) -> None:
        self.ingestion = ingestion
        self.repo = repo
        self.progress = BackfillProgress()
        self.session_plan: BackfillPlan | None = None

    async def plan(self, date: str) -> BackfillPlan:
        missing = await asyncio.to_thread(self.repo.missing_categories_for_date, date)
        return BackfillPlan(date, missing)

    async def run_session(self, date: str, on_progress: ProgressCallback | None = None) -> BackfillPlan:
        if self.session_plan is not None:
            logger.info("Backfill already ran this session for %s", self.session_plan.date)
            return self.session_plan
        plan = await self.plan(date)
        self.session_plan = plan
        if not len(plan):
            logger.info("No categories missing for %s", date)
            self.progress = BackfillProgress()
            return plan
        logger.info(
            "Backfilling %d categories for %s: %s",
            len(plan),
            date,
            ", ".join(step.category.value for step in plan),
        )
        await self.execute(plan, on_progress)
        return plan

    async def execute(self, plan: BackfillPlan, on_progress: ProgressCallback | None = None) -> BackfillProgress:
        progress = BackfillProgress(total=len(plan))
        self.progress = progress
        for step in plan:
            progress.current = step.category
            await self.run_step(step)
            progress.finished += 1
            if on_progress is not None:
                on_progress(replace(progress))
        return progress

    async def run_step(self, step: BackfillStep) -> BackfillStep:
        try:
            outcome = await self.ingestion.refresh(step.category, step.date)
        except Exception as exc:
            logger.warning("Backfill of %s for %s failed: %s", step.category.value, step.date, exc)
            step.status = STEP_FAILED
            step.error = str(exc) or type(exc).__name__
            return step

        if outcome is None:
            step.status = STEP_SKIPPED
            step.error = None
        elif not outcome.persisted:
            step.status = STEP_FAILED
            step.error = outcome.store_error
        else:
            step.status = STEP_DONE
            step.error = None
            step.item_count = len(outcome.stored_items)
        return step

    async def retry_step(self, step: BackfillStep) -> BackfillStep:
        if self.session_plan is None or step not in self.session_plan.steps:
            raise BackfillError(f"Step {step.category.value} for {step.date} is not part of this session")
        return await self.run_step(step)
