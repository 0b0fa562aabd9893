from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from datanexus.application.services.normalization_service import normalize_response
from datanexus.core.errors import ProviderError, StoreWriteError
from datanexus.domain.models.category_state import (
    CategoryStates,
    FetchStatus,
    empty_results,
    empty_statuses,
)
from datanexus.domain.models.market_item import Category, GroundingSource, MarketItem, SearchResult
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.providers.base import ProviderResponse, SearchProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestOutcome:
    category: Category
    date: str
    result: SearchResult
    persisted: bool
    stored_items: list[MarketItem] = field(default_factory=list)
    store_error: str | None = None


class IngestionService:
    """Fetch, repair, normalize and append one category's items for one date.

    A category already in flight is not fetched again: ``refresh`` returns None
    for the second caller. In-flight fetches are never cancelled, so a result
    always lands under the date it was requested for.
    """

    def __init__(self, repo: MarketItemRepo, provider: SearchProvider | None = None) -> None:
        self.repo = repo
        self.provider = provider
        self.statuses: CategoryStates[FetchStatus] = empty_statuses()
        self.results: CategoryStates[SearchResult | None] = empty_results()

    def is_busy(self, category: Category) -> bool:
        return self.statuses[category].loading

    async def refresh(self, category: Category, date: str) -> IngestOutcome | None:
        if self.is_busy(category):
            logger.info("Fetch for %s already in flight; ignoring request for %s", category.value, date)
            return None

        self.statuses[category] = FetchStatus(loading=True)
        try:
            response = await self._fetch(category, date)
            outcome = await self.ingest_response(category, date, response.text, response.sources)
        except Exception as exc:
            self.statuses[category] = FetchStatus(loading=False, error=str(exc) or type(exc).__name__)
            raise
        self.results[category] = outcome.result
        self.statuses[category] = FetchStatus(loading=False, error=outcome.store_error)
        return outcome

    async def ingest_response(
        self,
        category: Category,
        date: str,
        raw_text: str | None,
        sources: Sequence[GroundingSource],
    ) -> IngestOutcome:
        result = normalize_response(raw_text, sources, category, date)
        if not result.items:
            logger.info("No %s items for %s", category.value, date)
            return IngestOutcome(category=category, date=date, result=result, persisted=True)

        try:
            stored = await asyncio.to_thread(self.repo.insert, list(result.items))
        except StoreWriteError as exc:
            logger.error("Could not persist %s items for %s: %s", category.value, date, exc)
            return IngestOutcome(
                category=category,
                date=date,
                result=result,
                persisted=False,
                store_error=str(exc),
            )

        logger.info("Stored %d %s item(s) for %s", len(stored), category.value, date)
        return IngestOutcome(
            category=category,
            date=date,
            result=result,
            persisted=True,
            stored_items=stored,
        )

    async def _fetch(self, category: Category, date: str) -> ProviderResponse:
        if self.provider is None:
            raise ProviderError("No search provider is configured")
        try:
            return await self.provider.fetch(category, date)
        except ProviderError:
            raise
        except Exception as exc:
            logger.exception("Search provider failed for %s on %s", category.value, date)
            message = str(exc) or "Failed to fetch data, please retry later."
            raise ProviderError(message) from exc
