from __future__ import annotations

import asyncio

from datanexus.core.errors import ConfigurationError
from datanexus.core.time import is_iso_date
from datanexus.domain.models.market_item import Category, MarketItem
from datanexus.domain.models.query import QueryParams
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo


def build_query_params(
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    region: str | None = None,
    entity_keyword: str | None = None,
    category: str | Category | None = None,
) -> QueryParams:
    for label, value in (("start date", start_date), ("end date", end_date)):
        if value and not is_iso_date(value):
            raise ConfigurationError(f"Invalid {label} {value!r}; expected YYYY-MM-DD")
    parsed_category: Category | None = None
    if category:
        try:
            parsed_category = Category.parse(category)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
    return QueryParams(
        start_date=start_date or None,
        end_date=end_date or None,
        region=region or None,
        entity_keyword=entity_keyword or None,
        category=parsed_category,
    )


class QueryService:
    def __init__(self, repo: MarketItemRepo) -> None:
        self.repo = repo

    async def query(self, params: QueryParams | None = None) -> list[MarketItem]:
        return await asyncio.to_thread(self.repo.query, params or QueryParams())

    async def missing_categories(self, date: str) -> list[Category]:
        return await asyncio.to_thread(self.repo.missing_categories_for_date, date)
