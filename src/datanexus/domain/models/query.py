from __future__ import annotations

from dataclasses import dataclass

from datanexus.domain.models.market_item import Category, MarketItem


@dataclass(frozen=True, slots=True)
class QueryParams:
    start_date: str | None = None
    end_date: str | None = None
    region: str | None = None
    entity_keyword: str | None = None
    category: Category | None = None

    def matches(self, item: MarketItem) -> bool:
        # Dates are fixed-width YYYY-MM-DD, so string order is date order.
        if self.start_date and item.date < self.start_date:
            return False
        if self.end_date and item.date > self.end_date:
            return False
        if self.category and item.category != self.category:
            return False
        if self.region and self.region not in item.region:
            return False
        if self.entity_keyword:
            keyword = self.entity_keyword.lower()
            if keyword not in (item.entity or "").lower() and keyword not in (item.title or "").lower():
                return False
        return True
