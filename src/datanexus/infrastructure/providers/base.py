from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from datanexus.domain.models.market_item import Category, GroundingSource


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    text: str
    sources: tuple[GroundingSource, ...] = field(default_factory=tuple)


class SearchProvider(Protocol):
    """Outbound generative-search call. Raises ``ProviderError`` on transport failure."""

    async def fetch(self, category: Category, date: str) -> ProviderResponse: ...
