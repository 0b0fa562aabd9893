from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    TRADING = "trading"
    TENDER = "tender"
    BID_AWARD = "bid-award"
    DEMAND = "demand"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value: str | Category) -> Category:
        """Accept a value ("bid-award"), a member name ("BID_AWARD") or a label."""
        if isinstance(value, Category):
            return value
        text = str(value or "").strip()
        for member in cls:
            if text in (member.value, member.name, member.label) or text.lower() == member.value:
                return member
        raise ValueError(f"Unknown category: {value!r}")


_CATEGORY_LABELS = {
    Category.TRADING: "数据交易",
    Category.TENDER: "招标信息",
    Category.BID_AWARD: "中标信息",
    Category.DEMAND: "市场需求",
}


@dataclass(frozen=True, slots=True)
class GroundingSource:
    title: str
    uri: str


@dataclass(slots=True)
class MarketItem:
    category: Category
    date: str
    title: str
    region: str
    entity: str
    amount: str
    summary: str
    source_indices: list[int] = field(default_factory=list)
    sources: list[GroundingSource] = field(default_factory=list)
    id: int | None = None


@dataclass(frozen=True, slots=True)
class SearchResult:
    items: tuple[MarketItem, ...]
    sources: tuple[GroundingSource, ...]
    timestamp: str
