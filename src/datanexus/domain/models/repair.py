from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class WellFormed:
    """The response parsed strictly; ``items`` is empty when the shape held no item list."""

    payload: Any
    items: list[Any]


@dataclass(frozen=True, slots=True)
class Fallback:
    """The response could not be parsed and was replaced by an empty item list."""

    reason: str
    items: list[Any] = field(default_factory=list)

    @property
    def payload(self) -> dict[str, list[Any]]:
        return {"items": []}


RepairOutcome = Union[WellFormed, Fallback]
