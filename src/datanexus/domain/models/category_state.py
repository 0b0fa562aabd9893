from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from datanexus.domain.models.market_item import Category, SearchResult

T = TypeVar("T")


@dataclass(slots=True)
class FetchStatus:
    loading: bool = False
    error: str | None = None


class CategoryStates(Mapping[Category, T], Generic[T]):
    """Per-category slots holding exactly the members of ``Category``.

    Keys are fixed at construction; assigning an unknown key raises ``KeyError``.
    """

    def __init__(self, factory: Callable[[Category], T]) -> None:
        self._values: dict[Category, T] = {category: factory(category) for category in Category}

    def __getitem__(self, key: Category) -> T:
        return self._values[self._key(key)]

    def __setitem__(self, key: Category, value: T) -> None:
        self._values[self._key(key)] = value

    @staticmethod
    def _key(key: Category | str) -> Category:
        try:
            return Category.parse(key)
        except ValueError as exc:
            raise KeyError(key) from exc

    def __iter__(self) -> Iterator[Category]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


def empty_statuses() -> CategoryStates[FetchStatus]:
    return CategoryStates(lambda _category: FetchStatus())


def empty_results() -> CategoryStates[SearchResult | None]:
    return CategoryStates(lambda _category: None)
