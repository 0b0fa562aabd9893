from pathlib import Path

import pytest

from datanexus.core.errors import StoreWriteError
from datanexus.domain.models.market_item import Category, GroundingSource, MarketItem
from datanexus.domain.models.query import QueryParams
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.db.sqlite import initialize_schema


def _repo(tmp_path: Path) -> MarketItemRepo:
    db_path = tmp_path / "datanexus.db"
    initialize_schema(db_path)
    return MarketItemRepo(db_path)


def _item(
    date: str,
    category: Category = Category.TENDER,
    title: str = "Data platform build-out",
    region: str = "Beijing",
    entity: str = "Municipal Data Bureau",
) -> MarketItem:
    return MarketItem(
        category=category,
        date=date,
        title=title,
        region=region,
        entity=entity,
        amount="undisclosed",
        summary="Tender published [1].",
        source_indices=[1, 4],
        sources=[GroundingSource(title="Gov Portal", uri="https://x")],
    )


def test_insert_assigns_ids_and_round_trips(tmp_path: Path) -> None:
    repo = _repo(tmp_path)

    stored = repo.insert([_item("2024-01-01"), _item("2024-01-02")])

    assert [s.id for s in stored] == [1, 2]
    rows = repo.query()
    assert {row.id for row in rows} == {1, 2}
    first = next(row for row in rows if row.id == 1)
    assert first.category is Category.TENDER
    assert first.source_indices == [1, 4]
    assert first.sources == [GroundingSource(title="Gov Portal", uri="https://x")]


def test_insert_empty_batch_is_noop(tmp_path: Path) -> None:
    repo = _repo(tmp_path)

    assert repo.insert([]) == []
    assert repo.count() == 0


def test_identical_inserts_duplicate_rows(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    batch = [_item("2024-01-01"), _item("2024-01-01", category=Category.DEMAND)]

    repo.insert(batch)
    repo.insert(batch)

    assert repo.count() == 4


def test_failed_batch_leaves_nothing_behind(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    broken = _item("2024-01-01")
    broken.title = None  # violates NOT NULL

    with pytest.raises(StoreWriteError):
        repo.insert([_item("2024-01-01"), broken])

    assert repo.count() == 0


def test_query_without_filters_sorts_newest_first_with_stable_ties(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    repo.insert(
        [
            _item("2024-01-02", title="first"),
            _item("2024-01-03", title="second"),
            _item("2024-01-02", title="third"),
            _item("2023-12-31", title="fourth"),
        ]
    )

    rows = repo.query(QueryParams())

    assert [r.date for r in rows] == ["2024-01-03", "2024-01-02", "2024-01-02", "2023-12-31"]
    assert [r.title for r in rows] == ["second", "first", "third", "fourth"]


def test_query_filters_are_conjunctive(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    repo.insert(
        [
            _item("2024-01-01", region="Guangdong Shenzhen", entity="Shenzhen Data Exchange"),
            _item("2024-01-05", region="Guangdong Guangzhou", entity="Canton Data Exchange"),
            _item("2024-01-05", category=Category.TRADING, region="Guangdong Guangzhou", entity="Other"),
            _item("2024-02-01", region="Shanghai", title="Exchange listing", entity="SDE"),
        ]
    )

    by_range = repo.query(QueryParams(start_date="2024-01-02", end_date="2024-01-31"))
    assert {r.date for r in by_range} == {"2024-01-05"}
    assert len(by_range) == 2

    by_region = repo.query(QueryParams(region="Guangdong"))
    assert len(by_region) == 3

    by_entity = repo.query(QueryParams(entity_keyword="data EXCHANGE"))
    assert {r.entity for r in by_entity} == {"Shenzhen Data Exchange", "Canton Data Exchange"}

    by_title = repo.query(QueryParams(entity_keyword="listing"))
    assert [r.entity for r in by_title] == ["SDE"]

    combined = repo.query(
        QueryParams(region="Guangzhou", category=Category.TENDER, start_date="2024-01-05", end_date="2024-01-05")
    )
    assert [r.entity for r in combined] == ["Canton Data Exchange"]


def test_region_match_is_case_sensitive_substring(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    repo.insert([_item("2024-01-01", region="Beijing")])

    assert len(repo.query(QueryParams(region="jing"))) == 1
    assert repo.query(QueryParams(region="BEIJING")) == []


def test_missing_categories_for_date(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    assert repo.missing_categories_for_date("2024-01-01") == list(Category)

    repo.insert([_item("2024-01-01", category=Category.TRADING)])
    assert repo.missing_categories_for_date("2024-01-01") == [
        Category.TENDER,
        Category.BID_AWARD,
        Category.DEMAND,
    ]
    assert repo.has_data_for("2024-01-01", Category.TRADING)
    assert not repo.has_data_for("2024-01-01", Category.TENDER)

    repo.insert([_item("2024-01-01", category=c) for c in (Category.DEMAND, Category.TENDER, Category.BID_AWARD)])
    assert repo.missing_categories_for_date("2024-01-01") == []
    assert repo.missing_categories_for_date("2024-01-02") == list(Category)
