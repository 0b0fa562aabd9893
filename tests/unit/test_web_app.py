from pathlib import Path

from fastapi.testclient import TestClient

from datanexus.core.config import AppPaths
from datanexus.core.time import today_iso
from datanexus.domain.models.market_item import Category
from datanexus.infrastructure.db.repos.market_item_repo import MarketItemRepo
from datanexus.infrastructure.providers.base import ProviderResponse
from datanexus.web.app import create_app


class EchoProvider:
    async def fetch(self, category: Category, date: str) -> ProviderResponse:
        return ProviderResponse(text='{"items": [{"title": "%s"}]}' % category.value)


def _paths(tmp_path: Path) -> AppPaths:
    project_root = tmp_path / "proj"
    project_root.mkdir(parents=True, exist_ok=True)
    data_dir = project_root / ".datanexus"
    return AppPaths(
        project_root=project_root,
        data_dir=data_dir,
        db_path=data_dir / "datanexus.db",
        captures_dir=data_dir / "captures",
    )


def test_web_app_end_to_end_smoke(tmp_path: Path) -> None:
    client = TestClient(create_app(_paths(tmp_path), provider=EchoProvider()))

    r = client.post("/api/init")
    assert r.status_code == 200

    r = client.post(
        "/api/ingest",
        json={
            "category": "tender",
            "date": "2024-01-01",
            "raw_text": '{"items":[{"title":"A","summary":"See report [1].","source_indices":[1]}]}',
            "sources": [{"title": "Gov Portal", "uri": "https://x"}],
        },
    )
    assert r.status_code == 200
    payload = r.json()
    assert payload["persisted"] is True
    item = payload["items"][0]
    assert item["id"] == 1
    assert item["category"] == "tender"
    assert item["region"] == "nationwide"
    assert item["amount"] == "undisclosed"
    assert item["sources"] == [{"title": "Gov Portal", "uri": "https://x"}]
    marker = [s for s in item["summary_segments"] if s["index"] is not None]
    assert marker[0]["text"] == "[1]"
    assert marker[0]["source"]["uri"] == "https://x"

    r = client.get("/api/completeness/2024-01-01")
    assert r.status_code == 200
    assert r.json()["missing"] == ["trading", "bid-award", "demand"]

    r = client.post("/api/backfill", json={"date": "2024-01-01"})
    assert r.status_code == 200
    backfill = r.json()
    assert [step["category"] for step in backfill["steps"]] == ["trading", "bid-award", "demand"]
    assert backfill["progress"]["finished"] == 3
    assert client.get("/api/completeness/2024-01-01").json()["complete"] is True

    r = client.get("/api/items", params={"entity_keyword": "BID"})
    assert r.status_code == 200
    assert [i["title"] for i in r.json()["items"]] == ["bid-award"]

    r = client.get("/api/items")
    assert r.json()["count"] == 4

    r = client.get("/api/status")
    assert r.status_code == 200
    assert set(r.json()["categories"]) == {"trading", "tender", "bid-award", "demand"}


def test_web_app_validation_errors(tmp_path: Path) -> None:
    client = TestClient(create_app(_paths(tmp_path)))

    assert client.get("/api/items", params={"start_date": "01/02/2024"}).status_code == 400
    assert client.get("/api/completeness/yesterday").status_code == 400
    assert client.post("/api/refresh/weather").status_code == 404
    assert client.post("/api/refresh/tender", json={"date": "2024-01-01"}).status_code == 502


def test_startup_backfills_missing_categories_for_today(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    app = create_app(paths, provider=EchoProvider(), backfill_on_start=True)

    with TestClient(app) as client:
        assert client.get("/api/status").status_code == 200

    repo = MarketItemRepo(paths.db_path)
    assert repo.missing_categories_for_date(today_iso()) == []
    assert repo.count() == 4
    assert app.state.startup_backfill.result().date == today_iso()


def test_startup_backfill_needs_a_provider(tmp_path: Path) -> None:
    paths = _paths(tmp_path)
    app = create_app(paths, backfill_on_start=True)

    with TestClient(app):
        pass

    assert app.state.startup_backfill is None
    assert MarketItemRepo(paths.db_path).count() == 0
