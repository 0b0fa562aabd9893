from __future__ import annotations

import json
import sqlite3
from dataclasses import replace
from pathlib import Path

from datanexus.core.errors import StoreWriteError
from datanexus.domain.models.market_item import Category, GroundingSource, MarketItem
from datanexus.domain.models.query import QueryParams
from datanexus.infrastructure.db.sqlite import get_connection


class MarketItemRepo:
    """Append-only market item rows. No update, no delete, no de-duplication."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, items: list[MarketItem]) -> list[MarketItem]:
        """Append ``items`` in one transaction and return copies carrying their new ids.

        Either every row commits or none does; callers retry the whole batch.
        """
        if not items:
            return []
        stored: list[MarketItem] = []
        conn: sqlite3.Connection | None = None
        try:
            conn = get_connection(self.db_path)
            with conn:
                for item in items:
                    cursor = conn.execute(
                        """
                        INSERT INTO market_items (
                            category,
                            date,
                            title,
                            region,
                            entity,
                            amount,
                            summary,
                            source_indices_json,
                            sources_json
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            item.category.value,
                            item.date,
                            item.title,
                            item.region,
                            item.entity,
                            item.amount,
                            item.summary,
                            json.dumps(list(item.source_indices)),
                            json.dumps(
                                [{"title": s.title, "uri": s.uri} for s in item.sources],
                                ensure_ascii=False,
                            ),
                        ),
                    )
                    stored.append(replace(item, id=cursor.lastrowid))
        except sqlite3.Error as exc:
            raise StoreWriteError(f"Failed to store {len(items)} market item(s): {exc}") from exc
        finally:
            if conn is not None:
                conn.close()
        return stored

    def query(self, params: QueryParams | None = None) -> list[MarketItem]:
        params = params or QueryParams()
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM market_items ORDER BY id").fetchall()
        matched = [item for item in (self._to_model(row) for row in rows) if params.matches(item)]
        # sorted() stays stable with reverse=True, so insertion order breaks date ties.
        return sorted(matched, key=lambda item: item.date, reverse=True)

    def categories_for_date(self, date: str) -> set[Category]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT DISTINCT category FROM market_items WHERE date = ?",
                (date,),
            ).fetchall()
        found: set[Category] = set()
        for row in rows:
            try:
                found.add(Category(row["category"]))
            except ValueError:
                continue
        return found

    def missing_categories_for_date(self, date: str) -> list[Category]:
        present = self.categories_for_date(date)
        return [category for category in Category if category not in present]

    def has_data_for(self, date: str, category: Category) -> bool:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM market_items WHERE date = ? AND category = ? LIMIT 1",
                (date, category.value),
            ).fetchone()
        return row is not None

    def count(self) -> int:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) FROM market_items").fetchone()
        return int(row[0])

    @staticmethod
    def _to_model(row) -> MarketItem:
        return MarketItem(
            id=row["id"],
            category=Category(row["category"]),
            date=row["date"],
            title=row["title"],
            region=row["region"],
            entity=row["entity"],
            amount=row["amount"],
            summary=row["summary"],
            source_indices=[int(i) for i in json.loads(row["source_indices_json"] or "[]")],
            sources=[
                GroundingSource(title=str(s.get("title", "")), uri=str(s.get("uri", "")))
                for s in json.loads(row["sources_json"] or "[]")
            ],
        )
