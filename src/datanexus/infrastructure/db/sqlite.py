from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from datanexus.core.errors import SchemaVersionError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

CONNECT_TIMEOUT_ENV = "DATANEXUS_SQLITE_CONNECT_TIMEOUT_SECONDS"
BUSY_TIMEOUT_ENV = "DATANEXUS_SQLITE_BUSY_TIMEOUT_MS"
DEFAULT_CONNECT_TIMEOUT_SECONDS = 30.0
DEFAULT_BUSY_TIMEOUT_MS = 30_000

# market_items has no foreign keys, so foreign_keys stays at its default.
_STORE_PRAGMAS = (
    "PRAGMA journal_mode = WAL;",
    "PRAGMA synchronous = NORMAL;",
)

N = TypeVar("N", int, float)


def _positive_env(name: str, default: N, cast: Callable[[str], N]) -> N:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def get_connection(db_path: Path) -> sqlite3.Connection:
    """Open the item store with row access by column name and store PRAGMAs applied."""
    conn = sqlite3.connect(db_path, timeout=_positive_env(CONNECT_TIMEOUT_ENV, DEFAULT_CONNECT_TIMEOUT_SECONDS, float))
    conn.row_factory = sqlite3.Row
    for pragma in _STORE_PRAGMAS:
        conn.execute(pragma)
    conn.execute(f"PRAGMA busy_timeout = {_positive_env(BUSY_TIMEOUT_ENV, DEFAULT_BUSY_TIMEOUT_MS, int)};")
    return conn


def read_schema_version(conn: sqlite3.Connection) -> int:
    return int(conn.execute("PRAGMA user_version;").fetchone()[0])


def _has_tables(conn: sqlite3.Connection) -> bool:
    row = conn.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' LIMIT 1").fetchone()
    return row is not None


def initialize_schema(db_path: Path, schema_path: Path = SCHEMA_PATH) -> None:
    """Create the store, or verify an existing one carries ``SCHEMA_VERSION``.

    There is no migration path: a store written with another version must be
    reset, which discards every row.
    """
    with get_connection(db_path) as conn:
        version = read_schema_version(conn)
        if _has_tables(conn) and version != SCHEMA_VERSION:
            raise SchemaVersionError(
                f"Store {db_path} has schema version {version}, expected {SCHEMA_VERSION}. "
                "Run 'datanexus reset --yes' to recreate it (all stored items are discarded)."
            )
        conn.executescript(schema_path.read_text(encoding="utf-8"))
        conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
        conn.commit()
