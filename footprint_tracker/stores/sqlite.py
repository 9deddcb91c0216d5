"""
SQLite activity store: the default single-user engine.

Keeps one connection to a local database file for the lifetime of the store
and creates the `activities` table on first use.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional, Sequence

from footprint_tracker.config import get_settings
from footprint_tracker.infrastructure.db_factory import get_sqlite_connection
from footprint_tracker.stores.abstract import TABLE_NAME, SqlActivityStore

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    subtype TEXT NOT NULL,
    value REAL NOT NULL,
    carbonFootprint REAL NOT NULL,
    date INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_date ON {TABLE_NAME} (date);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_type ON {TABLE_NAME} (type);
"""


class SqliteActivityStore(SqlActivityStore):
    """
    Activities in a local SQLite file.

    AUTOINCREMENT keeps ids strictly increasing even after the newest row is
    deleted.
    """

    name: str = "sqlite"
    description: str = "Local SQLite file (single user, offline)."
    placeholder: str = "?"
    engine_errors = (sqlite3.Error,)

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = path if path is not None else get_settings().sqlite_path
        self._conn: Optional[sqlite3.Connection] = None

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            conn = get_sqlite_connection(self.path)
            try:
                conn.executescript(_SCHEMA)
            except sqlite3.Error:
                conn.close()
                raise
            self._conn = conn
        return self._conn

    @contextmanager
    def _transaction(self) -> Generator[sqlite3.Connection, None, None]:
        conn = self._get_connection()
        # The connection context manager commits on success and rolls back on error.
        with conn:
            yield conn

    def _insert_returning_id(self, cursor: Any, sql: str, params: Sequence[Any]) -> int:
        cursor.execute(sql, tuple(params))
        return int(cursor.lastrowid)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


__all__ = ["SqliteActivityStore"]
