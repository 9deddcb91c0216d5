from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Optional, Sequence

import psycopg
from psycopg_pool import ConnectionPool

from footprint_tracker.config import get_settings
from footprint_tracker.infrastructure.db_factory import build_dsn, create_postgres_pool
from footprint_tracker.stores.abstract import TABLE_NAME, SqlActivityStore

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id BIGSERIAL PRIMARY KEY,
    type TEXT NOT NULL,
    subtype TEXT NOT NULL,
    value DOUBLE PRECISION NOT NULL,
    carbonFootprint DOUBLE PRECISION NOT NULL,
    date BIGINT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_date ON {TABLE_NAME} (date);
CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_type ON {TABLE_NAME} (type);
"""


class PostgresActivityStore(SqlActivityStore):
    """
    Activities in a Postgres table, accessed through a psycopg ConnectionPool.

    The pool is opened lazily on the first operation and released by close().
    """

    name: str = "postgres"
    description: str = "PostgreSQL via psycopg connection pool."
    placeholder: str = "%s"
    engine_errors = (psycopg.Error,)

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._dsn_override = dsn_override
        self.pool_min_size = pool_min_size or settings.db_pool_min_size
        self.pool_max_size = pool_max_size or settings.db_pool_max_size
        self._pool_instance: Optional[ConnectionPool] = None

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is not None:
            return self._pool_instance
        pool = create_postgres_pool(
            self._dsn_override or build_dsn(),
            min_size=self.pool_min_size,
            max_size=self.pool_max_size,
        )
        try:
            with pool.connection() as conn:
                conn.execute(_SCHEMA)
        except psycopg.Error:
            pool.close()
            raise
        self._pool_instance = pool
        return pool

    @contextmanager
    def _transaction(self) -> Generator[psycopg.Connection, None, None]:
        # pool.connection() commits on clean exit and rolls back on error.
        with self._get_pool().connection() as conn:
            yield conn

    def _insert_returning_id(self, cursor: Any, sql: str, params: Sequence[Any]) -> int:
        cursor.execute(f"{sql} RETURNING id", tuple(params))
        (activity_id,) = cursor.fetchone()
        return int(activity_id)

    def close(self) -> None:
        if self._pool_instance is not None:
            self._pool_instance.close()
            self._pool_instance = None


__all__ = ["PostgresActivityStore"]
