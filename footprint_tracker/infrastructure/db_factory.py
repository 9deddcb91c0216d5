"""
Database connection factory utilities for the footprint tracker.

Opens connections for the two supported engines: a local SQLite file (the
default, single-user store) and PostgreSQL through a psycopg connection pool.
Connection attempts are retried with exponential backoff using tenacity so a
briefly locked SQLite file or a Postgres server that is still starting does
not fail the first operation.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from footprint_tracker.config import Settings, get_settings


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a Postgres DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type(sqlite3.OperationalError),
    reraise=True,
)
def get_sqlite_connection(path: str | Path) -> sqlite3.Connection:
    """
    Open a SQLite database file, creating parent directories as needed.

    Raises
    ------
    sqlite3.OperationalError
        If the file cannot be opened after all retry attempts.
    """
    if str(path) == ":memory:":
        return sqlite3.connect(":memory:")
    db_path = Path(path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(db_path))


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_postgres_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated Postgres connection with automatic retry.

    Use for one-off operations (schema checks, test fixtures). The store
    itself goes through `create_postgres_pool`.
    """
    return psycopg.connect(dsn or build_dsn())


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def create_postgres_pool(
    dsn: Optional[str] = None, min_size: int = 1, max_size: int = 4
) -> ConnectionPool:
    """
    Open a psycopg connection pool and wait until its first connection is ready.

    Parameters
    ----------
    dsn : str | None
        Connection string; defaults to one built from settings.
    min_size : int
        Minimum number of idle connections to keep.
    max_size : int
        Maximum total connections in the pool.
    """
    pool = ConnectionPool(
        conninfo=dsn or build_dsn(), min_size=min_size, max_size=max_size, open=True
    )
    try:
        pool.wait(timeout=10.0)
    except Exception:
        pool.close()
        raise
    return pool


__all__ = [
    "build_dsn",
    "create_postgres_pool",
    "get_postgres_connection",
    "get_sqlite_connection",
]
