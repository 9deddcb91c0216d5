"""
Infrastructure package for the footprint tracker.

Centralizes database connectivity concerns (SQLite connections, Postgres
connections and pools). Keep this layer focused on I/O and resource
management, decoupled from store queries and aggregation.
"""

from footprint_tracker.infrastructure.db_factory import (
    build_dsn,
    create_postgres_pool,
    get_postgres_connection,
    get_sqlite_connection,
)

__all__ = [
    "build_dsn",
    "create_postgres_pool",
    "get_postgres_connection",
    "get_sqlite_connection",
]
