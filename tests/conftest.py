"""
Pytest configuration for the footprint tracker.

Provides fixtures for:
- A small in-memory emission factor table
- SQLite stores under tmp_path (unit tests)
- Postgres connection management (integration tests)
- Settings overrides and cache isolation
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Generator, List

import psycopg
import pytest

from footprint_tracker.config import Settings, get_settings
from footprint_tracker.factor_table import FactorTable
from footprint_tracker.infrastructure.db_factory import get_postgres_connection
from footprint_tracker.stores.postgres import PostgresActivityStore
from footprint_tracker.stores.sqlite import SqliteActivityStore
from footprint_tracker.tracker import FootprintTracker

# Wednesday, mid-day: the week started two days earlier, the month on the 1st.
FIXED_NOW = datetime(2024, 5, 15, 12, 0, 0)

FACTOR_RECORDS: List[dict] = [
    {"type": "Transport", "subtype": "Car-Petrol", "factor": 0.192, "unit": "kg CO2e/km"},
    {"type": "Transport", "subtype": "Bus", "factor": 0.105, "unit": "kg CO2e/km"},
    {"type": "Transport", "subtype": "Train", "factor": 0.041, "unit": "kg CO2e/km"},
    {"type": "Food", "subtype": "Vegan Meal", "factor": 0.5, "unit": "kg CO2e/meal"},
    {"type": "Food", "subtype": "Beef Meal", "factor": 7.7, "unit": "kg CO2e/meal"},
    {"type": "Home Energy", "subtype": "Electricity", "factor": 0.233, "unit": "kg CO2e/kWh"},
]


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    """
    Drop the cached Settings around every test so env overrides do not leak.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def factor_records() -> List[dict]:
    return [dict(record) for record in FACTOR_RECORDS]


@pytest.fixture
def factor_table(factor_records: List[dict]) -> FactorTable:
    return FactorTable.from_records(factor_records)


@pytest.fixture
def factors_file(tmp_path: Path, factor_records: List[dict]) -> Path:
    path = tmp_path / "factors.json"
    path.write_text(json.dumps(factor_records), encoding="utf-8")
    return path


@pytest.fixture
def sqlite_path(tmp_path: Path) -> Path:
    return tmp_path / "footprint.db"


@pytest.fixture
def sqlite_store(sqlite_path: Path) -> Generator[SqliteActivityStore, None, None]:
    """
    Fresh SQLite store backed by a file under tmp_path.
    """
    store = SqliteActivityStore(path=sqlite_path)
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def tracker(
    factor_table: FactorTable, sqlite_store: SqliteActivityStore, fixed_now: datetime
) -> FootprintTracker:
    return FootprintTracker(
        factor_table=factor_table,
        store=sqlite_store,
        clock=lambda: fixed_now,
    )


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Postgres settings for integration tests.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_engine="postgres",
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "carbon_footprint"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
        "?connect_timeout=5"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if Postgres is reachable.

    Used to skip integration tests when the database is not available.
    """
    try:
        with get_postgres_connection(test_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture
def postgres_store(
    test_dsn: str, db_connection_available: bool
) -> Generator[PostgresActivityStore, None, None]:
    """
    Postgres store on an emptied `activities` table.

    Skips the test if the database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    store = PostgresActivityStore(dsn_override=test_dsn, pool_min_size=1, pool_max_size=2)
    store.delete_all()
    try:
        yield store
    finally:
        store.delete_all()
        store.close()
