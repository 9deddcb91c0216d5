"""
Stores package for the footprint tracker.

Re-exports the store interface and the concrete engines, and provides the
engine registry used to build the configured store at process start.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from footprint_tracker.config import Settings, get_settings
from footprint_tracker.infrastructure.db_factory import build_dsn
from footprint_tracker.stores.abstract import ActivityStore, SqlActivityStore
from footprint_tracker.stores.postgres import PostgresActivityStore
from footprint_tracker.stores.sqlite import SqliteActivityStore


def _store_factories(settings: Settings) -> Dict[str, Callable[[], SqlActivityStore]]:
    """Registry of available storage engines."""
    return {
        "sqlite": lambda: SqliteActivityStore(path=settings.sqlite_path),
        "postgres": lambda: PostgresActivityStore(
            dsn_override=build_dsn(settings),
            pool_min_size=settings.db_pool_min_size,
            pool_max_size=settings.db_pool_max_size,
        ),
    }


def available_engines() -> List[str]:
    """List available engine names."""
    return sorted(_store_factories(get_settings()).keys())


def make_store(settings: Optional[Settings] = None) -> SqlActivityStore:
    """Build the store selected by `DB_ENGINE`."""
    settings = settings or get_settings()
    factories = _store_factories(settings)
    if settings.db_engine not in factories:
        raise ValueError(
            f"Unknown storage engine '{settings.db_engine}'. Available: {', '.join(factories)}"
        )
    return factories[settings.db_engine]()


__all__ = [
    # Interfaces
    "ActivityStore",
    "SqlActivityStore",
    # Engines
    "PostgresActivityStore",
    "SqliteActivityStore",
    # Registry
    "available_engines",
    "make_store",
]
