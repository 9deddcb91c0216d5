"""
Footprint Tracker - personal, offline carbon footprint log.

Records activities (trips, meals, energy bills), prices each one in kg CO2e
from a static emission factor table when it is logged, stores it locally and
aggregates the history for dashboards:

- Factor table: load-once lookup of (category, subtype) -> factor
- Activity stores: SQLite (default) or Postgres behind one interface
- Aggregator: period totals, daily series and category breakdowns
- Tracker service: validation and composition of the above
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from footprint_tracker.aggregator import (
    ChartWindow,
    Dashboard,
    FootprintSummary,
    Period,
    build_dashboard,
    filter_history,
)
from footprint_tracker.config import Settings, get_settings
from footprint_tracker.domain.models import Activity, EmissionFactor
from footprint_tracker.errors import (
    FootprintError,
    LoadError,
    NotLoadedError,
    StoreError,
    ValidationError,
)
from footprint_tracker.factor_table import FactorTable
from footprint_tracker.stores import (
    ActivityStore,
    PostgresActivityStore,
    SqliteActivityStore,
    available_engines,
    make_store,
)
from footprint_tracker.tracker import FootprintTracker, build_tracker
from footprint_tracker.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Activity",
    "EmissionFactor",
    "FactorTable",
    # Errors
    "FootprintError",
    "LoadError",
    "NotLoadedError",
    "StoreError",
    "ValidationError",
    # Stores
    "ActivityStore",
    "PostgresActivityStore",
    "SqliteActivityStore",
    "available_engines",
    "make_store",
    # Aggregation
    "ChartWindow",
    "Dashboard",
    "FootprintSummary",
    "Period",
    "build_dashboard",
    "filter_history",
    # Service
    "FootprintTracker",
    "build_tracker",
    # Logging
    "configure_logging",
    "get_logger",
]
