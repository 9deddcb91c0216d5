"""
Tracker service: logs activities and serves history and dashboard views.

The factor table and the store are constructed once at process start
(`build_tracker`) and injected here; nothing in the package holds them in
module-level state.

Usage:
    from footprint_tracker.tracker import build_tracker

    with build_tracker() as tracker:
        activity = tracker.log_activity("Transport", "Car-Petrol", 50)
        print(activity.footprint_mass)  # 9.6
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from footprint_tracker.aggregator import (
    DEFAULT_WEEKLY_TARGET_KG,
    ChartWindow,
    Dashboard,
    Period,
    build_dashboard,
    filter_history,
)
from footprint_tracker.config import Settings, get_settings
from footprint_tracker.domain.models import (
    Activity,
    from_epoch_ms,
    normalize_timestamp,
    to_epoch_ms,
)
from footprint_tracker.errors import LoadError, ValidationError
from footprint_tracker.factor_table import FactorTable
from footprint_tracker.stores import make_store
from footprint_tracker.stores.abstract import ActivityStore
from footprint_tracker.utils.logging import get_logger

log = get_logger(__name__)


class FootprintTracker:
    """
    Composes the factor table, an activity store and the aggregator.

    Parameters
    ----------
    factor_table : FactorTable
        Loaded (or degraded, empty) factor table.
    store : ActivityStore
        Where activities are persisted.
    weekly_target_kg : float
        Weekly kg CO2e target the dashboard progress is measured against.
    clock : callable
        Returns "now"; injectable for tests.
    """

    def __init__(
        self,
        factor_table: FactorTable,
        store: ActivityStore,
        weekly_target_kg: float = DEFAULT_WEEKLY_TARGET_KG,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.factor_table = factor_table
        self.store = store
        self.weekly_target_kg = weekly_target_kg
        self._clock = clock

    def __enter__(self) -> "FootprintTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.store.close()

    def now(self) -> datetime:
        return normalize_timestamp(self._clock())

    def preview_footprint(self, category: str, subtype: str, quantity: float) -> float:
        """Footprint the activity would be stored with, without saving it."""
        return self.factor_table.compute_footprint(category, subtype, quantity)

    def log_activity(
        self,
        category: Optional[str],
        subtype: Optional[str],
        quantity: float,
        occurred_at: Optional[datetime] = None,
    ) -> Activity:
        """
        Validate, price and persist a new activity.

        The footprint is computed from the factor table now and stored with
        the record; an unknown `(category, subtype)` is stored with 0.0.

        Raises
        ------
        ValidationError
            Missing category/subtype, non-positive quantity, a future date or a
            local time skipped by a daylight saving change.
        StoreError
            If the store cannot persist the record.
        """
        if not category or not subtype:
            raise ValidationError("Please select both activity type and subtype")
        if quantity is None or quantity <= 0:
            raise ValidationError("Please enter a valid positive value")

        now = self.now()
        when = normalize_timestamp(occurred_at) if occurred_at is not None else now
        if when > now:
            raise ValidationError(f"Activity date {when:%Y-%m-%d %H:%M} is in the future")
        if from_epoch_ms(to_epoch_ms(when)) != when:
            raise ValidationError(
                f"Activity date {when:%Y-%m-%d %H:%M} does not exist in local time "
                f"(skipped by a daylight saving change)"
            )

        footprint = self.factor_table.compute_footprint(category, subtype, quantity)
        try:
            activity = Activity(
                category=category,
                subtype=subtype,
                quantity=quantity,
                footprint_mass=footprint,
                occurred_at=when,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid activity: {exc}") from exc

        activity_id = self.store.create(activity)
        return activity.model_copy(update={"id": activity_id})

    def history(
        self, category: Optional[str] = None, period: Period = Period.ALL_TIME
    ) -> List[Activity]:
        """Activities for the history view, most recent first."""
        return filter_history(
            self.store.list_all(), category=category, period=period, now=self.now()
        )

    def dashboard(self, window: ChartWindow = ChartWindow.WEEK) -> Dashboard:
        return build_dashboard(
            self.store, window=window, now=self.now(), weekly_target=self.weekly_target_kg
        )

    def delete_activity(self, activity_id: int) -> bool:
        return self.store.delete(activity_id) == 1

    def clear_history(self) -> int:
        return self.store.delete_all()


def load_factor_table(source: Optional[Path] = None) -> FactorTable:
    """
    Load the factor table, falling back to an empty table on LoadError.

    The process keeps running in degraded mode: activities can still be
    listed and aggregated, new ones are stored with a zero footprint.
    """
    table = FactorTable(source)
    try:
        table.load()
    except LoadError as exc:
        log.error(
            "Emission factors unavailable; continuing with an empty factor table",
            extra={"source": str(table.source), "error": str(exc)},
        )
        table.load_records([])
    return table


def build_tracker(settings: Optional[Settings] = None) -> FootprintTracker:
    """Construct the process-wide factor table and store and wire them together."""
    settings = settings or get_settings()
    factor_table = load_factor_table(settings.resolved_factors_path)
    store = make_store(settings)
    log.debug(
        "Tracker ready",
        extra={"engine": store.name, "factors_loaded": len(factor_table.all_factors())},
    )
    return FootprintTracker(
        factor_table=factor_table,
        store=store,
        weekly_target_kg=settings.weekly_target_kg,
    )


__all__ = ["FootprintTracker", "build_tracker", "load_factor_table"]
