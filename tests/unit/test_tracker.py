from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest

from footprint_tracker.aggregator import ChartWindow, Period
from footprint_tracker.config import Settings
from footprint_tracker.errors import ValidationError
from footprint_tracker.tracker import FootprintTracker, build_tracker, load_factor_table


def test_log_activity_computes_and_stores_footprint(tracker: FootprintTracker) -> None:
    activity = tracker.log_activity("Transport", "Car-Petrol", 50)

    assert activity.id is not None
    assert activity.footprint_mass == pytest.approx(9.6)
    stored = tracker.store.get_by_id(activity.id)
    assert stored.footprint_mass == pytest.approx(9.6)
    assert stored.occurred_at == tracker.now()


def test_log_activity_with_unknown_factor_stores_zero(tracker: FootprintTracker) -> None:
    activity = tracker.log_activity("Transport", "Rocket", 10)

    assert activity.footprint_mass == 0.0
    assert tracker.store.get_by_id(activity.id) is not None


def test_log_activity_keeps_write_time_footprint(tracker: FootprintTracker) -> None:
    activity = tracker.log_activity("Food", "Beef Meal", 2)
    # Later factor changes never rewrite stored records.
    tracker.factor_table.clear()
    tracker.factor_table.load_records(
        [{"type": "Food", "subtype": "Beef Meal", "factor": 100.0, "unit": "kg CO2e/meal"}]
    )

    assert tracker.store.get_by_id(activity.id).footprint_mass == pytest.approx(15.4)


@pytest.mark.parametrize(
    "category, subtype",
    [("", "Bus"), ("Transport", ""), (None, "Bus"), ("Transport", None)],
)
def test_log_activity_requires_category_and_subtype(
    tracker: FootprintTracker, category, subtype
) -> None:
    with pytest.raises(ValidationError, match="both activity type and subtype"):
        tracker.log_activity(category, subtype, 1)
    assert tracker.store.list_all() == []


@pytest.mark.parametrize("quantity", [0, -3.5])
def test_log_activity_requires_positive_quantity(tracker: FootprintTracker, quantity: float) -> None:
    with pytest.raises(ValidationError, match="valid positive value"):
        tracker.log_activity("Transport", "Bus", quantity)


def test_log_activity_rejects_future_dates(tracker: FootprintTracker, fixed_now: datetime) -> None:
    with pytest.raises(ValidationError, match="in the future"):
        tracker.log_activity("Transport", "Bus", 5, occurred_at=fixed_now + timedelta(hours=1))


def test_log_activity_accepts_past_dates(tracker: FootprintTracker, fixed_now: datetime) -> None:
    when = fixed_now - timedelta(days=3)
    activity = tracker.log_activity("Transport", "Train", 100, occurred_at=when)

    assert activity.occurred_at == when
    assert activity.footprint_mass == pytest.approx(4.1)


def test_preview_does_not_persist(tracker: FootprintTracker) -> None:
    assert tracker.preview_footprint("Home Energy", "Electricity", 10) == pytest.approx(2.33)
    assert tracker.store.list_all() == []


def test_history_filters(tracker: FootprintTracker, fixed_now: datetime) -> None:
    tracker.log_activity("Transport", "Bus", 10, occurred_at=fixed_now - timedelta(days=1))
    tracker.log_activity("Food", "Vegan Meal", 1, occurred_at=fixed_now - timedelta(days=10))
    tracker.log_activity("Transport", "Bus", 10, occurred_at=fixed_now - timedelta(days=40))

    assert len(tracker.history()) == 3
    assert [a.category for a in tracker.history(period=Period.THIS_WEEK)] == ["Transport"]
    assert len(tracker.history(period=Period.THIS_MONTH)) == 2
    assert len(tracker.history(category="Transport")) == 2
    assert len(tracker.history(category="Transport", period=Period.LAST_30_DAYS)) == 1


def test_dashboard(tracker: FootprintTracker, fixed_now: datetime) -> None:
    tracker.log_activity("Food", "Beef Meal", 2, occurred_at=fixed_now - timedelta(hours=2))

    dashboard = tracker.dashboard(ChartWindow.WEEK)

    assert dashboard.summary.week == pytest.approx(15.4)
    assert dashboard.by_category == {"Food": pytest.approx(15.4)}
    assert dashboard.message == "Excellent! You're living sustainably!"


def test_delete_and_clear(tracker: FootprintTracker) -> None:
    first = tracker.log_activity("Transport", "Bus", 1)
    tracker.log_activity("Transport", "Bus", 2)

    assert tracker.delete_activity(first.id) is True
    assert tracker.delete_activity(first.id) is False
    assert tracker.clear_history() == 1
    assert tracker.history() == []


def test_load_factor_table_degrades_on_missing_source(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.ERROR, logger="footprint_tracker.tracker"):
        table = load_factor_table(tmp_path / "missing.json")

    assert table.is_loaded
    assert table.all_factors() == []
    assert table.compute_footprint("Transport", "Car-Petrol", 50) == 0.0
    assert "empty factor table" in caplog.text


def test_build_tracker_wires_settings(sqlite_path: Path, factors_file: Path) -> None:
    settings = Settings(
        db_engine="sqlite",
        sqlite_path=str(sqlite_path),
        factors_path=str(factors_file),
        weekly_target_kg=50.0,
    )

    with build_tracker(settings) as tracker:
        assert tracker.store.name == "sqlite"
        assert tracker.weekly_target_kg == 50.0
        assert tracker.factor_table.list_categories() == ["Food", "Home Energy", "Transport"]
        activity = tracker.log_activity("Transport", "Car-Petrol", 50)

    assert sqlite_path.exists()
    assert activity.footprint_mass == pytest.approx(9.6)


@pytest.fixture
def new_york_time(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    if "EST" not in time.tzname:
        monkeypatch.undo()
        time.tzset()
        pytest.skip("America/New_York zone data is not installed")
    yield
    monkeypatch.undo()
    time.tzset()


def test_log_activity_rejects_time_skipped_by_dst(
    tracker: FootprintTracker, new_york_time: None
) -> None:
    # 2024-03-10 02:00-03:00 does not exist in New York.
    with pytest.raises(ValidationError, match="does not exist in local time"):
        tracker.log_activity("Transport", "Bus", 5, occurred_at=datetime(2024, 3, 10, 2, 30))
    assert tracker.store.list_all() == []


def test_log_activity_round_trips_around_dst(
    tracker: FootprintTracker, new_york_time: None
) -> None:
    for when in (datetime(2024, 3, 10, 1, 59), datetime(2024, 3, 10, 3, 0)):
        activity = tracker.log_activity("Transport", "Bus", 5, occurred_at=when)
        assert tracker.store.get_by_id(activity.id).occurred_at == when
