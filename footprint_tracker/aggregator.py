"""
Aggregation helpers that turn store queries into dashboard-ready shapes.

Two kinds of windows are in play:

- Calendar periods ("this week", "this month") start at local midnight on
  the most recent Monday or on day 1 of the month and run to now.
- Rolling windows (the 7/30 day chart, the 30 day category breakdown, the
  "last 30 days" history filter) start exactly N days before now.

Store range queries are inclusive. History filtering keeps a strict
greater-than against the period start, so an activity logged exactly at
Monday 00:00 is not part of "this week" in the history view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from footprint_tracker.domain.models import Activity, normalize_timestamp
from footprint_tracker.stores.abstract import ActivityStore

DEFAULT_WEEKLY_TARGET_KG = 100.0
CATEGORY_WINDOW_DAYS = 30


class Period(str, Enum):
    ALL_TIME = "all"
    THIS_WEEK = "week"
    THIS_MONTH = "month"
    LAST_30_DAYS = "30d"


class ChartWindow(str, Enum):
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        return 7 if self is ChartWindow.WEEK else 30


@dataclass(frozen=True)
class FootprintSummary:
    total: float
    week: float
    month: float


@dataclass(frozen=True)
class Dashboard:
    """Everything the dashboard view renders, computed at `generated_at`."""

    generated_at: datetime
    summary: FootprintSummary
    window: ChartWindow
    daily: Dict[date, float] = field(default_factory=dict)
    by_category: Dict[str, float] = field(default_factory=dict)
    weekly_target: float = DEFAULT_WEEKLY_TARGET_KG
    weekly_progress: float = 0.0
    message: str = ""


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def week_start(now: datetime) -> datetime:
    """Most recent Monday at 00:00 (today if today is Monday)."""
    return _midnight(now - timedelta(days=now.weekday()))


def month_start(now: datetime) -> datetime:
    return _midnight(now.replace(day=1))


def period_start(period: Period, now: datetime) -> Optional[datetime]:
    """Start of a history period; None for all time."""
    if period is Period.THIS_WEEK:
        return week_start(now)
    if period is Period.THIS_MONTH:
        return month_start(now)
    if period is Period.LAST_30_DAYS:
        return now - timedelta(days=30)
    return None


def footprint_summary(store: ActivityStore, now: datetime) -> FootprintSummary:
    """Total, this-week and this-month footprints (inclusive range sums)."""
    return FootprintSummary(
        total=store.sum_footprint(),
        week=store.sum_footprint(week_start(now), now),
        month=store.sum_footprint(month_start(now), now),
    )


def daily_series(store: ActivityStore, window: ChartWindow, now: datetime) -> Dict[date, float]:
    """Sparse per-day totals over the rolling chart window ending at now."""
    return store.daily_footprint(now - timedelta(days=window.days), now)


def dense_series(series: Dict[date, float], first: date, last: date) -> List[Tuple[date, float]]:
    """
    Expand a sparse daily series into one `(day, total)` pair per day from
    `first` to `last`, using 0.0 for days with no entry.
    """
    days = (last - first).days
    return [
        (first + timedelta(days=offset), series.get(first + timedelta(days=offset), 0.0))
        for offset in range(days + 1)
    ]


def category_breakdown(
    store: ActivityStore, now: datetime, days: int = CATEGORY_WINDOW_DAYS
) -> Dict[str, float]:
    return store.sum_footprint_by_category(now - timedelta(days=days), now)


def filter_history(
    activities: Iterable[Activity],
    category: Optional[str] = None,
    period: Period = Period.ALL_TIME,
    now: Optional[datetime] = None,
) -> List[Activity]:
    """
    Apply the history view's category and period filters.

    Period filtering is strictly after the period start; input order is kept.
    """
    filtered = list(activities)
    if category:
        filtered = [activity for activity in filtered if activity.category == category]

    start = period_start(period, normalize_timestamp(now or datetime.now()))
    if start is not None:
        filtered = [activity for activity in filtered if activity.occurred_at > start]
    return filtered


def history_total(activities: Iterable[Activity]) -> float:
    return sum(activity.footprint_mass for activity in activities)


def weekly_progress(weekly: float, target: float = DEFAULT_WEEKLY_TARGET_KG) -> float:
    """Fraction of the weekly target used, clamped to 0.0..1.0 for the progress bar."""
    if target <= 0:
        raise ValueError("weekly target must be positive")
    return min(max(weekly / target, 0.0), 1.0)


def progress_message(weekly: float) -> str:
    if weekly == 0:
        return "Start tracking your carbon footprint today!"
    if weekly < 50:
        return "Excellent! You're living sustainably!"
    if weekly < 100:
        return "Good job! Keep up the green habits!"
    if weekly < 200:
        return "You're doing okay. Let's reduce more!"
    return "Time to make some eco-friendly changes!"


def build_dashboard(
    store: ActivityStore,
    window: ChartWindow = ChartWindow.WEEK,
    now: Optional[datetime] = None,
    weekly_target: float = DEFAULT_WEEKLY_TARGET_KG,
) -> Dashboard:
    now = normalize_timestamp(now or datetime.now())
    summary = footprint_summary(store, now)
    return Dashboard(
        generated_at=now,
        summary=summary,
        window=window,
        daily=daily_series(store, window, now),
        by_category=category_breakdown(store, now),
        weekly_target=weekly_target,
        weekly_progress=weekly_progress(summary.week, weekly_target),
        message=progress_message(summary.week),
    )


__all__ = [
    "CATEGORY_WINDOW_DAYS",
    "ChartWindow",
    "DEFAULT_WEEKLY_TARGET_KG",
    "Dashboard",
    "FootprintSummary",
    "Period",
    "build_dashboard",
    "category_breakdown",
    "daily_series",
    "dense_series",
    "filter_history",
    "footprint_summary",
    "history_total",
    "month_start",
    "period_start",
    "progress_message",
    "week_start",
    "weekly_progress",
]
