from __future__ import annotations

import io
from datetime import date, datetime

from rich.console import Console

from footprint_tracker.aggregator import ChartWindow, Dashboard, FootprintSummary
from footprint_tracker.reporter import input_unit, print_dashboard


def _render(dashboard: Dashboard) -> str:
    buffer = io.StringIO()
    print_dashboard(dashboard, console=Console(file=buffer, width=120, color_system=None))
    return buffer.getvalue()


def _dashboard(week: float, progress: float) -> Dashboard:
    return Dashboard(
        generated_at=datetime(2024, 5, 15, 12, 0),
        summary=FootprintSummary(total=week, week=week, month=week),
        window=ChartWindow.WEEK,
        daily={date(2024, 5, 14): week},
        by_category={"Transport": week},
        weekly_target=100.0,
        weekly_progress=progress,
        message="",
    )


def test_week_chart_covers_seven_days_plus_today() -> None:
    output = _render(_dashboard(week=20.0, progress=0.2))

    assert "Daily Footprint (last 7 days + today)" in output
    # 2024-05-08 (now - 7 days) through 2024-05-15 (today): eight rows.
    assert "Wed 08 May" in output
    assert "Wed 15 May" in output
    assert "Tue 07 May" not in output


def test_over_target_week_shows_clamped_progress() -> None:
    output = _render(_dashboard(week=150.0, progress=1.0))

    assert "150.0 / 100 kg CO₂e (100%)" in output


def test_input_unit() -> None:
    assert input_unit("kg CO2e/km") == "km"
    assert input_unit("kg") == "kg"
    assert input_unit(None) == ""
