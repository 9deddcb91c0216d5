from __future__ import annotations

from datetime import timedelta
from typing import Callable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from footprint_tracker.aggregator import Dashboard, dense_series, history_total
from footprint_tracker.domain.models import Activity, EmissionFactor

_BAR_WIDTH = 30


def input_unit(unit: Optional[str]) -> str:
    """
    The unit a quantity is entered in, taken from a factor unit.

    "kg CO2e/km" -> "km"; units without a slash are returned unchanged.
    """
    if not unit:
        return ""
    return unit.rsplit("/", 1)[-1].strip()


def print_factors(factors: Sequence[EmissionFactor], console: Optional[Console] = None) -> None:
    """Render the emission factor table grouped by category."""
    console = console or Console()
    if not factors:
        console.print("[yellow]No emission factors loaded.[/yellow]")
        return

    table = Table(title="Emission Factors", box=box.ROUNDED)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Subtype", style="magenta")
    table.add_column("Factor", justify="right", style="green")
    table.add_column("Unit", style="dim")

    for factor in sorted(factors, key=lambda f: (f.category, f.subtype)):
        table.add_row(factor.category, factor.subtype, f"{factor.factor:g}", factor.unit)
    console.print(table)


def print_history(
    activities: List[Activity],
    unit_for: Callable[[str, str], Optional[str]] = lambda category, subtype: None,
    console: Optional[Console] = None,
) -> None:
    """
    Render logged activities (already filtered and ordered) with a total.
    """
    console = console or Console()
    if not activities:
        console.print(
            "[yellow]No activities found.[/yellow] "
            "Try adjusting your filters or log some activities."
        )
        return

    table = Table(
        title="Activity History",
        box=box.ROUNDED,
        caption=(
            f"{len(activities)} activities │ "
            f"{history_total(activities):.1f} kg CO₂e total"
        ),
    )
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Subtype")
    table.add_column("Quantity", justify="right")
    table.add_column("kg CO₂e", justify="right", style="bold green")

    for activity in activities:
        unit = input_unit(unit_for(activity.category, activity.subtype))
        table.add_row(
            str(activity.id),
            f"{activity.occurred_at:%Y-%m-%d %H:%M}",
            activity.category,
            activity.subtype,
            f"{activity.quantity:g} {unit}".strip(),
            f"{activity.footprint_mass:.2f}",
        )
    console.print(table)


def print_dashboard(dashboard: Dashboard, console: Optional[Console] = None) -> None:
    """
    Render period totals, weekly target progress, the daily chart and the
    category breakdown.
    """
    console = console or Console()
    summary = dashboard.summary

    totals = Table(title="Carbon Footprint Summary", box=box.ROUNDED)
    totals.add_column("Period", style="cyan")
    totals.add_column("kg CO₂e", justify="right", style="bold green")
    totals.add_row("This Week", f"{summary.week:.1f}")
    totals.add_row("This Month", f"{summary.month:.1f}")
    totals.add_row("All Time", f"{summary.total:.1f}")
    console.print(totals)

    progress_style = "green" if summary.week <= dashboard.weekly_target else "red"
    console.print(
        f"Weekly progress: [{progress_style}]{summary.week:.1f} / "
        f"{dashboard.weekly_target:g} kg CO₂e ({dashboard.weekly_progress:.0%})[/{progress_style}]"
    )
    console.print(dashboard.message)

    last_day = dashboard.generated_at.date()
    first_day = last_day - timedelta(days=dashboard.window.days)
    points = dense_series(dashboard.daily, first_day, last_day)
    peak = max((total for _, total in points), default=0.0)

    chart = Table(
        title=f"Daily Footprint (last {dashboard.window.days} days + today)",
        box=box.SIMPLE,
    )
    chart.add_column("Day", style="cyan", no_wrap=True)
    chart.add_column("kg CO₂e", justify="right")
    chart.add_column("", style="green")
    for day, total in points:
        width = int(round(total / peak * _BAR_WIDTH)) if peak > 0 else 0
        chart.add_row(f"{day:%a %d %b}", f"{total:.1f}", "█" * width)
    console.print(chart)

    if not dashboard.by_category:
        console.print("[yellow]No activities in the last 30 days.[/yellow]")
        return

    breakdown = Table(title="By Category (last 30 days)", box=box.ROUNDED)
    breakdown.add_column("Category", style="magenta")
    breakdown.add_column("kg CO₂e", justify="right", style="bold green")
    breakdown.add_column("Share", justify="right")
    category_total = sum(dashboard.by_category.values())
    for category, total in sorted(
        dashboard.by_category.items(), key=lambda item: item[1], reverse=True
    ):
        share = total / category_total if category_total > 0 else 0.0
        breakdown.add_row(category, f"{total:.1f}", f"{share:.0%}")
    console.print(breakdown)


__all__ = ["input_unit", "print_dashboard", "print_factors", "print_history"]
