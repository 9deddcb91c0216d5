from __future__ import annotations

import sys
from datetime import datetime
from typing import NoReturn, Optional

import typer

from footprint_tracker.aggregator import ChartWindow, Period
from footprint_tracker.config import get_settings
from footprint_tracker.errors import FootprintError
from footprint_tracker.reporter import print_dashboard, print_factors, print_history
from footprint_tracker.stores import available_engines
from footprint_tracker.tracker import FootprintTracker, build_tracker
from footprint_tracker.utils.logging import configure_logging

app = typer.Typer(help="Personal carbon footprint tracker.")


def _open_tracker() -> FootprintTracker:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    return build_tracker(settings)


def _fail(exc: FootprintError) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.db_engine == "sqlite":
        location = settings.sqlite_path
    else:
        location = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    typer.echo(
        f"engine={settings.db_engine} ({location}) | "
        f"engines={','.join(available_engines())} | "
        f"factors={settings.resolved_factors_path} | "
        f"weekly_target={settings.weekly_target_kg:g} kg"
    )


@app.command()
def factors(
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Only list subtypes of this category."
    ),
) -> None:
    """
    List emission factor categories and subtypes.
    """
    with _open_tracker() as tracker:
        table = tracker.factor_table
        if category is None:
            print_factors(table.all_factors())
            return
        subtypes = table.list_subtypes(category)
        if not subtypes:
            typer.echo(
                f"Unknown category '{category}'. Available: {', '.join(table.list_categories())}"
            )
            return
        for subtype in subtypes:
            typer.echo(f"{subtype} ({table.unit_for(category, subtype)})")


@app.command()
def log(
    category: str = typer.Argument(..., help="Activity category, e.g. Transport."),
    subtype: str = typer.Argument(..., help="Activity subtype, e.g. Car-Petrol."),
    quantity: float = typer.Argument(..., help="Distance, energy, count or mass."),
    when: Optional[datetime] = typer.Option(
        None,
        "--date",
        "-d",
        formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"],
        help="When it happened (default: now). Future dates are rejected.",
    ),
) -> None:
    """
    Log an activity; its footprint is computed now and stored with it.
    """
    with _open_tracker() as tracker:
        try:
            activity = tracker.log_activity(category, subtype, quantity, occurred_at=when)
        except FootprintError as exc:
            _fail(exc)
        if tracker.factor_table.resolve(category, subtype) is None:
            typer.echo(
                f"Warning: no emission factor for {category}/{subtype}; stored with 0 kg CO₂e.",
                err=True,
            )
        typer.echo(
            f"Activity {activity.id} saved: {activity.footprint_mass:.2f} kg CO₂e "
            f"on {activity.occurred_at:%Y-%m-%d}"
        )


@app.command()
def history(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category filter."),
    period: Period = typer.Option(Period.ALL_TIME, "--period", "-p", help="Period filter."),
) -> None:
    """
    List logged activities, most recent first.
    """
    with _open_tracker() as tracker:
        try:
            activities = tracker.history(category=category, period=period)
        except FootprintError as exc:
            _fail(exc)
        print_history(activities, unit_for=tracker.factor_table.unit_for)


@app.command()
def dashboard(
    window: ChartWindow = typer.Option(
        ChartWindow.WEEK, "--window", "-w", help="Daily chart window."
    ),
) -> None:
    """
    Show period totals, the daily chart and the category breakdown.
    """
    with _open_tracker() as tracker:
        try:
            data = tracker.dashboard(window=window)
        except FootprintError as exc:
            _fail(exc)
        print_dashboard(data)


@app.command()
def delete(activity_id: int = typer.Argument(..., help="Id shown by `history`.")) -> None:
    """
    Delete one activity.
    """
    with _open_tracker() as tracker:
        try:
            deleted = tracker.delete_activity(activity_id)
        except FootprintError as exc:
            _fail(exc)
        if not deleted:
            typer.echo(f"No activity with id {activity_id}.", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Activity {activity_id} deleted.")


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete every logged activity.
    """
    if not yes:
        typer.confirm("Delete all activities? This cannot be undone.", abort=True)
    with _open_tracker() as tracker:
        try:
            deleted = tracker.clear_history()
        except FootprintError as exc:
            _fail(exc)
        typer.echo(f"Deleted {deleted} activities.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
