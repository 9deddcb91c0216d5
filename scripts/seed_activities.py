"""
Demo data seeding script for the footprint tracker.

Generates deterministic pseudo-random activities over a trailing window of
days, prices them with the emission factor table and inserts them through
the configured store.
"""

from __future__ import annotations

import random
import sys
import time
from datetime import datetime, timedelta
from typing import List, Optional

import typer

from footprint_tracker.config import get_settings
from footprint_tracker.domain.models import Activity
from footprint_tracker.factor_table import FactorTable
from footprint_tracker.stores import make_store
from footprint_tracker.stores.abstract import ActivityStore

app = typer.Typer(help="Seed the activity store with synthetic activities.")

# Plausible magnitude per input unit (km, kWh, meal, item, kg).
_QUANTITY_RANGES = {
    "km": (2.0, 120.0),
    "kWh": (1.0, 30.0),
    "meal": (1.0, 3.0),
    "item": (1.0, 2.0),
    "kg": (0.2, 5.0),
}


def _generate_activities(
    factor_table: FactorTable,
    rows: int,
    days: int,
    seed: int,
    now: Optional[datetime] = None,
) -> List[Activity]:
    """
    Build `rows` activities spread over the `days` days before `now`.

    Same seed and `now` give the same activities.
    """
    rng = random.Random(seed)
    now = now or datetime.now()
    factors = sorted(factor_table.all_factors(), key=lambda f: (f.category, f.subtype))
    if not factors:
        return []

    activities: List[Activity] = []
    for _ in range(rows):
        factor = rng.choice(factors)
        unit = factor.unit.rsplit("/", 1)[-1].strip()
        low, high = _QUANTITY_RANGES.get(unit, (1.0, 10.0))
        quantity = round(rng.uniform(low, high), 1)
        occurred_at = now - timedelta(seconds=rng.randint(0, days * 24 * 3600))
        activities.append(
            Activity(
                category=factor.category,
                subtype=factor.subtype,
                quantity=quantity,
                footprint_mass=factor_table.compute_footprint(
                    factor.category, factor.subtype, quantity
                ),
                occurred_at=occurred_at,
            )
        )
    return activities


def _insert_activities(store: ActivityStore, activities: List[Activity]) -> List[int]:
    return [store.create(activity) for activity in activities]


@app.command()
def main(
    rows: int = typer.Option(
        60,
        "--rows",
        "-r",
        help="Number of activities to generate.",
    ),
    days: int = typer.Option(
        30,
        "--days",
        help="Spread activities over this many trailing days.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    clear: bool = typer.Option(
        False,
        "--clear",
        help="Delete existing activities first.",
    ),
) -> None:
    """
    Generate synthetic activities and insert them into the configured store.
    """
    settings = get_settings()
    factor_table = FactorTable(settings.resolved_factors_path)
    factor_table.load()

    start = time.perf_counter()
    activities = _generate_activities(factor_table, rows=rows, days=days, seed=seed)
    with make_store(settings) as store:
        if clear:
            typer.echo(f"Cleared {store.delete_all()} existing activities.")
        ids = _insert_activities(store, activities)
    duration = time.perf_counter() - start

    total = sum(activity.footprint_mass for activity in activities)
    typer.echo(
        f"Inserted {len(ids)} activities ({total:.1f} kg CO₂e) into "
        f"{settings.db_engine} in {duration:.2f}s"
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
