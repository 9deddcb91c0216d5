"""
Domain package for the footprint tracker.

Exports the emission factor and activity models shared by the factor table,
the stores and the aggregator. Keep this package focused on data definitions
and validation concerns.
"""

from footprint_tracker.domain.models import (
    Activity,
    EmissionFactor,
    from_epoch_ms,
    normalize_timestamp,
    to_epoch_ms,
)

__all__ = [
    "Activity",
    "EmissionFactor",
    "from_epoch_ms",
    "normalize_timestamp",
    "to_epoch_ms",
]
