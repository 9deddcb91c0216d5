"""
Domain models for the footprint tracker.

Defines the emission factor record read from the static factor source and the
activity record persisted in the `activities` table, together with the
conversions between local datetimes and the epoch-millisecond `date` column.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


def normalize_timestamp(value: datetime) -> datetime:
    """
    Bring a timestamp into the stored form: naive local time, millisecond precision.
    """
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def to_epoch_ms(value: datetime) -> int:
    """Naive datetimes are read as local time."""
    return int(round(value.timestamp() * 1000))


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000)


class EmissionFactor(BaseModel):
    """
    One entry of the static factor source: `{type, subtype, factor, unit}`.
    """

    category: str = Field(..., alias="type", description="Activity category, e.g. 'Transport'.")
    subtype: str = Field(..., description="Subtype within the category, e.g. 'Car-Petrol'.")
    factor: float = Field(..., gt=0, strict=True, description="kg CO2e per unit of input.")
    unit: str = Field(..., description="Unit the factor applies to, e.g. 'kg CO2e/km'.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }


class Activity(BaseModel):
    """
    Representation of a single row in the `activities` table.

    `footprint_mass` is computed from the factor table when the activity is
    logged and stored as-is; later factor changes never touch it.
    """

    id: Optional[int] = Field(None, description="Primary key, assigned by the store.")
    category: str = Field(..., min_length=1, description="Activity category (`type` column).")
    subtype: str = Field(..., min_length=1, description="Activity subtype.")
    quantity: float = Field(..., gt=0, description="User-supplied magnitude (`value` column).")
    footprint_mass: float = Field(
        ..., ge=0, description="kg CO2e at creation time (`carbonFootprint` column)."
    )
    occurred_at: datetime = Field(..., description="When the activity happened (`date` column).")

    model_config = {
        "validate_assignment": True,
    }

    @field_validator("occurred_at")
    @classmethod
    def _normalize_occurred_at(cls, value: datetime) -> datetime:
        return normalize_timestamp(value)

    def to_row(self) -> Dict[str, Any]:
        """Column mapping used by the stores."""
        return {
            "id": self.id,
            "type": self.category,
            "subtype": self.subtype,
            "value": self.quantity,
            "carbonFootprint": self.footprint_mass,
            "date": to_epoch_ms(self.occurred_at),
        }

    @classmethod
    def from_row(cls, row: tuple) -> "Activity":
        """Build from a `(id, type, subtype, value, carbonFootprint, date)` row."""
        activity_id, category, subtype, quantity, footprint, date_ms = row
        return cls(
            id=int(activity_id),
            category=category,
            subtype=subtype,
            quantity=float(quantity),
            footprint_mass=float(footprint),
            occurred_at=from_epoch_ms(int(date_ms)),
        )


__all__ = [
    "Activity",
    "EmissionFactor",
    "from_epoch_ms",
    "normalize_timestamp",
    "to_epoch_ms",
]
