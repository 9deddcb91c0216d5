"""
Error hierarchy for the footprint tracker.

Every error the package raises itself derives from FootprintError so
the CLI can surface it as a one-line message. Engine-specific exceptions
(sqlite3, psycopg) never cross the store boundary unwrapped.
"""

from __future__ import annotations


class FootprintError(Exception):
    """Base class for all tracker errors."""


class LoadError(FootprintError):
    """The emission factor source is missing or malformed."""


class NotLoadedError(FootprintError):
    """The factor table was queried before a successful load."""


class StoreError(FootprintError):
    """The storage engine failed to complete an operation."""


class ValidationError(FootprintError):
    """A caller-supplied activity violates its invariants."""


__all__ = [
    "FootprintError",
    "LoadError",
    "NotLoadedError",
    "StoreError",
    "ValidationError",
]
