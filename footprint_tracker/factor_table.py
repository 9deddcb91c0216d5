"""
Emission factor lookup for the footprint tracker.

The table is read once from a static JSON source (an array of
`{type, subtype, factor, unit}` records) and is read-only afterwards. A
malformed source aborts the load entirely; nothing is kept from a partial
read.

Usage:
    table = FactorTable(Path("emission_factors.json"))
    table.load()
    table.compute_footprint("Transport", "Car-Petrol", 50)  # 9.6
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from footprint_tracker.config import DEFAULT_FACTORS_PATH
from footprint_tracker.domain.models import EmissionFactor
from footprint_tracker.errors import LoadError, NotLoadedError
from footprint_tracker.utils.logging import get_logger

log = get_logger(__name__)


class FactorTable:
    """
    Resolve `(category, subtype)` pairs to emission factors.

    Construct one per process and pass it to whatever needs it; `load()` is
    idempotent so repeated calls from different entry points are harmless.
    """

    def __init__(self, source: Optional[Path] = None) -> None:
        self.source = Path(source) if source is not None else DEFAULT_FACTORS_PATH
        self._factors: Optional[List[EmissionFactor]] = None
        self._by_category: Optional[Dict[str, List[EmissionFactor]]] = None

    @property
    def is_loaded(self) -> bool:
        return self._factors is not None

    def load(self) -> None:
        """
        Read and validate the factor source. No-op if already loaded.

        Raises
        ------
        LoadError
            If the source is missing, is not valid JSON, is not a list, or
            contains a record with a missing field or a non-numeric factor.
        """
        if self.is_loaded:
            return

        try:
            raw = self.source.read_text(encoding="utf-8")
        except OSError as exc:
            raise LoadError(f"Cannot read emission factors from {self.source}: {exc}") from exc

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise LoadError(f"Emission factor source {self.source} is not valid JSON: {exc}") from exc

        self.load_records(records)
        log.info(
            "Emission factors loaded",
            extra={"source": str(self.source), "factors": len(self._factors or [])},
        )

    def load_records(self, records: Any) -> None:
        """
        Load from an in-memory sequence of factor records. No-op if already loaded.

        Applies the same validation as `load()`.
        """
        if self.is_loaded:
            return
        if not isinstance(records, list):
            raise LoadError(
                f"Emission factor source must be a list, got {type(records).__name__}"
            )

        factors: List[EmissionFactor] = []
        for index, record in enumerate(records):
            try:
                factors.append(EmissionFactor.model_validate(record))
            except PydanticValidationError as exc:
                raise LoadError(f"Invalid emission factor at index {index}: {exc}") from exc

        by_category: Dict[str, List[EmissionFactor]] = {}
        for factor in factors:
            by_category.setdefault(factor.category, []).append(factor)

        self._factors = factors
        self._by_category = by_category

    def clear(self) -> None:
        """Forget the loaded data so the next `load()` reads the source again."""
        self._factors = None
        self._by_category = None

    def _require_loaded(self) -> Dict[str, List[EmissionFactor]]:
        if self._by_category is None:
            raise NotLoadedError("Emission factors not loaded. Call load() first.")
        return self._by_category

    def all_factors(self) -> List[EmissionFactor]:
        self._require_loaded()
        return list(self._factors or [])

    def list_categories(self) -> List[str]:
        """Sorted, de-duplicated category names."""
        return sorted(self._require_loaded().keys())

    def list_subtypes(self, category: str) -> List[str]:
        """Sorted subtypes of `category`; empty for an unknown category."""
        factors = self._require_loaded().get(category, [])
        return sorted(factor.subtype for factor in factors)

    def resolve(self, category: str, subtype: str) -> Optional[EmissionFactor]:
        """
        Look up a factor. Returns None when there is no match; the first match
        wins when the source holds duplicates.
        """
        for factor in self._require_loaded().get(category, []):
            if factor.subtype == subtype:
                return factor
        return None

    def unit_for(self, category: str, subtype: str) -> Optional[str]:
        factor = self.resolve(category, subtype)
        return factor.unit if factor else None

    def compute_footprint(self, category: str, subtype: str, quantity: float) -> float:
        """
        `factor × quantity` in kg CO2e, or 0.0 when no factor matches.
        """
        factor = self.resolve(category, subtype)
        if factor is None:
            log.debug(
                "No emission factor, footprint is zero",
                extra={"category": category, "subtype": subtype},
            )
            return 0.0
        return factor.factor * quantity

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "FactorTable":
        """Build an already-loaded table from in-memory records."""
        table = cls()
        table.load_records(list(records))
        return table


__all__ = ["FactorTable"]
