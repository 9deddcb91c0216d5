"""
Activity store interface and the SQL implementation shared by all engines.

Concrete engines (SQLite, Postgres) subclass SqlActivityStore and only supply
connection handling, the parameter placeholder, the schema DDL and the way a
generated id is read back after an insert. Every query, ordering rule and
aggregation lives here so the engines cannot drift apart.

Timestamps follow one policy everywhere: naive local civil time, stored as
epoch milliseconds. Range bounds are inclusive on both ends and per-day
grouping uses the local calendar date.
"""

from __future__ import annotations

import abc
from contextlib import contextmanager
from datetime import date, datetime
from typing import (
    Any,
    ContextManager,
    Dict,
    Generator,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    runtime_checkable,
)

from footprint_tracker.domain.models import (
    Activity,
    from_epoch_ms,
    normalize_timestamp,
    to_epoch_ms,
)
from footprint_tracker.errors import StoreError, ValidationError
from footprint_tracker.utils.logging import get_logger

log = get_logger(__name__)

TABLE_NAME = "activities"
_COLUMNS = "id, type, subtype, value, carbonFootprint, date"


@runtime_checkable
class ActivityStore(Protocol):
    """
    Common interface every activity store implements.

    Attributes
    ----------
    name : str
        A short machine-friendly engine identifier.
    description : str
        A human-friendly summary of the engine.
    """

    name: str
    description: str

    def create(self, activity: Activity) -> int: ...

    def get_by_id(self, activity_id: int) -> Optional[Activity]: ...

    def list_all(self) -> List[Activity]: ...

    def list_by_date_range(self, start: datetime, end: datetime) -> List[Activity]: ...

    def list_by_category(self, category: str) -> List[Activity]: ...

    def update(self, activity: Activity) -> int: ...

    def delete(self, activity_id: int) -> int: ...

    def delete_all(self) -> int: ...

    def sum_footprint(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> float: ...

    def sum_footprint_by_category(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[str, float]: ...

    def daily_footprint(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[date, float]: ...

    def close(self) -> None: ...


class SqlActivityStore(abc.ABC):
    """
    DB-API backed ActivityStore.

    Subclasses set `name`, `description`, `placeholder`, `engine_errors` and
    implement `_transaction`, `_insert_returning_id` and `close`.
    """

    name: str
    description: str
    placeholder: str = "?"
    engine_errors: Tuple[Type[BaseException], ...] = ()

    @abc.abstractmethod
    def _transaction(self) -> ContextManager[Any]:  # pragma: no cover - interface only
        """Yield a connection; commit on success, roll back on error."""
        raise NotImplementedError

    @abc.abstractmethod
    def _insert_returning_id(
        self, cursor: Any, sql: str, params: Sequence[Any]
    ) -> int:  # pragma: no cover - interface only
        """Run an INSERT and return the generated primary key."""
        raise NotImplementedError

    @abc.abstractmethod
    def close(self) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def __enter__(self) -> "SqlActivityStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def _cursor(self, operation: str) -> Generator[Any, None, None]:
        """
        Cursor inside a transaction, with engine errors raised as StoreError.
        """
        try:
            with self._transaction() as conn:
                cursor = conn.cursor()
                try:
                    yield cursor
                finally:
                    cursor.close()
        except self.engine_errors as exc:
            log.error(
                f"[STORE FAILED] {operation}",
                extra={"engine": self.name, "operation": operation, "error": str(exc)},
            )
            raise StoreError(f"Storage error during {operation}: {exc}") from exc

    def _range_clause(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> Tuple[str, List[int]]:
        """WHERE clause for an inclusive range; either bound may be omitted."""
        conditions: List[str] = []
        params: List[int] = []
        if start is not None:
            conditions.append(f"date >= {self.placeholder}")
            params.append(to_epoch_ms(normalize_timestamp(start)))
        if end is not None:
            conditions.append(f"date <= {self.placeholder}")
            params.append(to_epoch_ms(normalize_timestamp(end)))
        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    def _select_activities(
        self, operation: str, where: str = "", params: Sequence[Any] = ()
    ) -> List[Activity]:
        sql = f"SELECT {_COLUMNS} FROM {TABLE_NAME}{where} ORDER BY date DESC, id DESC"
        with self._cursor(operation) as cur:
            cur.execute(sql, tuple(params))
            rows = cur.fetchall()
        return [Activity.from_row(row) for row in rows]

    # CRUD

    def create(self, activity: Activity) -> int:
        """
        Persist a new activity and return its generated id.

        Ids increase monotonically and are never reused within a store.
        """
        if activity.id is not None:
            raise ValidationError(f"Activity already has id {activity.id}; use update()")
        row = activity.to_row()
        p = self.placeholder
        sql = (
            f"INSERT INTO {TABLE_NAME} (type, subtype, value, carbonFootprint, date) "
            f"VALUES ({p}, {p}, {p}, {p}, {p})"
        )
        params = (row["type"], row["subtype"], row["value"], row["carbonFootprint"], row["date"])
        with self._cursor("create") as cur:
            activity_id = self._insert_returning_id(cur, sql, params)
        log.info(
            "Activity created",
            extra={"activity_id": activity_id, "category": activity.category},
        )
        return activity_id

    def get_by_id(self, activity_id: int) -> Optional[Activity]:
        sql = f"SELECT {_COLUMNS} FROM {TABLE_NAME} WHERE id = {self.placeholder}"
        with self._cursor("get_by_id") as cur:
            cur.execute(sql, (activity_id,))
            row = cur.fetchone()
        return Activity.from_row(row) if row else None

    def list_all(self) -> List[Activity]:
        """All activities, most recent first."""
        return self._select_activities("list_all")

    def list_by_date_range(self, start: datetime, end: datetime) -> List[Activity]:
        """Activities with `start <= occurred_at <= end`, most recent first."""
        where, params = self._range_clause(start, end)
        return self._select_activities("list_by_date_range", where, params)

    def list_by_category(self, category: str) -> List[Activity]:
        where = f" WHERE type = {self.placeholder}"
        return self._select_activities("list_by_category", where, (category,))

    def update(self, activity: Activity) -> int:
        """
        Replace the stored record with the same id.

        Returns the affected row count; 0 means no record had that id.
        """
        if activity.id is None:
            raise ValidationError("Cannot update an activity without an id")
        row = activity.to_row()
        p = self.placeholder
        sql = (
            f"UPDATE {TABLE_NAME} SET type = {p}, subtype = {p}, value = {p}, "
            f"carbonFootprint = {p}, date = {p} WHERE id = {p}"
        )
        params = (
            row["type"],
            row["subtype"],
            row["value"],
            row["carbonFootprint"],
            row["date"],
            activity.id,
        )
        with self._cursor("update") as cur:
            cur.execute(sql, params)
            affected = cur.rowcount
        return affected

    def delete(self, activity_id: int) -> int:
        sql = f"DELETE FROM {TABLE_NAME} WHERE id = {self.placeholder}"
        with self._cursor("delete") as cur:
            cur.execute(sql, (activity_id,))
            affected = cur.rowcount
        if affected:
            log.info("Activity deleted", extra={"activity_id": activity_id})
        return affected

    def delete_all(self) -> int:
        with self._cursor("delete_all") as cur:
            cur.execute(f"DELETE FROM {TABLE_NAME}")
            affected = cur.rowcount
        log.info("All activities deleted", extra={"deleted": affected})
        return affected

    # Aggregates

    def sum_footprint(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> float:
        """Total kg CO2e in the range (everything when no bounds); 0.0 when empty."""
        where, params = self._range_clause(start, end)
        sql = f"SELECT COALESCE(SUM(carbonFootprint), 0) FROM {TABLE_NAME}{where}"
        with self._cursor("sum_footprint") as cur:
            cur.execute(sql, tuple(params))
            (total,) = cur.fetchone()
        return float(total)

    def sum_footprint_by_category(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[str, float]:
        """Per-category totals; categories without records in range are absent."""
        where, params = self._range_clause(start, end)
        sql = (
            f"SELECT type, SUM(carbonFootprint) FROM {TABLE_NAME}{where} "
            f"GROUP BY type ORDER BY type"
        )
        with self._cursor("sum_footprint_by_category") as cur:
            cur.execute(sql, tuple(params))
            rows = cur.fetchall()
        return {category: float(total or 0.0) for category, total in rows}

    def daily_footprint(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> Dict[date, float]:
        """
        Per-day totals keyed by local calendar date, ascending.

        Sparse: days without activity (or whose total is zero) are absent, so
        chart consumers must fill gaps themselves.
        """
        where, params = self._range_clause(start, end)
        sql = f"SELECT date, carbonFootprint FROM {TABLE_NAME}{where} ORDER BY date"
        with self._cursor("daily_footprint") as cur:
            cur.execute(sql, tuple(params))
            rows = cur.fetchall()

        # Grouped here rather than in SQL so both engines use the process's
        # local calendar instead of the server session time zone.
        daily: Dict[date, float] = {}
        for date_ms, footprint in rows:
            day = from_epoch_ms(int(date_ms)).date()
            daily[day] = daily.get(day, 0.0) + float(footprint)
        return {day: total for day, total in daily.items() if total != 0.0}


__all__ = ["ActivityStore", "SqlActivityStore", "TABLE_NAME"]
