"""
In-memory RecordStore.

Mirrors the production schema's uniqueness constraints so idempotency and
conflict recovery behave the same as against Supabase. Null is compared as a
value in unique keys (NULLS NOT DISTINCT), matching how the engine groups
"no request" contacts. Used by the test suite and `ENGINE_STORE=memory`.
"""

from __future__ import annotations

import threading
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from domain.errors import StoreConflictError
from repositories.store import RangeFilter, Row


def _comparable(value: Any) -> Any:
    """Parse ISO timestamps so range filters compare instants, not strings."""

    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InMemoryRecordStore:
    def __init__(self, unique_constraints: Optional[Mapping[str, Sequence[Tuple[str, ...]]]] = None) -> None:
        self._lock = threading.Lock()
        self._tables: Dict[str, List[Row]] = {}
        self._unique: Dict[str, List[Tuple[str, ...]]] = {
            table: [tuple(cols) for cols in constraints]
            for table, constraints in (unique_constraints or {}).items()
        }

    def rows(self, table: str) -> List[Row]:
        """Snapshot of every row in a table (test helper)."""

        with self._lock:
            return deepcopy(self._tables.get(table, []))

    def _violates_unique(self, table: str, record: Mapping[str, Any]) -> bool:
        for columns in self._unique.get(table, []):
            candidate = tuple(record.get(col) for col in columns)
            for row in self._tables.get(table, []):
                if tuple(row.get(col) for col in columns) == candidate:
                    return True
        return False

    def find(
        self,
        table: str,
        equals: Mapping[str, Any],
        *,
        ranges: Sequence[RangeFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        with self._lock:
            rows = [
                row
                for row in self._tables.get(table, [])
                if all(row.get(col) == value for col, value in equals.items())
            ]

        for bound in ranges:
            if bound.gte is not None:
                low = _comparable(bound.gte)
                rows = [r for r in rows if r.get(bound.column) is not None and _comparable(r[bound.column]) >= low]
            if bound.lt is not None:
                high = _comparable(bound.lt)
                rows = [r for r in rows if r.get(bound.column) is not None and _comparable(r[bound.column]) < high]

        if order_by:
            rows = sorted(rows, key=lambda r: _comparable(r.get(order_by)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]

        return deepcopy(rows)

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        row = dict(record)
        row.setdefault("id", str(uuid4()))
        with self._lock:
            if self._violates_unique(table, row):
                raise StoreConflictError(table)
            self._tables.setdefault(table, []).append(row)
            return deepcopy(row)

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> None:
        with self._lock:
            for row in self._tables.get(table, []):
                if row.get("id") == record_id:
                    row.update(deepcopy(dict(patch)))
                    return


__all__ = ["InMemoryRecordStore"]
