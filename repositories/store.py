"""
Record store abstraction.

Repositories talk to a RecordStore instead of a concrete client so the same
persistence code runs against Supabase in production and an in-memory store
in tests.

Semantics every implementation must follow:
- `find` equality filters treat None as "IS NULL": a None value only matches
  rows where the column is null. It is never a wildcard.
- `insert` raises StoreConflictError when a uniqueness constraint is violated
  and StoreError for any other failure. It returns the stored row.
- `update` raises StoreError on failure. Updating a missing id is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

Row = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class RangeFilter:
    """Half-open range filter on one column: gte <= value < lt."""

    column: str
    gte: Any = None
    lt: Any = None


class RecordStore(Protocol):
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
        ...

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        ...

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> None:
        ...


__all__ = ["Row", "RangeFilter", "RecordStore"]
