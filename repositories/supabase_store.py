"""
Supabase-backed RecordStore.

The only place that inspects PostgREST error codes: a unique violation
(Postgres SQLSTATE 23505) becomes StoreConflictError, every other API or
transport failure becomes StoreError. Callers branch on exception type.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from domain.errors import StoreConflictError, StoreError
from repositories.store import RangeFilter, Row

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _to_filter_value(value: Any) -> Any:
    """Render a Python value the way PostgREST expects it in a filter."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat()
    return value


def _translate_error(table: str, action: str, exc: Exception) -> StoreError:
    if isinstance(exc, APIError) and getattr(exc, "code", None) == UNIQUE_VIOLATION:
        return StoreConflictError(table, str(getattr(exc, "message", "") or exc))
    return StoreError(f"Failed to {action} {table}: {exc}")


class SupabaseRecordStore:
    """RecordStore over the supabase-py synchronous client."""

    def __init__(self, client: Client) -> None:
        self._client = client

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
        query = self._client.table(table).select("*")

        for column, value in equals.items():
            if value is None:
                # PostgREST `eq.null` compares against the string "null"; null
                # needs the explicit IS operator.
                query = query.is_(column, "null")
            else:
                query = query.eq(column, _to_filter_value(value))

        for bound in ranges:
            if bound.gte is not None:
                query = query.gte(bound.column, _to_filter_value(bound.gte))
            if bound.lt is not None:
                query = query.lt(bound.column, _to_filter_value(bound.lt))

        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)

        try:
            response = query.execute()
        except (APIError, httpx.HTTPError) as exc:
            raise _translate_error(table, "query", exc) from exc

        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to query {table}: {error}")

        return list(getattr(response, "data", None) or [])

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        try:
            response = self._client.table(table).insert(dict(record)).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise _translate_error(table, "insert into", exc) from exc

        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to insert into {table}: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            logger.debug("Insert into %s returned no representation; echoing payload", table)
            return dict(record)
        return dict(rows[0])

    def update(self, table: str, record_id: str, patch: Mapping[str, Any]) -> None:
        try:
            response = (
                self._client.table(table)
                .update(dict(patch))
                .eq("id", record_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            raise _translate_error(table, "update", exc) from exc

        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to update {table}: {error}")


__all__ = ["SupabaseRecordStore", "UNIQUE_VIOLATION"]
