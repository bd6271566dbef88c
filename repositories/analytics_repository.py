"""
Analytics repositories (persistence).

Append-only writers for the merchant analytics ledger and the generic
user-action telemetry table.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, List, Mapping, Optional

from domain.analytics import MerchantAnalyticsEvent, MerchantEventType, UserAction
from repositories.rows import optional_str, parse_optional_utc_datetime, to_iso_utc
from repositories.schema import MERCHANT_ANALYTICS_TABLE, USER_ANALYTICS_TABLE
from repositories.store import RecordStore


def _row_to_event(row: Mapping[str, Any]) -> MerchantAnalyticsEvent:
    return MerchantAnalyticsEvent(
        id=optional_str(row.get("id")),
        merchant_id=str(row["merchant_id"]),
        event_type=MerchantEventType(str(row["event_type"])),
        subject_id=str(row["user_id"]),
        request_id=optional_str(row.get("request_id")),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
    )


class MerchantAnalyticsRepository:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def has_event(
        self,
        merchant_id: str,
        event_type: MerchantEventType,
        subject_id: str,
        request_id: Optional[str],
    ) -> bool:
        rows = self._store.find(
            MERCHANT_ANALYTICS_TABLE,
            {
                "merchant_id": merchant_id,
                "request_id": request_id,
                "event_type": event_type.value,
                "user_id": subject_id,
            },
            limit=1,
        )
        return bool(rows)

    def record_event(self, event: MerchantAnalyticsEvent, created_at: datetime) -> MerchantAnalyticsEvent:
        payload: dict[str, Any] = {
            "merchant_id": event.merchant_id,
            "request_id": event.request_id,
            "event_type": event.event_type.value,
            "user_id": event.subject_id,
            "created_at": to_iso_utc(created_at, name="created_at"),
        }
        row = self._store.insert(MERCHANT_ANALYTICS_TABLE, payload)
        return _row_to_event({**payload, **row})

    def list_for_merchant(self, merchant_id: str) -> List[MerchantAnalyticsEvent]:
        rows = self._store.find(MERCHANT_ANALYTICS_TABLE, {"merchant_id": merchant_id})
        return [_row_to_event(row) for row in rows]


class UserActionRepository:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def record(self, action: UserAction, recorded_at: datetime) -> None:
        payload: dict[str, Any] = {
            "actual_user_id": action.actor_id,
            "event_type": action.event_type,
            # Details column is jsonb; values that are not JSON types are stringified.
            "event_details": json.loads(json.dumps(dict(action.event_details), default=str)),
            "event_description": action.event_description,
            "current_page_url": action.page_url,
            "created_at": to_iso_utc(recorded_at, name="recorded_at"),
        }
        self._store.insert(USER_ANALYTICS_TABLE, payload)


__all__ = ["MerchantAnalyticsRepository", "UserActionRepository"]
