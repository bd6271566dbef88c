"""
Contact interaction repository (persistence).

Provides *only* persistence operations for ContactInteraction. It does not
decide whether a contact should be recorded; ContactTracker does that.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from domain.contact import ContactInteraction, ContactKey, PromptWindow
from repositories.rows import optional_str, parse_utc_datetime, to_iso_utc
from repositories.schema import CONTACT_INTERACTIONS_TABLE
from repositories.store import RangeFilter, RecordStore


def key_criteria(key: ContactKey) -> dict[str, Any]:
    """Equality filters for a tuple; request_id=None means "IS NULL"."""

    return {
        "user_id": key.subject_id,
        "merchant_id": key.seller_id,
        "request_id": key.request_id,
    }


def _row_to_contact(row: Mapping[str, Any]) -> ContactInteraction:
    return ContactInteraction(
        id=str(row["id"]),
        subject_id=str(row["user_id"]),
        seller_id=str(row["merchant_id"]),
        request_id=optional_str(row.get("request_id")),
        contacted_at=parse_utc_datetime(row["contacted_at"]),
        rating_prompted=bool(row.get("rating_prompted", False)),
        rating_completed=bool(row.get("rating_completed", False)),
    )


class ContactInteractionRepository:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def get_by_key(self, key: ContactKey) -> Optional[ContactInteraction]:
        """
        Fetch the most recent contact for a tuple.

        With the unique constraint in place there is at most one; ordering keeps
        the read deterministic against legacy duplicates.
        """

        rows = self._store.find(
            CONTACT_INTERACTIONS_TABLE,
            key_criteria(key),
            order_by="contacted_at",
            descending=True,
            limit=1,
        )
        return _row_to_contact(rows[0]) if rows else None

    def get_by_id(self, contact_id: str) -> Optional[ContactInteraction]:
        rows = self._store.find(CONTACT_INTERACTIONS_TABLE, {"id": contact_id}, limit=1)
        return _row_to_contact(rows[0]) if rows else None

    def exists(self, key: ContactKey) -> bool:
        return self.get_by_key(key) is not None

    def insert(self, key: ContactKey, contacted_at: datetime) -> ContactInteraction:
        """
        Insert a new contact row.

        Raises:
            StoreConflictError: a row for this tuple already exists.
            StoreError: any other store failure.
        """

        payload: dict[str, Any] = {
            **key_criteria(key),
            "contacted_at": to_iso_utc(contacted_at, name="contacted_at"),
            "rating_prompted": False,
            "rating_completed": False,
        }
        row = self._store.insert(CONTACT_INTERACTIONS_TABLE, payload)
        return _row_to_contact({**payload, **row})

    def list_prompt_candidates(self, subject_id: str, window: PromptWindow) -> List[ContactInteraction]:
        """Unprompted, uncompleted contacts for a subject inside the prompt window, oldest first."""

        rows = self._store.find(
            CONTACT_INTERACTIONS_TABLE,
            {
                "user_id": subject_id,
                "rating_prompted": False,
                "rating_completed": False,
            },
            ranges=[RangeFilter("contacted_at", gte=window.start, lt=window.end)],
            order_by="contacted_at",
        )
        return [_row_to_contact(row) for row in rows]

    def mark_prompted(self, contact_id: str) -> None:
        self._store.update(CONTACT_INTERACTIONS_TABLE, contact_id, {"rating_prompted": True})

    def set_rating_completed(self, contact_id: str, completed: bool) -> None:
        self._store.update(CONTACT_INTERACTIONS_TABLE, contact_id, {"rating_completed": completed})


__all__ = ["ContactInteractionRepository", "key_criteria"]
