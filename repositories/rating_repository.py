"""
Seller rating repository (persistence).

Inserts, fetches and patches SellerRating rows. State machine rules
(contact required, cancellation terminal) live in RatingLedger.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from domain.contact import ContactKey
from domain.rating import SellerRating
from repositories.contact_repository import key_criteria
from repositories.rows import optional_str, parse_optional_utc_datetime, to_iso_utc
from repositories.schema import SELLER_RATINGS_TABLE
from repositories.store import RecordStore


def _row_to_rating(row: Mapping[str, Any]) -> SellerRating:
    is_cancelled = bool(row.get("is_cancelled", False))
    return SellerRating(
        id=str(row["id"]),
        subject_id=str(row["user_id"]),
        seller_id=str(row["merchant_id"]),
        request_id=optional_str(row.get("request_id")),
        rating=int(row["rating"]),
        review_text=row.get("review_text"),
        can_be_cancelled=bool(row.get("can_be_cancelled", True)) and not is_cancelled,
        is_cancelled=is_cancelled,
        created_at=parse_optional_utc_datetime(row.get("created_at")),
        updated_at=parse_optional_utc_datetime(row.get("updated_at")),
    )


class SellerRatingRepository:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def get_by_key(self, key: ContactKey) -> Optional[SellerRating]:
        rows = self._store.find(
            SELLER_RATINGS_TABLE,
            key_criteria(key),
            order_by="created_at",
            descending=True,
            limit=1,
        )
        return _row_to_rating(rows[0]) if rows else None

    def insert(
        self,
        key: ContactKey,
        rating: int,
        review_text: Optional[str],
        created_at: datetime,
    ) -> SellerRating:
        """
        Insert a new active rating.

        Raises:
            StoreConflictError: a rating for this tuple already exists.
        """

        created_iso = to_iso_utc(created_at, name="created_at")
        payload: dict[str, Any] = {
            **key_criteria(key),
            "rating": rating,
            "review_text": review_text,
            "can_be_cancelled": True,
            "is_cancelled": False,
            "created_at": created_iso,
            "updated_at": created_iso,
        }
        row = self._store.insert(SELLER_RATINGS_TABLE, payload)
        return _row_to_rating({**payload, **row})

    def update_review(self, rating_id: str, rating: int, review_text: Optional[str], updated_at: datetime) -> None:
        self._store.update(
            SELLER_RATINGS_TABLE,
            rating_id,
            {
                "rating": rating,
                "review_text": review_text,
                "updated_at": to_iso_utc(updated_at, name="updated_at"),
            },
        )

    def mark_cancelled(self, rating_id: str, updated_at: datetime) -> None:
        self._store.update(
            SELLER_RATINGS_TABLE,
            rating_id,
            {
                "is_cancelled": True,
                "can_be_cancelled": False,
                "updated_at": to_iso_utc(updated_at, name="updated_at"),
            },
        )

    def list_for_subject(self, subject_id: str) -> List[SellerRating]:
        """Every rating (active or cancelled) a subject has given."""

        rows = self._store.find(SELLER_RATINGS_TABLE, {"user_id": subject_id})
        return [_row_to_rating(row) for row in rows]

    def list_active_for_seller(self, seller_id: str) -> List[SellerRating]:
        """Active ratings for a seller, newest first."""

        rows = self._store.find(
            SELLER_RATINGS_TABLE,
            {"merchant_id": seller_id, "is_cancelled": False},
            order_by="created_at",
            descending=True,
        )
        return [_row_to_rating(row) for row in rows]


__all__ = ["SellerRatingRepository"]
