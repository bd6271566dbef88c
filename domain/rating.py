"""
Domain: seller ratings and the per-tuple rating state machine.

States per (subject_id, seller_id, request_id):
- NO_CONTACT: no ContactInteraction exists; rating is not allowed.
- ELIGIBLE:   contact exists, no active rating.
- RATED:      an active (non-cancelled) SellerRating exists.
- CANCELLED:  the SellerRating was cancelled. Terminal.

Input rules:
- rating is an integer in [1, 5] (bools are rejected even though they are ints).
- review_text is optional and at most 500 characters.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from .contact import ContactKey
from .errors import ValidationError
from .time import require_utc_timestamp

MIN_RATING = 1
MAX_RATING = 5
REVIEW_TEXT_MAX_LENGTH = 500


class RatingState(str, Enum):
    NO_CONTACT = "no_contact"
    ELIGIBLE = "eligible"
    RATED = "rated"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class SellerRating:
    """
    A subject's rating of a seller for one tuple.

    Cancelled ratings are kept as history: is_cancelled=True implies
    can_be_cancelled=False.
    """

    id: str
    subject_id: str
    seller_id: str
    request_id: Optional[str]
    rating: int
    review_text: Optional[str] = None
    can_be_cancelled: bool = True
    is_cancelled: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.is_cancelled and self.can_be_cancelled:
            raise ValueError("a cancelled rating cannot be cancellable")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    @property
    def key(self) -> ContactKey:
        return ContactKey(self.subject_id, self.seller_id, self.request_id)

    @property
    def is_active(self) -> bool:
        return not self.is_cancelled

    def revised(self, rating: int, review_text: Optional[str], updated_at: datetime) -> "SellerRating":
        if self.is_cancelled:
            raise ValueError("cannot revise a cancelled rating")
        return replace(self, rating=rating, review_text=review_text, updated_at=updated_at)

    def cancelled(self, updated_at: datetime) -> "SellerRating":
        return replace(self, is_cancelled=True, can_be_cancelled=False, updated_at=updated_at)


@dataclass(frozen=True, slots=True)
class RatingInput:
    """Validated submission payload."""

    rating: int
    review_text: Optional[str] = None

    @staticmethod
    def parse(rating: object, review_text: Optional[str] = None, *, max_review_length: int = REVIEW_TEXT_MAX_LENGTH) -> "RatingInput":
        """
        Validate raw input.

        Raises:
            ValidationError: rating is not an integer in [1, 5], or review_text
                is too long.
        """

        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("Rating must be a whole number between 1 and 5")
        if rating < MIN_RATING or rating > MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        if review_text is not None:
            if not isinstance(review_text, str):
                raise ValidationError("Review text must be a string")
            if len(review_text) > max_review_length:
                raise ValidationError(f"Review text must be at most {max_review_length} characters")
            if not review_text.strip():
                review_text = None

        return RatingInput(rating=rating, review_text=review_text)


@dataclass(frozen=True, slots=True)
class RatingStatus:
    """What the UI needs to render the rate/cancel controls for one tuple."""

    state: RatingState
    rating: Optional[SellerRating]
    can_rate: bool
    can_cancel: bool


def derive_rating_state(has_contact: bool, rating: Optional[SellerRating]) -> RatingState:
    """Resolve the state machine position from the two facts the store holds."""

    if rating is not None:
        return RatingState.CANCELLED if rating.is_cancelled else RatingState.RATED
    if not has_contact:
        return RatingState.NO_CONTACT
    return RatingState.ELIGIBLE


def build_rating_status(has_contact: bool, rating: Optional[SellerRating]) -> RatingStatus:
    """
    Compute the status view.

    can_rate follows has_contact AND (no rating OR cancelled), except that the
    CANCELLED state is terminal and never offers a new rating.
    """

    state = derive_rating_state(has_contact, rating)
    can_rate = has_contact and (rating is None or rating.is_cancelled)
    if state is RatingState.CANCELLED:
        can_rate = False
    can_cancel = rating is not None and not rating.is_cancelled and rating.can_be_cancelled

    return RatingStatus(
        state=state,
        rating=rating if rating is not None and rating.is_active else None,
        can_rate=can_rate,
        can_cancel=can_cancel,
    )


__all__ = [
    "MIN_RATING",
    "MAX_RATING",
    "REVIEW_TEXT_MAX_LENGTH",
    "RatingState",
    "SellerRating",
    "RatingInput",
    "RatingStatus",
    "derive_rating_state",
    "build_rating_status",
]
