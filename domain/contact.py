"""
Domain: buyer→seller contact interactions.

Contract excerpts implemented here:
- At most one ContactInteraction exists per (subject_id, seller_id, request_id).
- A missing request_id is its own grouping key. "No request" is a value that
  only matches "no request", never a wildcard.
- contacted_at is set at creation and never changes.
- rating_prompted / rating_completed only move False → True, except the rating
  cancellation path, which resets rating_completed to False.
- A contact is eligible for a rating prompt while unprompted, not completed and
  contacted_at ∈ [now - 48h, now - 24h).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from .time import require_utc_timestamp

PROMPT_MIN_DELAY = timedelta(hours=24)
PROMPT_MAX_DELAY = timedelta(hours=48)


@dataclass(frozen=True, slots=True)
class ContactKey:
    """
    The (subject, seller, request?) tuple that scopes contact and rating uniqueness.

    Two keys are equal only when all three parts are equal, so a key without a
    request never matches a key with one.
    """

    subject_id: str
    seller_id: str
    request_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.subject_id:
            raise ValueError("subject_id must be a non-empty string")
        if not self.seller_id:
            raise ValueError("seller_id must be a non-empty string")
        # Treat "" the same as an absent request so the grouping key stays canonical.
        if self.request_id == "":
            object.__setattr__(self, "request_id", None)

    @property
    def has_request(self) -> bool:
        return self.request_id is not None

    def dedup_key(self, prefix: str = "contact") -> str:
        """Stable string form used as an EventDeduper key."""

        return f"{prefix}:{self.subject_id}:{self.seller_id}:{self.request_id or '-'}"


@dataclass(frozen=True, slots=True)
class PromptWindow:
    """Half-open window [start, end) of contacted_at values eligible for a prompt."""

    start: datetime
    end: datetime

    @staticmethod
    def ending_at(
        now: datetime,
        *,
        min_delay: timedelta = PROMPT_MIN_DELAY,
        max_delay: timedelta = PROMPT_MAX_DELAY,
    ) -> "PromptWindow":
        require_utc_timestamp("now", now)
        if min_delay >= max_delay:
            raise ValueError("min_delay must be shorter than max_delay")
        return PromptWindow(start=now - max_delay, end=now - min_delay)

    def contains(self, value: datetime) -> bool:
        return self.start <= value < self.end


@dataclass(frozen=True, slots=True)
class ContactInteraction:
    """Persisted record that a subject contacted a seller (optionally for a request)."""

    id: str
    subject_id: str
    seller_id: str
    request_id: Optional[str]
    contacted_at: datetime
    rating_prompted: bool = False
    rating_completed: bool = False

    def __post_init__(self) -> None:
        require_utc_timestamp("contacted_at", self.contacted_at)

    @property
    def key(self) -> ContactKey:
        return ContactKey(self.subject_id, self.seller_id, self.request_id)

    def is_prompt_eligible(self, window: PromptWindow) -> bool:
        return (
            not self.rating_prompted
            and not self.rating_completed
            and window.contains(self.contacted_at)
        )

    def prompted(self) -> "ContactInteraction":
        return replace(self, rating_prompted=True)


__all__ = [
    "PROMPT_MIN_DELAY",
    "PROMPT_MAX_DELAY",
    "ContactKey",
    "PromptWindow",
    "ContactInteraction",
]
