"""
Domain: merchant analytics events and derived stats.

MerchantAnalyticsEvent is a write-only ledger. For profile_contacted there is at
most one event per (merchant_id, request_id, subject_id); profile_matched is a
plain append. The ledger may under-count contacts relative to
ContactInteraction because the mirror write is best-effort.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from .time import require_utc_timestamp

RECENT_STATS_WINDOW = timedelta(days=30)


class MerchantEventType(str, Enum):
    PROFILE_MATCHED = "profile_matched"
    PROFILE_CONTACTED = "profile_contacted"


@dataclass(frozen=True, slots=True)
class MerchantAnalyticsEvent:
    merchant_id: str
    event_type: MerchantEventType
    subject_id: str
    request_id: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)


@dataclass(frozen=True, slots=True)
class MerchantStats:
    total_matches: int
    total_contacts: int
    match_to_contact_ratio: float
    recent_matches: int
    recent_contacts: int

    @staticmethod
    def empty() -> "MerchantStats":
        return MerchantStats(0, 0, 0.0, 0, 0)


def compute_merchant_stats(events: Iterable[MerchantAnalyticsEvent], *, now: datetime) -> MerchantStats:
    """
    Aggregate a merchant's events.

    match_to_contact_ratio is contacts / matches as a percentage rounded to two
    decimals, and 0 when there are no matches. "Recent" means the last 30 days.
    """

    require_utc_timestamp("now", now)
    recent_since = now - RECENT_STATS_WINDOW

    total_matches = total_contacts = recent_matches = recent_contacts = 0
    for event in events:
        is_recent = event.created_at is not None and event.created_at >= recent_since
        if event.event_type is MerchantEventType.PROFILE_MATCHED:
            total_matches += 1
            recent_matches += int(is_recent)
        elif event.event_type is MerchantEventType.PROFILE_CONTACTED:
            total_contacts += 1
            recent_contacts += int(is_recent)

    ratio = (total_contacts / total_matches) * 100 if total_matches > 0 else 0.0

    return MerchantStats(
        total_matches=total_matches,
        total_contacts=total_contacts,
        match_to_contact_ratio=round(ratio, 2),
        recent_matches=recent_matches,
        recent_contacts=recent_contacts,
    )


@dataclass(frozen=True, slots=True)
class UserAction:
    """Generic UI telemetry event (page views, navigation, clicks, custom events)."""

    event_type: str
    actor_id: Optional[str] = None
    event_details: Mapping[str, Any] = field(default_factory=dict)
    event_description: str = ""
    page_url: str = ""


__all__ = [
    "RECENT_STATS_WINDOW",
    "MerchantEventType",
    "MerchantAnalyticsEvent",
    "MerchantStats",
    "compute_merchant_stats",
    "UserAction",
]
