"""
Merchant analytics service.

Records profile matches and aggregates a merchant's match/contact counts.
Contact events are written by ContactTracker; this service only appends
matches and reads the ledger.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.analytics import MerchantAnalyticsEvent, MerchantEventType, MerchantStats, compute_merchant_stats
from domain.errors import StoreError
from domain.time import UtcClock, utc_now
from repositories.analytics_repository import MerchantAnalyticsRepository
from services.identity import IdentityProvider

logger = logging.getLogger(__name__)


class MerchantAnalyticsService:
    def __init__(
        self,
        identity: IdentityProvider,
        analytics: MerchantAnalyticsRepository,
        *,
        clock: UtcClock = utc_now,
    ) -> None:
        self._identity = identity
        self._analytics = analytics
        self._clock = clock

    def track_merchant_match(self, merchant_id: str, request_id: Optional[str]) -> MerchantAnalyticsEvent:
        """
        Append a profile_matched event for the current subject.

        Raises:
            IdentityUnavailable, StoreError
        """

        event = MerchantAnalyticsEvent(
            merchant_id=merchant_id,
            event_type=MerchantEventType.PROFILE_MATCHED,
            subject_id=self._identity.resolve_subject_id(),
            request_id=request_id,
        )
        return self._analytics.record_event(event, self._clock())

    def get_merchant_stats(self, merchant_id: str) -> MerchantStats:
        """Stats for a merchant; all zeros when the ledger cannot be read."""

        try:
            events = self._analytics.list_for_merchant(merchant_id)
        except StoreError as exc:
            logger.warning("Error fetching merchant stats for %s: %s", merchant_id, exc)
            return MerchantStats.empty()
        return compute_merchant_stats(events, now=self._clock())


__all__ = ["MerchantAnalyticsService"]
