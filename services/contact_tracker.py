"""
Contact tracking service.

Records that a subject contacted a seller (optionally for a specific request)
exactly once per (subject, seller, request) tuple, and mirrors the first
contact into the merchant analytics ledger.

Handles:
- Idempotency on retried contact clicks (existence check before insert)
- Duplicate triggers inside the dedup window (EventDeduper gate)
- Insert races (unique violation recovered by re-reading the row)
- Best-effort analytics mirror (failures logged, returned as a warning)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from domain.analytics import MerchantAnalyticsEvent, MerchantEventType
from domain.contact import ContactInteraction, ContactKey
from domain.errors import CONFLICT_RECOVERED, InvalidContact, StoreConflictError, StoreError
from domain.time import UtcClock, utc_now
from repositories.analytics_repository import MerchantAnalyticsRepository
from repositories.contact_repository import ContactInteractionRepository
from services.event_deduper import EventDeduper
from services.identity import IdentityProvider

logger = logging.getLogger(__name__)

DEFAULT_CONTACT_DEDUP_WINDOW_MS = 2000


@dataclass(frozen=True, slots=True)
class ContactResult:
    """
    Outcome of a record_contact call. Always a success from the caller's view.

    created: a new ContactInteraction row was written by this call
    deduplicated: the call was suppressed by the dedup window (no store access)
    conflict_recovered: the insert lost a race and the existing row was used
    warnings: non-fatal problems (analytics mirror failures)
    """

    subject_id: str
    contact: Optional[ContactInteraction]
    created: bool = False
    deduplicated: bool = False
    conflict_recovered: bool = False
    warnings: tuple[str, ...] = ()


class ContactTracker:
    def __init__(
        self,
        identity: IdentityProvider,
        contacts: ContactInteractionRepository,
        analytics: MerchantAnalyticsRepository,
        deduper: Optional[EventDeduper] = None,
        *,
        clock: UtcClock = utc_now,
        dedup_window_ms: int = DEFAULT_CONTACT_DEDUP_WINDOW_MS,
    ) -> None:
        self._identity = identity
        self._contacts = contacts
        self._analytics = analytics
        self._deduper = deduper
        self._clock = clock
        self._dedup_window_ms = dedup_window_ms

    def record_contact(self, seller_id: str, request_id: Optional[str] = None) -> ContactResult:
        """
        Idempotently record a contact for the current subject.

        Raises:
            IdentityUnavailable: no subject id could be resolved.
            InvalidContact: seller_id is empty.
            StoreError: the primary contact read/write failed. Callers must not
                let this block the user's external contact action.
        """

        subject_id = self._identity.resolve_subject_id()
        try:
            key = ContactKey(subject_id, seller_id, request_id)
        except ValueError as e:
            raise InvalidContact(str(e)) from e

        if self._deduper is not None and not self._deduper.should_proceed(key.dedup_key(), self._dedup_window_ms):
            logger.info("Duplicate contact trigger suppressed for %s", key.dedup_key())
            return ContactResult(subject_id=subject_id, contact=None, deduplicated=True)

        try:
            return self._record(subject_id, key)
        except StoreError:
            # A failed write must not suppress the user's retry.
            if self._deduper is not None:
                self._deduper.forget(key.dedup_key())
            raise

    def _record(self, subject_id: str, key: ContactKey) -> ContactResult:
        existing = self._contacts.get_by_key(key)
        if existing is not None:
            logger.info("Contact already tracked for %s, skipping duplicate tracking", key.dedup_key())
            return ContactResult(subject_id=subject_id, contact=existing)

        try:
            contact = self._contacts.insert(key, self._clock())
        except StoreConflictError:
            # A concurrent call inserted the same tuple between our read and write.
            recovered = self._contacts.get_by_key(key)
            if recovered is None:
                raise StoreError(f"Contact insert conflicted but no row found for {key.dedup_key()}") from None
            logger.info("%s: contact for %s already inserted concurrently", CONFLICT_RECOVERED, key.dedup_key())
            return ContactResult(subject_id=subject_id, contact=recovered, conflict_recovered=True)

        warnings: List[str] = []
        warning = self._mirror_contact_event(key)
        if warning:
            warnings.append(warning)

        return ContactResult(subject_id=subject_id, contact=contact, created=True, warnings=tuple(warnings))

    def _mirror_contact_event(self, key: ContactKey) -> Optional[str]:
        """Write the profile_contacted analytics event once per tuple. Never raises StoreError."""

        try:
            if self._analytics.has_event(key.seller_id, MerchantEventType.PROFILE_CONTACTED, key.subject_id, key.request_id):
                logger.info("Contact analytics already tracked for %s, skipping duplicate", key.dedup_key())
                return None
            self._analytics.record_event(
                MerchantAnalyticsEvent(
                    merchant_id=key.seller_id,
                    event_type=MerchantEventType.PROFILE_CONTACTED,
                    subject_id=key.subject_id,
                    request_id=key.request_id,
                ),
                self._clock(),
            )
        except StoreError as exc:
            logger.warning("Error tracking merchant contact for %s: %s", key.dedup_key(), exc)
            return f"Contact analytics not recorded: {exc}"
        return None


__all__ = ["ContactResult", "ContactTracker", "DEFAULT_CONTACT_DEDUP_WINDOW_MS"]
