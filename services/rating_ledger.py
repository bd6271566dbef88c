"""
Rating ledger service.

Governs whether a subject may rate a seller for a given request, and the
submit / update / cancel transitions:

    NO_CONTACT --(contact recorded)--> ELIGIBLE --submit--> RATED
    RATED --submit--> RATED (updated in place)
    RATED --cancel--> CANCELLED (terminal)

Every operation re-reads contact and rating state from the store; nothing is
cached between calls. Validation happens before any store access.

Side effects on ContactInteraction.rating_completed (only when a request_id is
present) are best-effort: failures are logged and never undo the rating write.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from domain.contact import ContactKey
from domain.errors import (
    CONFLICT_RECOVERED,
    AlreadyCancelled,
    NoRatingFound,
    NotCancellable,
    NotContacted,
    RatingCancelled,
    StoreConflictError,
    StoreError,
)
from domain.rating import (
    REVIEW_TEXT_MAX_LENGTH,
    RatingInput,
    RatingStatus,
    SellerRating,
    build_rating_status,
)
from domain.time import UtcClock, utc_now
from repositories.contact_repository import ContactInteractionRepository
from repositories.rating_repository import SellerRatingRepository
from services.identity import IdentityProvider

logger = logging.getLogger(__name__)


class RatingLedger:
    def __init__(
        self,
        identity: IdentityProvider,
        contacts: ContactInteractionRepository,
        ratings: SellerRatingRepository,
        *,
        clock: UtcClock = utc_now,
        review_text_max_length: int = REVIEW_TEXT_MAX_LENGTH,
    ) -> None:
        self._identity = identity
        self._contacts = contacts
        self._ratings = ratings
        self._clock = clock
        self._review_text_max_length = review_text_max_length

    def _key(self, seller_id: str, request_id: Optional[str]) -> ContactKey:
        return ContactKey(self._identity.resolve_subject_id(), seller_id, request_id)

    def has_contact(self, seller_id: str, request_id: Optional[str] = None) -> bool:
        return self._contacts.exists(self._key(seller_id, request_id))

    def get_status(self, seller_id: str, request_id: Optional[str] = None) -> RatingStatus:
        key = self._key(seller_id, request_id)
        has_contact = self._contacts.exists(key)
        rating = self._ratings.get_by_key(key)
        return build_rating_status(has_contact, rating)

    def submit_rating(
        self,
        seller_id: str,
        rating: object,
        review_text: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> SellerRating:
        """
        Create or update the subject's rating for a tuple.

        Raises:
            ValidationError: rating not an integer in [1, 5] or review text too long.
            NotContacted: no ContactInteraction exists for the tuple.
            RatingCancelled: the tuple's rating was cancelled (terminal).
            StoreError: the store failed.
        """

        data = RatingInput.parse(rating, review_text, max_review_length=self._review_text_max_length)
        key = self._key(seller_id, request_id)

        if not self._contacts.exists(key):
            raise NotContacted()

        existing = self._ratings.get_by_key(key)
        now = self._clock()

        if existing is None:
            try:
                saved = self._ratings.insert(key, data.rating, data.review_text, now)
            except StoreConflictError:
                # Lost an insert race: fall back to updating the row that won.
                existing = self._ratings.get_by_key(key)
                if existing is None:
                    raise StoreError("Rating insert conflicted but no existing rating was found") from None
                logger.info("%s: rating insert for %s recovered by update", CONFLICT_RECOVERED, key.dedup_key("rating"))
                saved = self._update(existing, data, now)
        else:
            saved = self._update(existing, data, now)

        self._set_contact_rating_completed(key, True)
        return saved

    def _update(self, existing: SellerRating, data: RatingInput, now: datetime) -> SellerRating:
        if existing.is_cancelled:
            raise RatingCancelled()
        self._ratings.update_review(existing.id, data.rating, data.review_text, now)
        return existing.revised(data.rating, data.review_text, now)

    def cancel_rating(self, seller_id: str, request_id: Optional[str] = None) -> SellerRating:
        """
        Cancel the subject's active rating for a tuple. Cancellation is terminal.

        Raises:
            NoRatingFound: there is no rating to cancel.
            AlreadyCancelled: the rating is already cancelled.
            NotCancellable: the rating is flagged as not cancellable.
            StoreError: the store failed.
        """

        key = self._key(seller_id, request_id)
        existing = self._ratings.get_by_key(key)

        if existing is None:
            raise NoRatingFound()
        if existing.is_cancelled:
            raise AlreadyCancelled()
        if not existing.can_be_cancelled:
            raise NotCancellable()

        now = self._clock()
        self._ratings.mark_cancelled(existing.id, now)
        self._set_contact_rating_completed(key, False)
        return existing.cancelled(now)

    def list_seller_ratings(self, seller_id: str) -> List[SellerRating]:
        return self._ratings.list_active_for_seller(seller_id)

    def _set_contact_rating_completed(self, key: ContactKey, completed: bool) -> None:
        if not key.has_request:
            return
        try:
            contact = self._contacts.get_by_key(key)
            if contact is not None and contact.rating_completed != completed:
                self._contacts.set_rating_completed(contact.id, completed)
        except StoreError as exc:
            logger.warning(
                "Failed to set rating_completed=%s for %s: %s",
                completed,
                key.dedup_key(),
                exc,
            )


__all__ = ["RatingLedger"]
