"""
Rating prompt scheduling.

Finds contacts that should get a "rate your experience" nudge: unprompted,
not completed, and contacted between 24 and 48 hours ago. Showing a prompt and
dismissing it both use the nudge up (rating_prompted=True, never reset), and
only the contact's own subject can do that.

Tuples whose rating was cancelled are excluded by default: cancellation is
terminal, so a prompt could only lead to a rejected submission. Tuples with an
active rating are excluded as well, which covers contacts without a request id
(their rating_completed flag is never set).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Set

from domain.contact import PROMPT_MAX_DELAY, PROMPT_MIN_DELAY, ContactInteraction, PromptWindow
from domain.errors import StoreError
from domain.time import UtcClock, utc_now
from repositories.contact_repository import ContactInteractionRepository
from repositories.rating_repository import SellerRatingRepository
from services.identity import IdentityProvider

logger = logging.getLogger(__name__)


class PromptScheduler:
    def __init__(
        self,
        contacts: ContactInteractionRepository,
        ratings: SellerRatingRepository,
        *,
        min_delay: timedelta = PROMPT_MIN_DELAY,
        max_delay: timedelta = PROMPT_MAX_DELAY,
        reprompt_after_cancellation: bool = False,
    ) -> None:
        self._contacts = contacts
        self._ratings = ratings
        self._min_delay = min_delay
        self._max_delay = max_delay
        self._reprompt_after_cancellation = reprompt_after_cancellation

    def window(self, now: datetime) -> PromptWindow:
        return PromptWindow.ending_at(now, min_delay=self._min_delay, max_delay=self._max_delay)

    def find_prompt_candidates(self, subject_id: str, now: datetime) -> List[ContactInteraction]:
        """
        Contacts eligible for a rating prompt, oldest contact first.

        Raises:
            StoreError: the store failed. Periodic callers should use
                PromptSession, which degrades to "no prompt" instead.
        """

        window = self.window(now)
        candidates = [
            contact
            for contact in self._contacts.list_prompt_candidates(subject_id, window)
            if contact.is_prompt_eligible(window)
        ]
        if not candidates:
            return []

        rated_keys = {
            rating.key
            for rating in self._ratings.list_for_subject(subject_id)
            if rating.is_active or not self._reprompt_after_cancellation
        }
        return [contact for contact in candidates if contact.key not in rated_keys]

    def mark_prompted(self, contact_id: str, subject_id: str) -> bool:
        """
        Use up the prompt for one of the subject's own contacts.

        Returns False, without writing, when the contact does not exist or
        belongs to another subject.

        Raises:
            StoreError: the store failed.
        """

        contact = self._contacts.get_by_id(contact_id)
        if contact is None or contact.subject_id != subject_id:
            logger.warning("Refusing to mark contact %s as prompted for subject %s", contact_id, subject_id)
            return False
        self._contacts.mark_prompted(contact.id)
        return True


class PromptSession:
    """
    Per-session prompt state: at most one prompt at a time, and a dismissed set
    so a dismissed contact is not shown again this session even if persisting
    the prompted flag failed.
    """

    def __init__(
        self,
        scheduler: PromptScheduler,
        identity: IdentityProvider,
        *,
        clock: UtcClock = utc_now,
    ) -> None:
        self._scheduler = scheduler
        self._identity = identity
        self._clock = clock
        self._dismissed: Set[str] = set()

    @property
    def dismissed(self) -> frozenset[str]:
        return frozenset(self._dismissed)

    def pending(self) -> List[ContactInteraction]:
        """Candidates not dismissed this session; empty when the store is unavailable."""

        try:
            subject_id = self._identity.resolve_subject_id()
            candidates = self._scheduler.find_prompt_candidates(subject_id, self._clock())
        except StoreError as exc:
            logger.warning("Error fetching contacts needing rating prompts: %s", exc)
            return []
        return [contact for contact in candidates if contact.id not in self._dismissed]

    def next_prompt(self) -> Optional[ContactInteraction]:
        pending = self.pending()
        return pending[0] if pending else None

    def accept(self, contact_id: str) -> bool:
        """User chose to rate now from the prompt."""

        self._dismissed.add(contact_id)
        return self._use_up(contact_id)

    def dismiss(self, contact_id: str) -> bool:
        """User closed the prompt or chose "later"."""

        self._dismissed.add(contact_id)
        return self._use_up(contact_id)

    def _use_up(self, contact_id: str) -> bool:
        try:
            return self._scheduler.mark_prompted(contact_id, self._identity.resolve_subject_id())
        except StoreError as exc:
            logger.warning("Error marking contact %s as rating prompted: %s", contact_id, exc)
            return False


__all__ = ["PromptScheduler", "PromptSession"]
