"""
Engine wiring.

Builds the record store and repositories once per process and hands out
services bound to a subject's IdentityProvider. The EventDeduper is shared by
everything built from one Engine, so duplicate triggers arriving through
different call paths are suppressed together.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from domain.time import MillisClock, UtcClock, monotonic_ms, utc_now
from repositories.analytics_repository import MerchantAnalyticsRepository, UserActionRepository
from repositories.contact_repository import ContactInteractionRepository
from repositories.memory_store import InMemoryRecordStore
from repositories.rating_repository import SellerRatingRepository
from repositories.schema import UNIQUE_CONSTRAINTS
from repositories.store import RecordStore
from services.contact_tracker import ContactTracker
from services.event_deduper import EventDeduper
from services.identity import IdentityProvider
from services.merchant_analytics_service import MerchantAnalyticsService
from services.prompt_scheduler import PromptScheduler, PromptSession
from services.rating_ledger import RatingLedger
from services.settings import STORE_MEMORY, EngineSettings
from services.user_action_service import UserActionRecorder

logger = logging.getLogger(__name__)


def create_store(settings: EngineSettings) -> RecordStore:
    if settings.store_backend == STORE_MEMORY:
        logger.info("Using in-memory record store")
        return InMemoryRecordStore(UNIQUE_CONSTRAINTS)

    from repositories.client import get_supabase_client
    from repositories.supabase_store import SupabaseRecordStore

    return SupabaseRecordStore(get_supabase_client())


@dataclass
class Engine:
    store: RecordStore
    settings: EngineSettings = field(default_factory=EngineSettings)
    clock: UtcClock = utc_now
    millis_clock: MillisClock = monotonic_ms
    deduper: EventDeduper = field(init=False)
    contacts: ContactInteractionRepository = field(init=False)
    ratings: SellerRatingRepository = field(init=False)
    merchant_analytics: MerchantAnalyticsRepository = field(init=False)
    user_actions: UserActionRepository = field(init=False)

    def __post_init__(self) -> None:
        self.deduper = EventDeduper(self.millis_clock)
        self.contacts = ContactInteractionRepository(self.store)
        self.ratings = SellerRatingRepository(self.store)
        self.merchant_analytics = MerchantAnalyticsRepository(self.store)
        self.user_actions = UserActionRepository(self.store)

    def contact_tracker(self, identity: IdentityProvider) -> ContactTracker:
        return ContactTracker(
            identity,
            self.contacts,
            self.merchant_analytics,
            self.deduper,
            clock=self.clock,
            dedup_window_ms=self.settings.contact_dedup_window_ms,
        )

    def rating_ledger(self, identity: IdentityProvider) -> RatingLedger:
        return RatingLedger(
            identity,
            self.contacts,
            self.ratings,
            clock=self.clock,
            review_text_max_length=self.settings.review_text_max_length,
        )

    def prompt_scheduler(self) -> PromptScheduler:
        return PromptScheduler(
            self.contacts,
            self.ratings,
            min_delay=self.settings.prompt_min_delay,
            max_delay=self.settings.prompt_max_delay,
            reprompt_after_cancellation=self.settings.prompt_reprompt_after_cancellation,
        )

    def prompt_session(self, identity: IdentityProvider) -> PromptSession:
        return PromptSession(self.prompt_scheduler(), identity, clock=self.clock)

    def merchant_analytics_service(self, identity: IdentityProvider) -> MerchantAnalyticsService:
        return MerchantAnalyticsService(identity, self.merchant_analytics, clock=self.clock)

    def user_action_recorder(self) -> UserActionRecorder:
        return UserActionRecorder(
            self.user_actions,
            self.deduper,
            clock=self.clock,
            navigation_window_ms=self.settings.navigation_dedup_window_ms,
            click_window_ms=self.settings.click_dedup_window_ms,
            payload_window_ms=self.settings.payload_dedup_window_ms,
        )


def build_engine(settings: Optional[EngineSettings] = None, store: Optional[RecordStore] = None) -> Engine:
    settings = settings or EngineSettings.from_env()
    return Engine(store=store or create_store(settings), settings=settings)


__all__ = ["Engine", "build_engine", "create_store"]
