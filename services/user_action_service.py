"""
Generic user-action telemetry.

Page views, navigation and UI clicks are high-frequency and prone to double
firing (re-renders, bubbling handlers). Each kind is gated by a scoped dedup
key, and every payload is gated again by a hash of its content, before one row
is appended to `user_analytics`. Telemetry never raises to the caller.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from domain.analytics import UserAction
from domain.errors import StoreError
from domain.time import UtcClock, utc_now
from repositories.analytics_repository import UserActionRepository
from services.event_deduper import EventDeduper

logger = logging.getLogger(__name__)

NAVIGATION_WINDOW_MS = 2000
CLICK_WINDOW_MS = 1000
PAYLOAD_WINDOW_MS = 2000


class RecordStatus(str, Enum):
    RECORDED = "recorded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    status: RecordStatus
    reason: Optional[str] = None


def payload_fingerprint(action: UserAction) -> str:
    return json.dumps(
        [action.event_type, action.page_url, dict(action.event_details), action.actor_id],
        sort_keys=True,
        default=str,
    )


class UserActionRecorder:
    def __init__(
        self,
        repository: UserActionRepository,
        deduper: EventDeduper,
        *,
        clock: UtcClock = utc_now,
        navigation_window_ms: int = NAVIGATION_WINDOW_MS,
        click_window_ms: int = CLICK_WINDOW_MS,
        payload_window_ms: int = PAYLOAD_WINDOW_MS,
    ) -> None:
        self._repository = repository
        self._deduper = deduper
        self._clock = clock
        self._navigation_window_ms = navigation_window_ms
        self._click_window_ms = click_window_ms
        self._payload_window_ms = payload_window_ms

    def record(self, action: UserAction) -> RecordOutcome:
        """Append an action unless an identical payload was sent within the payload window."""

        if not self._deduper.should_proceed(f"payload:{payload_fingerprint(action)}", self._payload_window_ms):
            logger.debug("Skipping duplicate analytics payload %s", action.event_type)
            return RecordOutcome(RecordStatus.SKIPPED, "duplicate")

        try:
            self._repository.record(action, self._clock())
        except StoreError as exc:
            logger.error("Failed to insert analytics event %s: %s", action.event_type, exc)
            return RecordOutcome(RecordStatus.FAILED, str(exc))
        return RecordOutcome(RecordStatus.RECORDED)

    def record_page_view(self, path: str, *, actor_id: Optional[str] = None, search: str = "", page_url: str = "") -> RecordOutcome:
        to = path + search
        if not self._deduper.should_proceed(f"page_view:{to}", self._navigation_window_ms):
            return RecordOutcome(RecordStatus.SKIPPED, "duplicate")
        return self.record(
            UserAction(
                event_type="page_view",
                actor_id=actor_id,
                event_details={"pathname": path, "search": search},
                event_description="Page view",
                page_url=page_url or to,
            )
        )

    def record_navigation(self, from_path: str, to_path: str, *, actor_id: Optional[str] = None, page_url: str = "") -> RecordOutcome:
        if from_path == to_path:
            return RecordOutcome(RecordStatus.SKIPPED, "same_location")
        if not self._deduper.should_proceed(f"navigation:{from_path}->{to_path}", self._navigation_window_ms):
            return RecordOutcome(RecordStatus.SKIPPED, "duplicate")
        return self.record(
            UserAction(
                event_type="navigation",
                actor_id=actor_id,
                event_details={"from": from_path, "to": to_path},
                event_description="Navigation",
                page_url=page_url or to_path,
            )
        )

    def record_click(
        self,
        page: str,
        *,
        analytics_id: Optional[str] = None,
        text: Optional[str] = None,
        tag: str = "BUTTON",
        actor_id: Optional[str] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> RecordOutcome:
        label = analytics_id or (text or "").strip() or tag
        if not self._deduper.should_proceed(f"ui_click:{label}:{page}", self._click_window_ms):
            return RecordOutcome(RecordStatus.SKIPPED, "duplicate")

        details: dict[str, Any] = {
            "tag": tag,
            "analytics_id": analytics_id,
            "text": (text or "")[:200],
            "page": page,
        }
        if extra:
            details.update(extra)
        return self.record(
            UserAction(
                event_type="ui_click",
                actor_id=actor_id,
                event_details=details,
                event_description=f"UI click: {label}",
                page_url=page,
            )
        )


__all__ = [
    "RecordStatus",
    "RecordOutcome",
    "UserActionRecorder",
    "payload_fingerprint",
    "NAVIGATION_WINDOW_MS",
    "CLICK_WINDOW_MS",
    "PAYLOAD_WINDOW_MS",
]
