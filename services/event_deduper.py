"""
Time-windowed suppression of repeated identical signals.

Absorbs double-submits, re-renders and rapid re-clicks: a key that was
accepted less than `window_ms` ago is suppressed. Suppressed calls do not
refresh the timestamp, so a steady stream of repeats still lets one through
per window.

Entries live for the lifetime of the instance; there is no eviction.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from domain.time import MillisClock, monotonic_ms

logger = logging.getLogger(__name__)


class EventDeduper:
    def __init__(self, clock: Optional[MillisClock] = None) -> None:
        self._clock = clock or monotonic_ms
        self._lock = threading.Lock()
        self._last_accepted: Dict[str, float] = {}

    def should_proceed(self, key: str, window_ms: float) -> bool:
        """
        Return True and stamp `key` if at least `window_ms` elapsed since its
        last acceptance (or it was never seen); otherwise return False.
        """

        if window_ms < 0:
            raise ValueError("window_ms must be >= 0")

        with self._lock:
            now = self._clock()
            last = self._last_accepted.get(key)
            if last is not None and now - last < window_ms:
                logger.debug("Suppressed duplicate signal %r (%.0fms since last)", key, now - last)
                return False
            self._last_accepted[key] = now
            return True

    def forget(self, key: str) -> None:
        with self._lock:
            self._last_accepted.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._last_accepted.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_accepted)


__all__ = ["EventDeduper"]
