"""
Domain time utilities (pure).

Centralized timestamp validation and the clock seams used by services.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Callable

# Returns an aware UTC datetime. Services take one of these instead of calling
# datetime.now() so tests can pin "now".
UtcClock = Callable[[], datetime]

# Returns a monotonic-ish timestamp in milliseconds (used by the event deduper).
MillisClock = Callable[[], float]


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the contract requirement that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    """Default UtcClock."""

    return datetime.now(timezone.utc)


def monotonic_ms() -> float:
    """Default MillisClock."""

    return time.monotonic() * 1000.0
