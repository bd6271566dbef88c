"""
Tests for `services/event_deduper.py`.

Covers:
- First call proceeds, immediate repeats are suppressed.
- A key proceeds again once the window has elapsed.
- Suppressed calls do not refresh the timestamp.
- Keys are independent of each other.
"""

from __future__ import annotations

import threading

import pytest

from services.event_deduper import EventDeduper


def test_should_proceed_true_then_suppressed_then_true_after_window(millis) -> None:
    """Verify the dedup window: true, false for repeats, true once 1000ms elapsed."""

    deduper = EventDeduper(millis)

    assert deduper.should_proceed("k", 1000) is True
    assert deduper.should_proceed("k", 1000) is False
    millis.advance(999)
    assert deduper.should_proceed("k", 1000) is False
    millis.advance(1)
    assert deduper.should_proceed("k", 1000) is True


def test_suppressed_call_does_not_refresh_timestamp(millis) -> None:
    """Verify repeats inside the window do not extend it."""

    deduper = EventDeduper(millis)

    assert deduper.should_proceed("click", 1000)
    millis.advance(600)
    assert not deduper.should_proceed("click", 1000)
    millis.advance(600)
    # 1200ms after the accepted call, even though only 600ms after the suppressed one.
    assert deduper.should_proceed("click", 1000)


def test_keys_are_independent(millis) -> None:
    deduper = EventDeduper(millis)

    assert deduper.should_proceed("page_view:/a", 2000)
    assert deduper.should_proceed("page_view:/b", 2000)
    assert not deduper.should_proceed("page_view:/a", 2000)
    assert len(deduper) == 2


def test_first_call_proceeds_even_at_clock_zero(millis) -> None:
    millis.now = 0.0
    deduper = EventDeduper(millis)

    assert deduper.should_proceed("k", 1000) is True
    assert deduper.should_proceed("k", 1000) is False


def test_forget_and_clear_reset_keys(millis) -> None:
    deduper = EventDeduper(millis)

    deduper.should_proceed("a", 1000)
    deduper.should_proceed("b", 1000)

    deduper.forget("a")
    assert deduper.should_proceed("a", 1000) is True

    deduper.clear()
    assert len(deduper) == 0
    assert deduper.should_proceed("b", 1000) is True


def test_negative_window_rejected(millis) -> None:
    with pytest.raises(ValueError):
        EventDeduper(millis).should_proceed("k", -1)


def test_concurrent_checks_accept_exactly_once(millis) -> None:
    """Verify simultaneous checks for one key let exactly one through."""

    deduper = EventDeduper(millis)
    results: list[bool] = []
    barrier = threading.Barrier(8)

    def check() -> None:
        barrier.wait()
        results.append(deduper.should_proceed("contact:u1:s1:r1", 2000))

    threads = [threading.Thread(target=check) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert results.count(False) == 7
