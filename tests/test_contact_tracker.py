"""
Tests for `services/contact_tracker.py`.

Covers:
- Idempotent contact: repeated calls for one tuple produce one row.
- Null request id is its own grouping key.
- Duplicate triggers inside the dedup window never reach the store.
- Insert conflicts are recovered by re-reading the existing row.
- Analytics mirror: one profile_contacted event per tuple, failures swallowed.
- Primary store failures raise StoreError and do not poison the dedup window.
- A contact without a seller raises InvalidContact before any store access.
"""

from __future__ import annotations

import logging

import pytest

from domain.errors import (
    CONFLICT_RECOVERED,
    IdentityUnavailable,
    InvalidContact,
    StoreConflictError,
    StoreError,
    TrackingError,
)
from repositories.schema import CONTACT_INTERACTIONS_TABLE, MERCHANT_ANALYTICS_TABLE
from services.identity import FixedIdentityProvider


def test_record_contact_twice_creates_one_row(engine, store, u1, millis) -> None:
    tracker = engine.contact_tracker(u1)

    first = tracker.record_contact("s1", "r1")
    millis.advance(5_000)
    second = tracker.record_contact("s1", "r1")

    rows = store.rows(CONTACT_INTERACTIONS_TABLE)
    assert len(rows) == 1
    assert first.created is True
    assert second.created is False
    assert second.contact.id == first.contact.id


def test_new_contact_has_flags_unset_and_contacted_at_now(engine, u1, clock) -> None:
    result = engine.contact_tracker(u1).record_contact("s1", "r1")

    assert result.subject_id == "u1"
    assert result.contact.contacted_at == clock.now
    assert result.contact.rating_prompted is False
    assert result.contact.rating_completed is False


def test_null_request_is_separate_grouping_key(engine, store, u1, millis) -> None:
    tracker = engine.contact_tracker(u1)

    tracker.record_contact("s1")
    millis.advance(5_000)
    tracker.record_contact("s1", "r1")
    millis.advance(5_000)
    tracker.record_contact("s1")

    rows = store.rows(CONTACT_INTERACTIONS_TABLE)
    assert sorted(str(r["request_id"]) for r in rows) == ["None", "r1"]


def test_different_subjects_get_their_own_rows(engine, store) -> None:
    engine.contact_tracker(FixedIdentityProvider("u1")).record_contact("s1", "r1")
    engine.contact_tracker(FixedIdentityProvider("u2")).record_contact("s1", "r1")

    assert len(store.rows(CONTACT_INTERACTIONS_TABLE)) == 2


def test_duplicate_trigger_in_window_skips_store(engine, store, u1) -> None:
    tracker = engine.contact_tracker(u1)

    tracker.record_contact("s1", "r1")
    calls_before = len(store.calls)
    result = tracker.record_contact("s1", "r1")

    assert result.deduplicated is True
    assert result.contact is None
    assert len(store.calls) == calls_before


def test_first_contact_mirrors_one_analytics_event(engine, store, u1, millis) -> None:
    tracker = engine.contact_tracker(u1)

    tracker.record_contact("s1", "r1")
    millis.advance(5_000)
    tracker.record_contact("s1", "r1")

    events = store.rows(MERCHANT_ANALYTICS_TABLE)
    assert len(events) == 1
    assert events[0]["event_type"] == "profile_contacted"
    assert events[0]["merchant_id"] == "s1"
    assert events[0]["request_id"] == "r1"
    assert events[0]["user_id"] == "u1"


def test_analytics_failure_does_not_fail_contact(engine, store, u1) -> None:
    store.fail("insert", MERCHANT_ANALYTICS_TABLE)

    result = engine.contact_tracker(u1).record_contact("s1", "r1")

    assert result.created is True
    assert len(store.rows(CONTACT_INTERACTIONS_TABLE)) == 1
    assert store.rows(MERCHANT_ANALYTICS_TABLE) == []
    assert result.warnings and "analytics" in result.warnings[0]


def test_analytics_mirror_skips_existing_event(engine, store, u1) -> None:
    """An event left behind by an earlier partial run is not duplicated."""

    store.inner.insert(
        MERCHANT_ANALYTICS_TABLE,
        {"merchant_id": "s1", "request_id": "r1", "event_type": "profile_contacted", "user_id": "u1"},
    )

    engine.contact_tracker(u1).record_contact("s1", "r1")

    assert len(store.rows(MERCHANT_ANALYTICS_TABLE)) == 1


def test_insert_conflict_is_recovered(engine, store, u1, monkeypatch, caplog) -> None:
    """Simulate losing the race: the row appears between the existence check and the insert."""

    original_insert = store.insert

    def racing_insert(table, record):
        if table == CONTACT_INTERACTIONS_TABLE:
            store.inner.insert(table, dict(record))
            raise StoreConflictError(table)
        return original_insert(table, record)

    monkeypatch.setattr(store, "insert", racing_insert)
    caplog.set_level(logging.INFO, logger="services.contact_tracker")

    result = engine.contact_tracker(u1).record_contact("s1", "r1")

    assert result.conflict_recovered is True
    assert CONFLICT_RECOVERED in caplog.text
    assert result.created is False
    assert result.contact is not None
    assert len(store.rows(CONTACT_INTERACTIONS_TABLE)) == 1
    # The winner of the race owns the analytics write.
    assert store.rows(MERCHANT_ANALYTICS_TABLE) == []


def test_store_failure_raises_and_allows_immediate_retry(engine, store, u1) -> None:
    tracker = engine.contact_tracker(u1)
    store.fail("find", CONTACT_INTERACTIONS_TABLE)

    with pytest.raises(StoreError):
        tracker.record_contact("s1", "r1")

    store.heal()
    result = tracker.record_contact("s1", "r1")

    assert result.deduplicated is False
    assert result.created is True


@pytest.mark.parametrize("seller_id", ["", None])
def test_missing_seller_is_rejected_before_store(engine, store, u1, seller_id) -> None:
    calls_before = len(store.calls)

    with pytest.raises(InvalidContact) as exc_info:
        engine.contact_tracker(u1).record_contact(seller_id, "r1")

    assert isinstance(exc_info.value, TrackingError)
    assert exc_info.value.code == "invalid_contact"
    assert len(store.calls) == calls_before


def test_identity_unavailable(engine) -> None:
    with pytest.raises(IdentityUnavailable):
        engine.contact_tracker(FixedIdentityProvider(None)).record_contact("s1", "r1")
