"""
Tests for `services/prompt_scheduler.py`.

Covers:
- Candidates are unprompted, uncompleted contacts aged 24h to 48h.
- Rated and cancelled tuples are never prompted.
- Showing or dismissing a prompt marks it prompted permanently.
- The session dismissed set hides a contact even if marking it failed.
- Only the contact's own subject can use up its prompt.
- Store failures degrade to "no prompt".
"""

from __future__ import annotations

import pytest

from domain.errors import StoreError
from repositories.schema import CONTACT_INTERACTIONS_TABLE, SELLER_RATINGS_TABLE
from services.engine import Engine
from services.identity import FixedIdentityProvider
from services.settings import EngineSettings


def _contact_at(engine, clock, hours_ago: float, seller_id: str, request_id="r1", subject="u1"):
    """Record a contact that happened `hours_ago` before the clock's current time."""

    now = clock.now
    clock.advance(hours=-hours_ago)
    result = engine.contact_tracker(FixedIdentityProvider(subject)).record_contact(seller_id, request_id)
    clock.now = now
    return result.contact


@pytest.mark.parametrize(
    "hours_ago, expected",
    [(30, True), (10, False), (60, False), (24, False), (48, True)],
)
def test_candidate_window(engine, clock, hours_ago, expected) -> None:
    contact = _contact_at(engine, clock, hours_ago, "s1")

    candidates = engine.prompt_scheduler().find_prompt_candidates("u1", clock.now)

    assert (contact.id in [c.id for c in candidates]) is expected


def test_candidates_are_scoped_to_subject(engine, clock) -> None:
    _contact_at(engine, clock, 30, "s1", subject="u2")

    assert engine.prompt_scheduler().find_prompt_candidates("u1", clock.now) == []


def test_candidates_oldest_first(engine, clock) -> None:
    newer = _contact_at(engine, clock, 26, "s1")
    older = _contact_at(engine, clock, 40, "s2")

    candidates = engine.prompt_scheduler().find_prompt_candidates("u1", clock.now)

    assert [c.id for c in candidates] == [older.id, newer.id]


def test_completed_contact_is_not_a_candidate(engine, clock, u1) -> None:
    _contact_at(engine, clock, 30, "s1")
    engine.rating_ledger(u1).submit_rating("s1", 5, request_id="r1")

    assert engine.prompt_scheduler().find_prompt_candidates("u1", clock.now) == []


def test_rated_contact_without_request_is_not_a_candidate(engine, clock, u1) -> None:
    _contact_at(engine, clock, 30, "s1", request_id=None)
    engine.rating_ledger(u1).submit_rating("s1", 5)

    assert engine.prompt_scheduler().find_prompt_candidates("u1", clock.now) == []


def test_cancelled_rating_is_not_reprompted(engine, clock, u1) -> None:
    _contact_at(engine, clock, 30, "s1")
    ledger = engine.rating_ledger(u1)
    ledger.submit_rating("s1", 5, request_id="r1")
    ledger.cancel_rating("s1", request_id="r1")

    # Cancel reopened rating_completed, but the tuple is terminal.
    assert engine.prompt_scheduler().find_prompt_candidates("u1", clock.now) == []


def test_cancelled_rating_reprompted_when_enabled(engine, store, clock, millis, u1) -> None:
    contact = _contact_at(engine, clock, 30, "s1")
    ledger = engine.rating_ledger(u1)
    ledger.submit_rating("s1", 5, request_id="r1")
    ledger.cancel_rating("s1", request_id="r1")

    reprompting = Engine(
        store=store,
        settings=EngineSettings(store_backend="memory", prompt_reprompt_after_cancellation=True),
        clock=clock,
        millis_clock=millis,
    )
    scheduler = reprompting.prompt_scheduler()

    assert [c.id for c in scheduler.find_prompt_candidates("u1", clock.now)] == [contact.id]


def test_session_next_prompt_and_dismiss(engine, clock, store, u1) -> None:
    contact = _contact_at(engine, clock, 30, "s1")
    session = engine.prompt_session(u1)

    assert session.next_prompt().id == contact.id
    assert session.dismiss(contact.id) is True

    row = store.rows(CONTACT_INTERACTIONS_TABLE)[0]
    assert row["rating_prompted"] is True
    assert session.next_prompt() is None
    # A fresh session also sees nothing: the flag is persisted.
    assert engine.prompt_session(u1).next_prompt() is None


def test_session_accept_uses_up_prompt(engine, clock, store, u1) -> None:
    contact = _contact_at(engine, clock, 30, "s1")
    session = engine.prompt_session(u1)

    assert session.accept(contact.id) is True
    assert contact.id in session.dismissed
    assert store.rows(CONTACT_INTERACTIONS_TABLE)[0]["rating_prompted"] is True


@pytest.mark.parametrize("action", ["dismiss", "accept"])
def test_other_subject_cannot_use_up_prompt(engine, clock, store, u1, action) -> None:
    contact = _contact_at(engine, clock, 30, "s1")
    other = engine.prompt_session(FixedIdentityProvider("u2"))

    assert getattr(other, action)(contact.id) is False

    assert store.rows(CONTACT_INTERACTIONS_TABLE)[0]["rating_prompted"] is False
    assert engine.prompt_session(u1).next_prompt().id == contact.id


def test_unknown_contact_is_not_marked(engine, u1) -> None:
    assert engine.prompt_session(u1).dismiss("no-such-contact") is False


def test_prompted_contact_stays_prompted_after_later_polls(engine, clock, u1) -> None:
    contact = _contact_at(engine, clock, 30, "s1")
    engine.prompt_session(u1).dismiss(contact.id)

    clock.advance(hours=10)

    assert engine.prompt_session(u1).pending() == []


def test_dismissed_set_hides_contact_when_mark_fails(engine, clock, store, u1) -> None:
    first = _contact_at(engine, clock, 30, "s1")
    second = _contact_at(engine, clock, 28, "s2")
    session = engine.prompt_session(u1)
    store.fail("update", CONTACT_INTERACTIONS_TABLE)

    assert session.dismiss(first.id) is False

    assert [c.id for c in session.pending()] == [second.id]
    assert store.rows(CONTACT_INTERACTIONS_TABLE)[0]["rating_prompted"] is False


def test_session_degrades_on_store_failure(engine, clock, store, u1) -> None:
    _contact_at(engine, clock, 30, "s1")
    store.fail("find", CONTACT_INTERACTIONS_TABLE)

    assert engine.prompt_session(u1).next_prompt() is None


def test_scheduler_raises_on_store_failure(engine, clock, store) -> None:
    _contact_at(engine, clock, 30, "s1")
    store.fail("find", SELLER_RATINGS_TABLE)

    with pytest.raises(StoreError):
        engine.prompt_scheduler().find_prompt_candidates("u1", clock.now)
