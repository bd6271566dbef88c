"""
Tests for `domain/rating.py`.

Covers contract rules:
- Ratings are whole numbers in [1, 5]; review text is at most 500 characters.
- A cancelled rating can never be cancellable.
- Status: can_rate requires contact and no active rating; CANCELLED is terminal.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from domain.errors import ValidationError
from domain.rating import RatingInput, RatingState, SellerRating, build_rating_status, derive_rating_state

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _rating(**kwargs) -> SellerRating:
    defaults = dict(id="r-1", subject_id="u1", seller_id="s1", request_id="r1", rating=4)
    defaults.update(kwargs)
    return SellerRating(**defaults)


@pytest.mark.parametrize("value", [1, 3, 5])
def test_rating_input_accepts_valid_range(value: int) -> None:
    assert RatingInput.parse(value).rating == value


@pytest.mark.parametrize("value", [0, 6, -1, 4.5, "4", True, None])
def test_rating_input_rejects_invalid_values(value: object) -> None:
    with pytest.raises(ValidationError):
        RatingInput.parse(value)


def test_review_text_length_limit() -> None:
    assert RatingInput.parse(5, "x" * 500).review_text == "x" * 500

    with pytest.raises(ValidationError):
        RatingInput.parse(5, "x" * 501)


def test_blank_review_text_is_dropped() -> None:
    assert RatingInput.parse(3, "   ").review_text is None


def test_validation_error_is_a_value_error_with_code() -> None:
    with pytest.raises(ValueError) as exc_info:
        RatingInput.parse(9)

    assert exc_info.value.code == "validation_error"


def test_cancelled_rating_cannot_be_cancellable() -> None:
    with pytest.raises(ValueError):
        _rating(is_cancelled=True, can_be_cancelled=True)


def test_cancelled_transition_clears_cancellable_flag() -> None:
    cancelled = _rating().cancelled(NOW)

    assert cancelled.is_cancelled is True
    assert cancelled.can_be_cancelled is False
    assert cancelled.updated_at == NOW

    with pytest.raises(ValueError):
        cancelled.revised(2, None, NOW)


def test_derive_rating_state() -> None:
    assert derive_rating_state(False, None) is RatingState.NO_CONTACT
    assert derive_rating_state(True, None) is RatingState.ELIGIBLE
    assert derive_rating_state(True, _rating()) is RatingState.RATED
    assert derive_rating_state(True, _rating(is_cancelled=True, can_be_cancelled=False)) is RatingState.CANCELLED


def test_status_without_contact() -> None:
    status = build_rating_status(False, None)

    assert (status.can_rate, status.can_cancel, status.rating) == (False, False, None)


def test_status_eligible() -> None:
    status = build_rating_status(True, None)

    assert status.can_rate is True
    assert status.can_cancel is False


def test_status_rated() -> None:
    rating = _rating()
    status = build_rating_status(True, rating)

    assert status.rating == rating
    assert status.can_rate is False
    assert status.can_cancel is True


def test_status_rated_but_not_cancellable() -> None:
    status = build_rating_status(True, _rating(can_be_cancelled=False))

    assert status.can_cancel is False


def test_status_cancelled_is_terminal() -> None:
    status = build_rating_status(True, _rating(is_cancelled=True, can_be_cancelled=False))

    assert status.state is RatingState.CANCELLED
    assert status.rating is None
    assert status.can_rate is False
    assert status.can_cancel is False
