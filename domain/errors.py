"""
Domain: error taxonomy for contact tracking and the rating ledger.

Tracking errors (bad contact input, identity, store) are failures callers log
while letting the user's primary action continue. Rating errors protect business
invariants (no unearned ratings, no resurrection after cancellation) and are
shown to the user. Every RatingError carries a stable `code` for API clients.
"""

from __future__ import annotations


class TrackingError(Exception):
    """Base class for failures while tracking a contact: bad input, identity or store."""


class IdentityUnavailable(TrackingError):
    """No subject identifier could be resolved for the current actor."""


class InvalidContact(TrackingError):
    """A contact was reported without a seller, so there is nothing to track."""

    code = "invalid_contact"


class StoreError(TrackingError):
    """The remote record store failed (network, timeout, unexpected response)."""


class StoreConflictError(StoreError):
    """
    An insert violated a uniqueness constraint.

    Callers treat this as "the row already exists": re-read it and proceed.
    """

    def __init__(self, table: str, message: str = "") -> None:
        self.table = table
        super().__init__(message or f"Unique constraint violated on {table}")


# Outcome code for a unique violation resolved by re-reading the existing row.
# It is logged and reported on results, never raised.
CONFLICT_RECOVERED = "conflict_recovered"


class RatingError(Exception):
    """Base class for user-visible rating ledger failures."""

    code = "rating_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    default_message = "Rating operation failed"


class ValidationError(RatingError, ValueError):
    """Rating input failed validation before any store write."""

    code = "validation_error"
    default_message = "Invalid rating input"


class NotContacted(RatingError):
    code = "not_contacted"
    default_message = "You can only rate merchants you have contacted"


class RatingCancelled(RatingError):
    code = "rating_cancelled"
    default_message = "This rating has been cancelled and cannot be modified"


class NoRatingFound(RatingError):
    code = "no_rating_found"
    default_message = "No rating found to cancel"


class AlreadyCancelled(RatingError):
    code = "already_cancelled"
    default_message = "Rating is already cancelled"


class NotCancellable(RatingError):
    code = "not_cancellable"
    default_message = "This rating cannot be cancelled"


__all__ = [
    "TrackingError",
    "IdentityUnavailable",
    "InvalidContact",
    "StoreError",
    "StoreConflictError",
    "CONFLICT_RECOVERED",
    "RatingError",
    "ValidationError",
    "NotContacted",
    "RatingCancelled",
    "NoRatingFound",
    "AlreadyCancelled",
    "NotCancellable",
]
