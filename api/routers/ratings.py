"""
Ratings API Endpoints.

Rating failures protect business rules and are returned to the client with a
stable error code: 400 invalid input, 403 not contacted, 404 nothing to
cancel, 409 cancelled / not cancellable.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import EngineDep, IdentityDep
from api.models import (
    RatingCancelRequest,
    RatingResponse,
    RatingStatusResponse,
    RatingSubmitRequest,
    SellerRatingsResponse,
)
from domain.errors import (
    AlreadyCancelled,
    NoRatingFound,
    NotCancellable,
    NotContacted,
    RatingCancelled,
    RatingError,
    StoreError,
    ValidationError,
)
from services.engine import Engine
from services.identity import FixedIdentityProvider

router = APIRouter()

_STATUS_BY_ERROR = {
    ValidationError: 400,
    NotContacted: 403,
    NoRatingFound: 404,
    RatingCancelled: 409,
    AlreadyCancelled: 409,
    NotCancellable: 409,
}


def _rating_http_error(e: RatingError) -> HTTPException:
    status_code = _STATUS_BY_ERROR.get(type(e), 400)
    return HTTPException(status_code=status_code, detail={"error": e.code, "message": str(e)})


def _store_http_error(action: str, e: StoreError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Failed to {action}: {str(e)}")


@router.get(
    "/ratings/{seller_id}/status",
    response_model=RatingStatusResponse,
    summary="Get Rating Status",
    description="Whether the current subject can rate or cancel a rating for a seller and request."
)
def get_rating_status(
    seller_id: str,
    request_id: Optional[str] = Query(None, description="Request the contact belongs to"),
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    try:
        status = engine.rating_ledger(identity).get_status(seller_id, request_id)
    except StoreError as e:
        raise _store_http_error("get rating status", e)
    return RatingStatusResponse.from_domain(status)


@router.post(
    "/ratings/{seller_id}",
    response_model=RatingResponse,
    summary="Submit Rating",
    description="Create or update the current subject's rating. Requires a prior contact."
)
def submit_rating(
    seller_id: str,
    request: RatingSubmitRequest,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    """
    Submit a rating.

    A second submission for the same seller and request updates the existing
    rating in place. Cancelled ratings cannot be resubmitted.
    """
    try:
        rating = engine.rating_ledger(identity).submit_rating(
            seller_id,
            request.rating,
            review_text=request.review_text,
            request_id=request.request_id,
        )
    except RatingError as e:
        raise _rating_http_error(e)
    except StoreError as e:
        raise _store_http_error("submit rating", e)
    return RatingResponse.from_domain(rating)


@router.post(
    "/ratings/{seller_id}/cancel",
    response_model=RatingResponse,
    summary="Cancel Rating",
    description="Cancel the current subject's rating. Cancellation is permanent."
)
def cancel_rating(
    seller_id: str,
    request: RatingCancelRequest,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    try:
        rating = engine.rating_ledger(identity).cancel_rating(seller_id, request.request_id)
    except RatingError as e:
        raise _rating_http_error(e)
    except StoreError as e:
        raise _store_http_error("cancel rating", e)
    return RatingResponse.from_domain(rating)


@router.get(
    "/sellers/{seller_id}/ratings",
    response_model=SellerRatingsResponse,
    summary="List Seller Ratings",
    description="Active (non-cancelled) ratings for a seller, newest first."
)
def list_seller_ratings(
    seller_id: str,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    try:
        ratings = engine.rating_ledger(identity).list_seller_ratings(seller_id)
    except StoreError as e:
        raise _store_http_error("list ratings", e)

    average = round(sum(r.rating for r in ratings) / len(ratings), 2) if ratings else None
    return SellerRatingsResponse(
        seller_id=seller_id,
        ratings=[RatingResponse.from_domain(r) for r in ratings],
        total_count=len(ratings),
        average_rating=average,
    )
