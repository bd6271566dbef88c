"""
Analytics API Endpoints.

Generic user-action telemetry (deduplicated, never fails the request) and
merchant match/contact statistics.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException

from api.dependencies import EngineDep, IdentityDep
from api.models import (
    MerchantMatchRequest,
    MerchantStatsResponse,
    UserActionRequest,
    UserActionResponse,
)
from domain.analytics import UserAction
from domain.errors import StoreError
from services.engine import Engine
from services.identity import FixedIdentityProvider

router = APIRouter()

# Click details with a dedicated parameter; anything else is passed through.
CLICK_FIELDS = frozenset({"page", "analytics_id", "text", "tag"})


@router.post(
    "/events",
    response_model=UserActionResponse,
    summary="Record User Action",
    description="Record a UI telemetry event. Identical events within a short window are skipped."
)
def record_user_action(
    request: UserActionRequest,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    recorder = engine.user_action_recorder()
    actor_id: Optional[str] = identity.resolve_subject_id()
    details = request.event_details

    if request.event_type == "page_view" and "pathname" in details:
        outcome = recorder.record_page_view(
            str(details["pathname"]),
            actor_id=actor_id,
            search=str(details.get("search", "")),
            page_url=request.page_url,
        )
    elif request.event_type == "navigation" and "from" in details and "to" in details:
        outcome = recorder.record_navigation(
            str(details["from"]),
            str(details["to"]),
            actor_id=actor_id,
            page_url=request.page_url,
        )
    elif request.event_type == "ui_click":
        extra = {k: v for k, v in details.items() if k not in CLICK_FIELDS}
        outcome = recorder.record_click(
            str(details.get("page") or request.page_url),
            analytics_id=details.get("analytics_id"),
            text=details.get("text"),
            tag=str(details.get("tag") or "BUTTON"),
            actor_id=actor_id,
            extra=extra,
        )
    else:
        outcome = recorder.record(
            UserAction(
                event_type=request.event_type,
                actor_id=actor_id,
                event_details=details,
                event_description=request.event_description,
                page_url=request.page_url,
            )
        )

    return UserActionResponse(status=outcome.status.value, reason=outcome.reason)


@router.post(
    "/merchants/{merchant_id}/matches",
    status_code=201,
    summary="Track Merchant Match",
    description="Record that a merchant profile was matched to the current subject's request."
)
def track_merchant_match(
    merchant_id: str,
    request: MerchantMatchRequest,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    try:
        event = engine.merchant_analytics_service(identity).track_merchant_match(merchant_id, request.request_id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to track merchant match: {str(e)}")
    return {"id": event.id, "merchant_id": event.merchant_id, "event_type": event.event_type.value}


@router.get(
    "/merchants/{merchant_id}/stats",
    response_model=MerchantStatsResponse,
    summary="Merchant Stats",
)
def get_merchant_stats(
    merchant_id: str,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    stats = engine.merchant_analytics_service(identity).get_merchant_stats(merchant_id)
    return MerchantStatsResponse(
        merchant_id=merchant_id,
        total_matches=stats.total_matches,
        total_contacts=stats.total_contacts,
        match_to_contact_ratio=stats.match_to_contact_ratio,
        recent_matches=stats.recent_matches,
        recent_contacts=stats.recent_contacts,
    )
