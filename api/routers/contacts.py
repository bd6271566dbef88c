"""
Contacts API Endpoints.

Called when a buyer opens a contact channel (e.g. WhatsApp) with a seller.
Tracking must never block that action, so this endpoint always answers 200.
"""

import logging

from fastapi import APIRouter

from api.dependencies import EngineDep, IdentityDep
from api.models import ContactRequest, ContactResponse
from domain.errors import TrackingError
from services.engine import Engine
from services.identity import FixedIdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/contacts",
    response_model=ContactResponse,
    summary="Record Seller Contact",
    description="Idempotently record that the current subject contacted a seller for a request."
)
def record_contact(
    request: ContactRequest,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    """
    Record a contact.

    **Idempotency:**
    Repeating the call for the same (subject, seller, request) never creates a
    second contact row. Calls repeated within the dedup window are answered
    without touching the database (`deduplicated=true`).

    **Degraded tracking:**
    If the database is unavailable the response still has status 200, with
    `tracked=false` and a `warning`. The client should proceed with the contact.
    """
    try:
        result = engine.contact_tracker(identity).record_contact(request.seller_id, request.request_id)
    except TrackingError as e:
        logger.warning("Contact tracking failed for seller %s: %s", request.seller_id, e)
        return ContactResponse(
            tracked=False,
            warning=f"Contact could not be tracked: {e}",
        )

    return ContactResponse(
        subject_id=result.subject_id,
        tracked=True,
        created=result.created,
        deduplicated=result.deduplicated,
        contact_id=result.contact.id if result.contact else None,
        warning="; ".join(result.warnings) or None,
    )
