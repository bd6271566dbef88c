"""
Rating Prompt API Endpoints.

Clients poll `GET /prompts/next` (every `poll_interval_minutes`, 30 by default) and
report whether the user rated from the prompt or dismissed it. Store failures
mean "no prompt this cycle", never an error.
"""

from fastapi import APIRouter

from api.dependencies import EngineDep, IdentityDep
from api.models import ContactInteractionResponse, PromptActionResponse, PromptResponse
from services.engine import Engine
from services.identity import FixedIdentityProvider

router = APIRouter()


@router.get(
    "/prompts/next",
    response_model=PromptResponse,
    summary="Next Rating Prompt",
    description="The single contact the current subject should be asked to rate now, if any."
)
def next_prompt(
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    contact = engine.prompt_session(identity).next_prompt()
    return PromptResponse(
        contact=ContactInteractionResponse.from_domain(contact) if contact else None,
        poll_interval_minutes=engine.settings.prompt_poll_interval_minutes,
    )


@router.post(
    "/prompts/{contact_id}/accept",
    response_model=PromptActionResponse,
    summary="Accept Rating Prompt",
)
def accept_prompt(
    contact_id: str,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    persisted = engine.prompt_session(identity).accept(contact_id)
    return PromptActionResponse(contact_id=contact_id, persisted=persisted)


@router.post(
    "/prompts/{contact_id}/dismiss",
    response_model=PromptActionResponse,
    summary="Dismiss Rating Prompt",
)
def dismiss_prompt(
    contact_id: str,
    engine: Engine = EngineDep,
    identity: FixedIdentityProvider = IdentityDep,
):
    persisted = engine.prompt_session(identity).dismiss(contact_id)
    return PromptActionResponse(contact_id=contact_id, persisted=persisted)
