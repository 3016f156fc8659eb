"""
FastAPI routes for linking Strava accounts and receiving Strava webhooks.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from strava_relay.clients import OAuthStateSigner, StravaOAuthClient
from strava_relay.dependencies import (
    get_credential_service,
    get_event_dispatcher,
    get_state_signer,
    get_strava_oauth_client,
    get_webhook_trust_gate,
)
from strava_relay.services import (
    ActivityEventDispatcher,
    StravaCredentialService,
    WebhookTrustGate,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/strava/authorize")
async def start_strava_oauth_flow(
    oauth_client: Annotated[StravaOAuthClient, Depends(get_strava_oauth_client)],
    state_signer: Annotated[OAuthStateSigner, Depends(get_state_signer)],
    user_id: str = Query(
        ..., min_length=1, description="Discord user id initiating the link."
    ),
) -> RedirectResponse:
    """Redirect the user to the Strava consent screen with a signed state."""
    logger.info("Processing auth request for Discord user %s", user_id)
    state = state_signer.sign(user_id)
    authorization_url = oauth_client.build_authorization_url(state=state)

    logger.info("Redirecting to Strava OAuth for user %s", user_id)
    return RedirectResponse(
        url=authorization_url, status_code=HTTPStatus.FOUND
    )


@router.get("/strava/callback", response_class=PlainTextResponse)
async def handle_strava_oauth_callback(
    state_signer: Annotated[OAuthStateSigner, Depends(get_state_signer)],
    credential_service: Annotated[
        StravaCredentialService, Depends(get_credential_service)
    ],
    code: str = Query(..., min_length=1, description="Authorization code."),
    state: str = Query(..., min_length=1, description="Signed OAuth state."),
) -> str:
    """Verify the state, exchange the code and store the credential."""
    owner_id = state_signer.verify(state)
    logger.info("Processing callback for Discord user %s", owner_id)

    credential = await credential_service.link_account(owner_id=owner_id, code=code)
    logger.info(
        "Stored auth data for Discord user %s, athlete %s",
        owner_id,
        credential.athlete_id,
    )
    return "Authorized with Strava"


@router.get("/strava/webhook")
async def verify_strava_webhook(
    gate: Annotated[WebhookTrustGate, Depends(get_webhook_trust_gate)],
    mode: str = Query(..., alias="hub.mode"),
    verify_token: str = Query(..., alias="hub.verify_token"),
    challenge: str = Query(..., alias="hub.challenge"),
) -> dict:
    """Answer the push subscription handshake."""
    logger.info("Processing webhook verification")
    echoed = gate.verify_handshake(mode, verify_token, challenge)
    # Strava expects this exact key back.
    return {"hub.challenge": echoed}


@router.post("/strava/webhook", response_class=PlainTextResponse)
async def receive_strava_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    gate: Annotated[WebhookTrustGate, Depends(get_webhook_trust_gate)],
    dispatcher: Annotated[ActivityEventDispatcher, Depends(get_event_dispatcher)],
) -> str:
    """Acknowledge a webhook event and process it after the response is sent."""
    event = gate.validate_event(await request.body())
    background_tasks.add_task(dispatcher.dispatch_safely, event)
    return "Event processed"


__all__ = ["router"]
