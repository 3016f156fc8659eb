"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_activity_client,
    get_credential_service,
    get_credential_store,
    get_discord_notifier,
    get_event_dispatcher,
    get_state_signer,
    get_strava_oauth_client,
    get_webhook_trust_gate,
)

__all__ = [
    "get_activity_client",
    "get_credential_service",
    "get_credential_store",
    "get_discord_notifier",
    "get_event_dispatcher",
    "get_state_signer",
    "get_strava_oauth_client",
    "get_webhook_trust_gate",
]
