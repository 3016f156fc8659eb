"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Each factory reads the process settings once and passes the relevant group to
the component constructor.
"""

from functools import lru_cache

from strava_relay.clients import (
    CredentialStore,
    DiscordWebhookClient,
    OAuthStateSigner,
    StravaActivityClient,
    StravaOAuthClient,
    build_credential_store,
)
from strava_relay.core.config import get_settings
from strava_relay.services import (
    ActivityEventDispatcher,
    DiscordNotifier,
    StravaCredentialService,
    WebhookTrustGate,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_state_signer() -> OAuthStateSigner:
    """Provide the OAuth state signer keyed with the configured secret."""
    return OAuthStateSigner(secret_key=_settings().security.state_signing_secret)


@lru_cache()
def get_strava_oauth_client() -> StravaOAuthClient:
    """Create a singleton Strava OAuth client."""
    settings = _settings()
    return StravaOAuthClient(settings.strava, timeout=settings.http_timeout_seconds)


@lru_cache()
def get_credential_store() -> CredentialStore:
    """Provide the credential store chosen from the storage settings."""
    return build_credential_store(_settings().storage)


@lru_cache()
def get_credential_service() -> StravaCredentialService:
    """Provide helper for managing Strava credentials."""
    return StravaCredentialService(
        store=get_credential_store(),
        oauth_client=get_strava_oauth_client(),
    )


@lru_cache()
def get_activity_client() -> StravaActivityClient:
    """Provide the Strava activity client."""
    return StravaActivityClient(timeout=_settings().http_timeout_seconds)


@lru_cache()
def get_discord_notifier() -> DiscordNotifier:
    """Provide the Discord notifier; it logs and skips when no URL is set."""
    settings = _settings()
    webhook_url = settings.discord.webhook_url
    client = (
        DiscordWebhookClient(str(webhook_url), timeout=settings.http_timeout_seconds)
        if webhook_url
        else None
    )
    return DiscordNotifier(client)


@lru_cache()
def get_webhook_trust_gate() -> WebhookTrustGate:
    """Provide the webhook handshake and payload validator."""
    return WebhookTrustGate(verify_token=_settings().strava.verify_token)


@lru_cache()
def get_event_dispatcher() -> ActivityEventDispatcher:
    """Provide the webhook event dispatcher."""
    return ActivityEventDispatcher(
        credential_service=get_credential_service(),
        activity_client=get_activity_client(),
        notifier=get_discord_notifier(),
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
