"""Expose constructed client wrappers."""

from .credential_store import (
    CredentialStore,
    DynamoDBCredentialStore,
    InMemoryCredentialStore,
    build_credential_store,
)
from .discord import DiscordWebhookClient
from .state_codec import OAuthStateSigner
from .strava_api import StravaActivityClient, StravaSubscriptionClient
from .strava_auth import StravaOAuthClient

__all__ = [
    "CredentialStore",
    "DiscordWebhookClient",
    "DynamoDBCredentialStore",
    "InMemoryCredentialStore",
    "OAuthStateSigner",
    "StravaActivityClient",
    "StravaOAuthClient",
    "StravaSubscriptionClient",
    "build_credential_store",
]
