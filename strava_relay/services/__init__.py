"""Service layer exports."""

from .credentials import StravaCredentialService
from .dispatcher import ActivityEventDispatcher
from .notifications import ActivityNotificationRenderer, DiscordNotifier
from .webhooks import WebhookTrustGate

__all__ = [
    "ActivityEventDispatcher",
    "ActivityNotificationRenderer",
    "DiscordNotifier",
    "StravaCredentialService",
    "WebhookTrustGate",
]
