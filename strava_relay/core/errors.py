"""
Error taxonomy shared by the clients, services and HTTP layer.

The HTTP layer maps each family to a status code in ``strava_relay.main``:
client input and trust violations become 400s, configuration and upstream
failures become 500s.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for errors raised by the relay."""


class ClientInputError(RelayError):
    """Raised when a request is missing parameters or carries malformed ones."""


class TrustViolationError(ClientInputError):
    """Raised when a signed or shared value fails verification."""


class InvalidStateError(TrustViolationError):
    """Raised when an OAuth state token does not verify."""

    def __init__(self) -> None:
        super().__init__("Invalid state")


class HandshakeRejectedError(TrustViolationError):
    """Raised when a webhook subscription handshake is not accepted."""

    def __init__(self) -> None:
        super().__init__("Verification failed")


class InvalidWebhookPayloadError(ClientInputError):
    """Raised when a webhook event body is empty or structurally invalid."""


class ConfigurationError(RelayError):
    """Raised when a required setting is absent.

    The message is only logged; responses never reveal which value is missing.
    """


class UpstreamError(RelayError):
    """Raised when Strava, Discord or the credential store fails."""


class TokenExchangeError(UpstreamError):
    """Raised when the token endpoint rejects an authorization code."""


class TokenRefreshError(UpstreamError):
    """Raised when the token endpoint rejects a refresh token."""


class ActivityFetchError(UpstreamError):
    """Raised when an activity cannot be fetched from Strava."""


class NotificationError(UpstreamError):
    """Raised when Discord does not accept a notification."""


class CredentialStoreError(UpstreamError):
    """Raised on a transient storage failure; safe to retry.

    Distinct from a missing credential, which lookups report as ``None``.
    """


__all__ = [
    "ActivityFetchError",
    "ClientInputError",
    "ConfigurationError",
    "CredentialStoreError",
    "HandshakeRejectedError",
    "InvalidStateError",
    "InvalidWebhookPayloadError",
    "NotificationError",
    "RelayError",
    "TokenExchangeError",
    "TokenRefreshError",
    "TrustViolationError",
    "UpstreamError",
]
