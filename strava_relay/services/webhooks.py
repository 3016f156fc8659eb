"""
Trust checks for Strava push subscription traffic.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Union

from pydantic import ValidationError

from strava_relay.core.errors import (
    ConfigurationError,
    HandshakeRejectedError,
    InvalidWebhookPayloadError,
)
from strava_relay.schemas import StravaWebhookEvent

logger = logging.getLogger(__name__)

SUBSCRIBE_MODE = "subscribe"


class WebhookTrustGate:
    """Validate the subscription handshake and the shape of inbound events."""

    def __init__(self, verify_token: Optional[str] = None) -> None:
        self._verify_token = verify_token

    def verify_handshake(
        self,
        mode: Optional[str],
        provided_token: Optional[str],
        challenge: Optional[str],
        expected_token: Optional[str] = None,
    ) -> str:
        """Return the challenge to echo back, or raise ``HandshakeRejectedError``."""
        expected = expected_token if expected_token is not None else self._verify_token
        if not expected:
            raise ConfigurationError("Webhook verify token is not configured.")

        token_matches = provided_token == expected
        if mode == SUBSCRIBE_MODE and token_matches:
            logger.info("Webhook verification successful, returning challenge")
            return challenge or ""

        logger.warning(
            "Webhook verification failed: mode=%s, token_match=%s", mode, token_matches
        )
        raise HandshakeRejectedError()

    def validate_event(self, raw_payload: Union[bytes, str, None]) -> StravaWebhookEvent:
        """Parse a raw event body; no filtering on event kind happens here."""
        if not raw_payload or not raw_payload.strip():
            logger.warning("Empty webhook payload")
            raise InvalidWebhookPayloadError("Empty payload")

        try:
            data = json.loads(raw_payload)
        except ValueError as exc:
            logger.warning("Failed to parse webhook JSON: %s", exc)
            raise InvalidWebhookPayloadError("Invalid JSON") from exc

        if not isinstance(data, dict):
            raise InvalidWebhookPayloadError("Invalid payload")

        try:
            event = StravaWebhookEvent.model_validate(data)
        except ValidationError as exc:
            logger.warning(
                "Webhook payload failed validation: %s", exc.errors(include_input=False)
            )
            raise InvalidWebhookPayloadError("Invalid payload") from exc

        logger.info(
            "Received webhook: %s %s for owner %s",
            event.aspect_type,
            event.object_type,
            event.owner_id,
        )
        return event


__all__ = ["SUBSCRIBE_MODE", "WebhookTrustGate"]
