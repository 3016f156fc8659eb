"""Discord incoming-webhook client."""

from __future__ import annotations

from typing import Any, Dict

import httpx

from strava_relay.core.errors import NotificationError


class DiscordWebhookClient:
    """Post JSON message payloads to a Discord webhook URL."""

    def __init__(self, webhook_url: str, *, timeout: float = 10.0) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    async def send(self, payload: Dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._webhook_url, json=payload)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Discord webhook unreachable: {exc}") from exc
        if not response.is_success:
            raise NotificationError(
                f"Discord webhook returned {response.status_code}."
            )


__all__ = ["DiscordWebhookClient"]
