"""
Thin wrappers over the Strava REST API used by the relay.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from strava_relay.core.config import StravaSettings
from strava_relay.core.errors import (
    ActivityFetchError,
    ConfigurationError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

STRAVA_API_BASE = "https://www.strava.com/api/v3"


class StravaActivityClient:
    """Fetch activity detail on behalf of a linked athlete."""

    def __init__(self, *, timeout: float = 10.0, base_url: str = STRAVA_API_BASE) -> None:
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

    async def get_activity(self, access_token: str, activity_id: int) -> Dict[str, Any]:
        """Return the raw ``DetailedActivity`` JSON for ``activity_id``."""
        url = f"{self._base_url}/activities/{activity_id}"
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise ActivityFetchError(f"Activity {activity_id} request failed: {exc}") from exc

        if not response.is_success:
            raise ActivityFetchError(
                f"Activity {activity_id} request returned {response.status_code}."
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ActivityFetchError(
                f"Activity {activity_id} response was not JSON."
            ) from exc


class StravaSubscriptionClient:
    """Manage the application's push subscription.

    Strava allows a single subscription per application; creating one makes
    Strava call the webhook endpoint with the verification handshake.
    """

    def __init__(
        self,
        strava_settings: StravaSettings,
        *,
        timeout: float = 10.0,
        base_url: str = STRAVA_API_BASE,
    ) -> None:
        self._strava = strava_settings
        self._timeout = timeout
        self._url = f"{base_url.rstrip('/')}/push_subscriptions"

    def _client_params(self) -> Dict[str, str]:
        if not self._strava.client_id or not self._strava.client_secret:
            raise ConfigurationError("Strava client credentials are not configured.")
        return {
            "client_id": self._strava.client_id,
            "client_secret": self._strava.client_secret,
        }

    async def create_subscription(self, callback_url: str, verify_token: str) -> Dict[str, Any]:
        data = {
            **self._client_params(),
            "callback_url": callback_url,
            "verify_token": verify_token,
        }
        response = await self._send("POST", self._url, "create", data=data)
        return self._json(response, "create")

    async def list_subscriptions(self) -> List[Dict[str, Any]]:
        response = await self._send(
            "GET", self._url, "list", params=self._client_params()
        )
        return self._json(response, "list")

    async def delete_subscription(self, subscription_id: int) -> None:
        await self._send(
            "DELETE",
            f"{self._url}/{subscription_id}",
            "delete",
            params=self._client_params(),
        )

    async def _send(
        self, method: str, url: str, action: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Push subscription {action} failed: {exc}") from exc

        if response.is_success:
            return response
        logger.error(
            "Push subscription %s failed: %s - %s",
            action,
            response.status_code,
            response.text,
        )
        raise UpstreamError(
            f"Push subscription {action} returned {response.status_code}."
        )

    @staticmethod
    def _json(response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Push subscription {action} response was not JSON."
            ) from exc


__all__ = ["STRAVA_API_BASE", "StravaActivityClient", "StravaSubscriptionClient"]
