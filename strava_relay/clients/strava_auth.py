"""
Strava OAuth utilities.

These helpers build the consent URL and talk to the token endpoint for both the
authorization-code and refresh-token grants.
"""

from __future__ import annotations

import logging
from typing import Dict, Type
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from strava_relay.core.config import StravaSettings
from strava_relay.core.errors import (
    ConfigurationError,
    TokenExchangeError,
    TokenRefreshError,
    UpstreamError,
)
from strava_relay.schemas import StravaTokenResponse

logger = logging.getLogger(__name__)


class StravaOAuthClient:
    """Build Strava authorization URLs and call the token endpoint."""

    AUTH_BASE_URL = "https://www.strava.com/oauth/authorize"
    TOKEN_URL = "https://www.strava.com/oauth/token"

    def __init__(self, strava_settings: StravaSettings, *, timeout: float = 10.0) -> None:
        self._strava = strava_settings
        self._timeout = timeout

    def build_authorization_url(self, state: str) -> str:
        """Construct the Strava OAuth consent URL."""
        if not self._strava.client_id or not self._strava.redirect_uri:
            raise ConfigurationError("Strava client id or redirect URI is not configured.")
        params = {
            "client_id": self._strava.client_id,
            "response_type": "code",
            "redirect_uri": str(self._strava.redirect_uri),
            "scope": self._strava.scope,
            "state": state,
        }
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> StravaTokenResponse:
        """Exchange an authorization code for the athlete's token triple."""
        token = await self._request_token(
            {"code": code, "grant_type": "authorization_code"},
            error_cls=TokenExchangeError,
        )
        if token.athlete is None:
            raise TokenExchangeError("Token response did not include the athlete.")
        return token

    async def refresh_token(self, refresh_token: str) -> StravaTokenResponse:
        """Refresh the access token using a stored refresh token."""
        return await self._request_token(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            error_cls=TokenRefreshError,
        )

    async def _request_token(
        self, grant: Dict[str, str], *, error_cls: Type[UpstreamError]
    ) -> StravaTokenResponse:
        if not self._strava.client_id or not self._strava.client_secret:
            raise ConfigurationError("Strava client credentials are not configured.")
        payload = {
            "client_id": self._strava.client_id,
            "client_secret": self._strava.client_secret,
            **grant,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise error_cls(f"Token endpoint unreachable: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Token request (%s) failed: %s - %s",
                grant["grant_type"],
                response.status_code,
                response.text,
            )
            raise error_cls(f"Token endpoint returned {response.status_code}.")

        try:
            return StravaTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise error_cls("Unparsable token payload returned from Strava.") from exc


__all__ = ["StravaOAuthClient"]
