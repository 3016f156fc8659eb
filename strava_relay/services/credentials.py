"""
Helpers for linking, retrieving and refreshing Strava credentials.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from strava_relay.clients import CredentialStore, StravaOAuthClient
from strava_relay.core.errors import ConfigurationError, TokenRefreshError
from strava_relay.models.credential import REFRESH_SKEW, StoredCredential

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StravaCredentialService:
    """Manages access to persisted Strava credentials.

    Reads refresh stale credentials transparently. A failed refresh is not
    fatal: the caller receives the stale credential and the store is left
    untouched.

    Store calls run in a worker thread; the DynamoDB backend blocks on I/O.
    """

    _REFRESH_WINDOW: timedelta = REFRESH_SKEW

    def __init__(
        self,
        store: CredentialStore,
        oauth_client: StravaOAuthClient,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._clock = clock

    async def link_account(self, *, owner_id: str, code: str) -> StoredCredential:
        """Exchange an authorization code and persist the resulting credential."""
        token = await self._oauth.exchange_authorization_code(code)
        credential = StoredCredential(
            owner_id=owner_id,
            athlete_id=str(token.athlete.id),
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=token.expires_at,
        )
        stored = await asyncio.to_thread(self._store.store, owner_id, credential)
        logger.info(
            "Linked Strava athlete %s to user %s", stored.athlete_id, owner_id
        )
        return stored

    async def get_valid(self, *, owner_id: str) -> Optional[StoredCredential]:
        """Return the user's credential, refreshing it first when stale."""
        credential = await asyncio.to_thread(self._store.get_by_owner, owner_id)
        if credential is None:
            return None
        return await self._ensure_fresh(credential)

    async def get_valid_by_athlete_id(
        self, *, athlete_id: str
    ) -> Optional[StoredCredential]:
        """Same as :meth:`get_valid`, resolved through the athlete id index."""
        credential = await asyncio.to_thread(self._store.get_by_athlete_id, athlete_id)
        if credential is None:
            return None
        return await self._ensure_fresh(credential)

    async def refresh(self, credential: StoredCredential) -> StoredCredential:
        """Return a copy of ``credential`` carrying a freshly issued token triple.

        Nothing is persisted here; raises ``TokenRefreshError`` when Strava
        rejects the refresh or returns an unusable body.
        """
        token = await self._oauth.refresh_token(credential.refresh_token)
        return credential.with_tokens(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=token.expires_at,
        )

    def is_stale(self, credential: StoredCredential) -> bool:
        return credential.is_stale(now=self._clock(), skew=self._REFRESH_WINDOW)

    async def _ensure_fresh(self, credential: StoredCredential) -> StoredCredential:
        if not self.is_stale(credential):
            return credential

        logger.info(
            "Access token for user %s is expired or expiring soon, refreshing",
            credential.owner_id,
        )
        try:
            refreshed = await self.refresh(credential)
        except (TokenRefreshError, ConfigurationError) as exc:
            logger.warning(
                "Failed to refresh token for user %s: %s", credential.owner_id, exc
            )
            return credential

        stored = await asyncio.to_thread(
            self._store.store, credential.owner_id, refreshed
        )
        logger.info("Refreshed token for user %s", credential.owner_id)
        return stored


__all__ = ["StravaCredentialService"]
