"""
Domain model for a linked Strava account.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

REFRESH_SKEW = timedelta(minutes=5)


class StoredCredential(BaseModel):
    """Represents the token record stored for one Discord user.

    Instances are immutable; a refresh produces a new record through
    :meth:`with_tokens` so the token triple is always replaced together.
    """

    model_config = ConfigDict(frozen=True)

    owner_id: str = Field("", description="Discord user id; the primary key.")
    athlete_id: str = Field(..., description="Strava athlete id; secondary key.")
    access_token: str
    refresh_token: str
    expires_at: int = Field(..., description="Unix seconds when the access token lapses.")
    updated_at: Optional[datetime] = Field(
        None, description="Set by the store on every write."
    )

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def is_stale(
        self, *, now: datetime | None = None, skew: timedelta = REFRESH_SKEW
    ) -> bool:
        """Return True when the access token is expired or about to expire."""
        now = now or datetime.now(timezone.utc)
        return now + skew >= self.expires_at_datetime

    def with_tokens(
        self, *, access_token: str, refresh_token: str, expires_at: int
    ) -> StoredCredential:
        return self.model_copy(
            update={
                "access_token": access_token,
                "refresh_token": refresh_token,
                "expires_at": expires_at,
            }
        )

    def stamped(self, owner_id: str, *, now: datetime | None = None) -> StoredCredential:
        """Copy with the owner and write time the store is responsible for."""
        return self.model_copy(
            update={
                "owner_id": owner_id,
                "updated_at": now or datetime.now(timezone.utc),
            }
        )


__all__ = ["REFRESH_SKEW", "StoredCredential"]
