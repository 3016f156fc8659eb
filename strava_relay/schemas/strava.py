"""Schemas for payloads exchanged with the Strava API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class StravaAthlete(BaseModel):
    """Summary athlete returned alongside an authorization grant."""

    model_config = ConfigDict(extra="ignore")

    id: int
    firstname: Optional[str] = None
    lastname: Optional[str] = None


class StravaTokenResponse(BaseModel):
    """Body of a successful ``POST /oauth/token`` call.

    Refresh responses omit the athlete, so it is optional here and the
    callback checks for it explicitly.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_at: int
    expires_in: Optional[int] = None
    athlete: Optional[StravaAthlete] = None


class StravaWebhookEvent(BaseModel):
    """Push subscription event delivered to the webhook endpoint."""

    model_config = ConfigDict(extra="ignore")

    aspect_type: str = Field(..., description="create, update or delete.")
    event_time: int
    object_id: int = Field(..., description="Activity or athlete id.")
    object_type: str = Field(..., description="activity or athlete.")
    owner_id: int = Field(..., description="Strava athlete id of the owner.")
    subscription_id: int
    updates: Dict[str, Any] = Field(default_factory=dict)


class StravaActivity(BaseModel):
    """Partial view of a detailed activity.

    Every field is optional; the notification renderer supplies the defaults.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    type: Optional[str] = None
    sport_type: Optional[str] = None
    distance: Optional[float] = None
    moving_time: Optional[int] = None
    total_elevation_gain: Optional[float] = None
    average_speed: Optional[float] = None
    calories: Optional[float] = None


__all__ = [
    "StravaActivity",
    "StravaAthlete",
    "StravaTokenResponse",
    "StravaWebhookEvent",
]
