"""Public schema exports."""

from .strava import (
    StravaActivity,
    StravaAthlete,
    StravaTokenResponse,
    StravaWebhookEvent,
)

__all__ = [
    "StravaActivity",
    "StravaAthlete",
    "StravaTokenResponse",
    "StravaWebhookEvent",
]
