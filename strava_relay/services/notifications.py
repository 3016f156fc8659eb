"""
Discord notifications for newly created Strava activities.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from strava_relay.clients import DiscordWebhookClient
from strava_relay.core.errors import NotificationError
from strava_relay.schemas import StravaActivity

logger = logging.getLogger(__name__)

STRAVA_ORANGE = 16534530
STRAVA_ACTIVITY_URL = "https://www.strava.com/activities/{activity_id}"
STRAVA_ICON_URL = (
    "https://camo.githubusercontent.com/cf95bc20ee9b22b2fb50a827a70ab0390f64b582975531"
    "abf7588ac190ef1869/68747470733a2f2f6564656e742e6769746875622e696f2f537570657254"
    "696e7949636f6e732f696d616765732f7376672f7374726176612e737667"
)

ActivityDetail = Union[Dict[str, Any], str, bytes]


def format_duration(seconds: int) -> str:
    """Render seconds as ``HH:MM:SS``; hours are not wrapped at 24."""
    hours, remainder = divmod(max(int(seconds), 0), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _timestamp(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class ActivityNotificationRenderer:
    """Build the Discord embed announcing an activity."""

    def render(
        self,
        owner_id: str,
        activity_id: int,
        activity: StravaActivity,
        *,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        name = activity.name or "Untitled Activity"
        activity_type = activity.type or "Activity"
        sport_type = activity.sport_type or activity_type
        distance_km = (activity.distance or 0.0) / 1000
        moving_time = activity.moving_time or 0
        elevation = activity.total_elevation_gain or 0.0
        speed_kmh = (activity.average_speed or 0.0) * 3.6
        calories = activity.calories or 0.0

        fields = [
            {"name": "📏 Distance", "value": f"{distance_km:.2f} km", "inline": True},
            {"name": "⏱️ Time", "value": format_duration(moving_time), "inline": True},
            {"name": "⚡ Avg Speed", "value": f"{speed_kmh:.1f} km/h", "inline": True},
            {"name": "⛰️ Elevation", "value": f"{elevation:.0f} m", "inline": True},
            {
                "name": "🔥 Calories",
                "value": f"{calories:.0f}" if calories > 0 else "N/A",
                "inline": True,
            },
            {"name": "🎯 Activity Type", "value": sport_type, "inline": True},
        ]
        embed = {
            "title": f"🚴 New {sport_type}!",
            "url": STRAVA_ACTIVITY_URL.format(activity_id=activity_id),
            "description": f"<@{owner_id}> just completed **{name}**",
            "color": STRAVA_ORANGE,
            "fields": fields,
            "footer": {"text": "Powered by Strava", "icon_url": STRAVA_ICON_URL},
            "timestamp": _timestamp(now or datetime.now(timezone.utc)),
        }
        return {"embeds": [embed]}


class DiscordNotifier:
    """Render activity detail and post it to the configured Discord webhook.

    Every failure is logged and dropped; this runs after the webhook delivery
    has already been acknowledged.
    """

    def __init__(
        self,
        client: Optional[DiscordWebhookClient],
        renderer: Optional[ActivityNotificationRenderer] = None,
    ) -> None:
        self._client = client
        self._renderer = renderer or ActivityNotificationRenderer()

    async def notify(self, owner_id: str, activity_id: int, detail: ActivityDetail) -> bool:
        """Return True when Discord accepted the message."""
        if self._client is None:
            logger.error("Discord webhook URL is not configured")
            return False

        activity = self._parse_detail(activity_id, detail)
        if activity is None:
            return False

        payload = self._renderer.render(owner_id, activity_id, activity)
        logger.info("Sending Discord message for activity %s", activity_id)
        try:
            await self._client.send(payload)
        except NotificationError as exc:
            logger.warning(
                "Failed to send Discord notification for activity %s: %s",
                activity_id,
                exc,
            )
            return False

        logger.info("Sent Discord notification for activity %s", activity_id)
        return True

    @staticmethod
    def _parse_detail(activity_id: int, detail: ActivityDetail) -> Optional[StravaActivity]:
        if not detail:
            logger.warning("Empty activity detail for activity %s", activity_id)
            return None
        try:
            data = json.loads(detail) if isinstance(detail, (str, bytes)) else detail
            return StravaActivity.model_validate(data)
        except (ValueError, ValidationError) as exc:
            logger.warning("Failed to parse activity %s detail: %s", activity_id, exc)
            return None


__all__ = [
    "ActivityNotificationRenderer",
    "DiscordNotifier",
    "format_duration",
]
