"""
Translate Strava webhook events into Discord notifications.
"""

from __future__ import annotations

import logging

from strava_relay.clients import StravaActivityClient
from strava_relay.core.errors import ActivityFetchError
from strava_relay.schemas import StravaWebhookEvent
from strava_relay.services.credentials import StravaCredentialService
from strava_relay.services.notifications import DiscordNotifier

logger = logging.getLogger(__name__)


def is_activity_created(event: StravaWebhookEvent) -> bool:
    return event.aspect_type == "create" and event.object_type == "activity"


class ActivityEventDispatcher:
    """Resolve the linked Discord user for an event and notify them.

    Delivery is best effort and at most once: nothing here is retried, and no
    failure is reported back to Strava.
    """

    def __init__(
        self,
        credential_service: StravaCredentialService,
        activity_client: StravaActivityClient,
        notifier: DiscordNotifier,
    ) -> None:
        self._credentials = credential_service
        self._activities = activity_client
        self._notifier = notifier

    async def dispatch(self, event: StravaWebhookEvent) -> None:
        if not is_activity_created(event):
            return

        athlete_id = str(event.owner_id)
        logger.info(
            "Processing activity creation: activity %s by athlete %s",
            event.object_id,
            athlete_id,
        )
        credential = await self._credentials.get_valid_by_athlete_id(
            athlete_id=athlete_id
        )
        if credential is None:
            logger.info("Athlete %s is not linked; dropping event", athlete_id)
            return

        try:
            detail = await self._activities.get_activity(
                credential.access_token, event.object_id
            )
        except ActivityFetchError as exc:
            logger.warning(
                "Failed to fetch activity %s for user %s: %s",
                event.object_id,
                credential.owner_id,
                exc,
            )
            return

        logger.info(
            "Fetched activity %s for user %s", event.object_id, credential.owner_id
        )
        await self._notifier.notify(credential.owner_id, event.object_id, detail)

    async def dispatch_safely(self, event: StravaWebhookEvent) -> None:
        """Run :meth:`dispatch` after the response has been sent; never raises."""
        try:
            await self.dispatch(event)
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "Error in background processing of activity %s", event.object_id
            )


__all__ = ["ActivityEventDispatcher", "is_activity_created"]
