"""
Credential persistence backends.

Both backends key credentials on the Discord user id and keep a secondary
lookup on the Strava athlete id. A missing credential is reported as ``None``;
backend failures raise :class:`~strava_relay.core.errors.CredentialStoreError`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from strava_relay.core.config import StorageSettings
from strava_relay.core.errors import CredentialStoreError
from strava_relay.models.credential import StoredCredential

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@runtime_checkable
class CredentialStore(Protocol):
    """Keyed credential storage with an athlete id index."""

    def store(self, owner_id: str, credential: StoredCredential) -> StoredCredential:
        """Upsert ``credential`` under ``owner_id`` and return what was written."""
        ...

    def get_by_owner(self, owner_id: str) -> Optional[StoredCredential]:
        ...

    def get_by_athlete_id(self, athlete_id: str) -> Optional[StoredCredential]:
        ...


class InMemoryCredentialStore:
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._by_owner: Dict[str, StoredCredential] = {}
        self._owner_by_athlete: Dict[str, str] = {}

    def store(self, owner_id: str, credential: StoredCredential) -> StoredCredential:
        record = credential.stamped(owner_id)
        previous = self._by_owner.get(owner_id)
        if (
            previous is not None
            and previous.athlete_id != record.athlete_id
            and self._owner_by_athlete.get(previous.athlete_id) == owner_id
        ):
            del self._owner_by_athlete[previous.athlete_id]
        self._by_owner[owner_id] = record
        self._owner_by_athlete[record.athlete_id] = owner_id
        return record

    def get_by_owner(self, owner_id: str) -> Optional[StoredCredential]:
        return self._by_owner.get(owner_id)

    def get_by_athlete_id(self, athlete_id: str) -> Optional[StoredCredential]:
        owner_id = self._owner_by_athlete.get(athlete_id)
        if owner_id is None:
            return None
        return self._by_owner.get(owner_id)


class DynamoDBCredentialStore:
    """DynamoDB-backed store.

    The table's partition key is ``owner_id`` and a global secondary index
    (projection ``ALL``) is keyed on ``athlete_id`` so the athlete lookup is a
    single query returning the full record.
    """

    def __init__(self, settings: StorageSettings, *, table: Any = None) -> None:
        self._settings = settings
        if table is None:
            resource = boto3.resource(
                "dynamodb",
                region_name=settings.region_name,
                endpoint_url=settings.endpoint_url,
            )
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    def store(self, owner_id: str, credential: StoredCredential) -> StoredCredential:
        record = credential.stamped(owner_id)
        try:
            self._table.put_item(Item=self._to_item(record))
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to store credential for user %s: %s", owner_id, exc)
            raise CredentialStoreError(f"Failed to store credential: {exc}") from exc
        logger.info(
            "Stored credential for user %s, athlete %s", owner_id, record.athlete_id
        )
        return record

    def get_by_owner(self, owner_id: str) -> Optional[StoredCredential]:
        try:
            response = self._table.get_item(Key={"owner_id": owner_id})
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to read credential for user %s: %s", owner_id, exc)
            raise CredentialStoreError(f"Failed to read credential: {exc}") from exc
        item = response.get("Item")
        if not item:
            logger.info("No credential stored for user %s", owner_id)
            return None
        return self._from_item(item)

    def get_by_athlete_id(self, athlete_id: str) -> Optional[StoredCredential]:
        try:
            response = self._table.query(
                IndexName=self._settings.athlete_index_name,
                KeyConditionExpression=Key("athlete_id").eq(athlete_id),
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to query credential for athlete %s: %s", athlete_id, exc)
            raise CredentialStoreError(f"Failed to query credential: {exc}") from exc
        items = response.get("Items", [])
        if not items:
            logger.info("No credential linked to athlete %s", athlete_id)
            return None
        # An athlete re-linked to another user leaves the older row behind.
        records = [self._from_item(item) for item in items]
        return max(records, key=lambda record: record.updated_at or _EPOCH)

    @staticmethod
    def _to_item(record: StoredCredential) -> Dict[str, Any]:
        return {
            "owner_id": record.owner_id,
            "athlete_id": record.athlete_id,
            "access_token": record.access_token,
            "refresh_token": record.refresh_token,
            "expires_at": record.expires_at,
            "updated_at": record.updated_at.isoformat(),
        }

    @staticmethod
    def _from_item(item: Dict[str, Any]) -> StoredCredential:
        return StoredCredential(
            owner_id=item["owner_id"],
            athlete_id=str(item["athlete_id"]),
            access_token=item["access_token"],
            refresh_token=item["refresh_token"],
            expires_at=int(item["expires_at"]),
            updated_at=item.get("updated_at"),
        )


def build_credential_store(settings: StorageSettings) -> CredentialStore:
    """Pick the backend: DynamoDB when a table is configured, memory otherwise."""
    if settings.dynamodb_table_name:
        logger.info("Using DynamoDB credential store (table %s)", settings.dynamodb_table_name)
        return DynamoDBCredentialStore(settings)
    logger.warning("DYNAMODB_TABLE_NAME not set; credentials are kept in memory only")
    return InMemoryCredentialStore()


__all__ = [
    "CredentialStore",
    "DynamoDBCredentialStore",
    "InMemoryCredentialStore",
    "build_credential_store",
]
