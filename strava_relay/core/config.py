"""
Application configuration models and helpers.

Settings are assembled once per process and handed to each component through
its constructor, so nothing below the dependency layer reads the environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


_GROUP_CONFIG = SettingsConfigDict(populate_by_name=True, extra="ignore")


class StravaSettings(BaseSettings):
    """Configuration required for the Strava OAuth and webhook flows."""

    model_config = _GROUP_CONFIG

    client_id: Optional[str] = Field(None, validation_alias="STRAVA_CLIENT_ID")
    client_secret: Optional[str] = Field(
        None, validation_alias="STRAVA_CLIENT_SECRET"
    )
    redirect_uri: Optional[AnyHttpUrl] = Field(
        None, validation_alias="STRAVA_REDIRECT_URI"
    )
    scope: str = Field("activity:read_all", validation_alias="STRAVA_SCOPE")
    verify_token: Optional[str] = Field(
        None,
        validation_alias="STRAVA_VERIFY_TOKEN",
        description="Token Strava echoes back during the subscription handshake.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _GROUP_CONFIG

    state_signing_secret: Optional[str] = Field(
        None,
        validation_alias="STATE_SIGNING_SECRET",
        description="HMAC key used to sign the OAuth state parameter.",
    )


class DiscordSettings(BaseSettings):
    """Where activity notifications are delivered."""

    model_config = _GROUP_CONFIG

    webhook_url: Optional[AnyHttpUrl] = Field(
        None, validation_alias="DISCORD_WEBHOOK_URL"
    )


class StorageSettings(BaseSettings):
    """Credential persistence settings.

    When no table name is configured the process falls back to an in-memory
    store, which is only suitable for local development and tests.
    """

    model_config = _GROUP_CONFIG

    dynamodb_table_name: Optional[str] = Field(
        None, validation_alias="DYNAMODB_TABLE_NAME"
    )
    athlete_index_name: str = Field(
        "athlete_id-index",
        validation_alias="DYNAMODB_ATHLETE_INDEX",
        description="Global secondary index keyed on the Strava athlete id.",
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    endpoint_url: Optional[str] = Field(
        None,
        validation_alias="DYNAMODB_ENDPOINT_URL",
        description="Optional endpoint override, e.g. for DynamoDB Local.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    strava: StravaSettings = Field(default_factory=StravaSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "DiscordSettings",
    "SecuritySettings",
    "StorageSettings",
    "StravaSettings",
    "get_settings",
]
