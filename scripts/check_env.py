"""Check that a relay ``.env`` file is complete and has not drifted.

Two checks are available:

1. Settings validation loads ``AppSettings`` from the given file and lists the
   values the relay cannot serve requests without (Strava client credentials,
   redirect URI, webhook verify token, state signing secret and the Discord
   webhook URL). The service starts without them, so this is the only place a
   missing value is reported before a user hits it.
2. Drift detection stores a SHA256 baseline of the file and compares against
   it later.

Example usages::

    python -m scripts.check_env record --env-file /opt/strava-relay/.env \
        --hash-file /opt/strava-relay/.env.sha256

    # From cron or a systemd timer:
    python -m scripts.check_env verify --env-file /opt/strava-relay/.env \
        --hash-file /opt/strava-relay/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from strava_relay.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5

REQUIRED_SETTINGS: dict[str, Callable[[AppSettings], object]] = {
    "STRAVA_CLIENT_ID": lambda s: s.strava.client_id,
    "STRAVA_CLIENT_SECRET": lambda s: s.strava.client_secret,
    "STRAVA_REDIRECT_URI": lambda s: s.strava.redirect_uri,
    "STRAVA_VERIFY_TOKEN": lambda s: s.strava.verify_token,
    "STATE_SIGNING_SECRET": lambda s: s.security.state_signing_secret,
    "DISCORD_WEBHOOK_URL": lambda s: s.discord.webhook_url,
}


class MissingSettingsError(Exception):
    """Settings parsed, but values needed at request time are empty."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(", ".join(missing))
        self.missing = missing


def load_settings(env_file: Path) -> AppSettings:
    """Load ``env_file`` into the process and return the parsed settings."""
    if not env_file.is_file():
        raise FileNotFoundError(
            f"{env_file} not found; pass --env-file with the relay's environment file."
        )
    _load_env_file(str(env_file))
    settings = AppSettings()
    missing = [name for name, read in REQUIRED_SETTINGS.items() if not read(settings)]
    if missing:
        raise MissingSettingsError(missing)
    return settings


def describe_storage(settings: AppSettings) -> str:
    table = settings.storage.dynamodb_table_name
    if not table:
        return "Credential store: in-memory (DYNAMODB_TABLE_NAME is unset)."
    return (
        f"Credential store: DynamoDB table {table} "
        f"(index {settings.storage.athlete_index_name}, {settings.storage.region_name})."
    )


class ChecksumBaseline:
    """SHA256 fingerprint of an env file, persisted next to it."""

    def __init__(self, env_file: Path, hash_file: Path) -> None:
        self.env_file = env_file
        self.hash_file = hash_file

    def current(self) -> str:
        return hashlib.sha256(self.env_file.read_bytes()).hexdigest()

    def record(self) -> int:
        digest = self.current()
        self.hash_file.write_text(f"{digest}\n", encoding="utf-8")
        print(f"Baseline written to {self.hash_file}: {digest}")
        return EXIT_OK

    def verify(self) -> int:
        if not self.hash_file.is_file():
            print(
                f"No baseline at {self.hash_file}; run 'record' first.",
                file=sys.stderr,
            )
            return EXIT_RUNTIME_ERROR

        recorded = self.hash_file.read_text(encoding="utf-8").strip()
        digest = self.current()
        if recorded != digest:
            print(
                f"{self.env_file} changed since the baseline was recorded.\n"
                f"  baseline: {recorded}\n"
                f"  current:  {digest}",
                file=sys.stderr,
            )
            return EXIT_CHECKSUM_ERROR
        print(f"{self.env_file} matches its baseline.")
        return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate relay settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    commands = {
        "record": "Validate settings, then write the checksum baseline.",
        "verify": "Validate settings, then compare against the baseline.",
        "check": "Validate settings only.",
    }
    for name, help_text in commands.items():
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Environment file to check (default: ./.env).",
        )
        if name != "check":
            subparser.add_argument(
                "--hash-file",
                required=True,
                type=Path,
                help="Where the checksum baseline is stored.",
            )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = load_settings(args.env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Invalid settings:\n{exc.json(indent=2)}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except MissingSettingsError as exc:
        print(f"Missing required settings: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    print(describe_storage(settings))
    if args.command == "check":
        return EXIT_OK
    baseline = ChecksumBaseline(args.env_file, args.hash_file)
    return baseline.record() if args.command == "record" else baseline.verify()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
