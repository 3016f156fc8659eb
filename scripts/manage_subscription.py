"""Create, list or delete the Strava push subscription for this application.

Creating a subscription makes Strava immediately call the webhook endpoint with
the verification handshake, so the relay must already be reachable at the
callback URL.

Example usages::

    python -m scripts.manage_subscription create \
        --callback-url https://relay.example.com/api/strava/webhook
    python -m scripts.manage_subscription list
    python -m scripts.manage_subscription delete 12345
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

from strava_relay.clients import StravaSubscriptionClient
from strava_relay.core.config import AppSettings, get_settings
from strava_relay.core.errors import ConfigurationError, UpstreamError

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_UPSTREAM_ERROR = 4


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manage the Strava webhook push subscription."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create", help="Register the callback URL.")
    create_parser.add_argument(
        "--callback-url",
        required=True,
        help="Public URL of the relay's /api/strava/webhook endpoint.",
    )
    create_parser.add_argument(
        "--verify-token",
        default=None,
        help="Handshake token (default: STRAVA_VERIFY_TOKEN).",
    )

    subparsers.add_parser("list", help="Show the current subscription.")

    delete_parser = subparsers.add_parser("delete", help="Remove a subscription.")
    delete_parser.add_argument("subscription_id", type=int)

    return parser


async def _run(args: argparse.Namespace, settings: AppSettings) -> Any:
    client = StravaSubscriptionClient(
        settings.strava, timeout=settings.http_timeout_seconds
    )
    if args.command == "create":
        verify_token = args.verify_token or settings.strava.verify_token
        if not verify_token:
            raise ConfigurationError("A verify token is required to subscribe.")
        return await client.create_subscription(args.callback_url, verify_token)
    if args.command == "list":
        return await client.list_subscriptions()
    await client.delete_subscription(args.subscription_id)
    return {"deleted": args.subscription_id}


def main(
    argv: list[str] | None = None,
    *,
    settings_factory: Callable[[], AppSettings] = get_settings,
    runner: Callable[[Awaitable[Any]], Any] = asyncio.run,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        result = runner(_run(args, settings_factory()))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except UpstreamError as exc:
        print(f"Strava request failed: {exc}", file=sys.stderr)
        return EXIT_UPSTREAM_ERROR

    print(json.dumps(result, indent=2))
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
