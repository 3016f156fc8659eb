"""Tests for the push subscription management script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httpx
import pytest

from scripts import manage_subscription
from strava_relay.core.config import AppSettings, StravaSettings

SUBSCRIPTIONS_URL = "https://www.strava.com/api/v3/push_subscriptions"


def _settings(**strava_overrides) -> AppSettings:
    strava = {
        "client_id": "client-123",
        "client_secret": "secret-456",
        "verify_token": "configured-token",
        **strava_overrides,
    }
    return AppSettings(strava=StravaSettings(**strava))


def _main(argv: list[str], settings: AppSettings) -> int:
    return manage_subscription.main(argv, settings_factory=lambda: settings)


def test_create_uses_configured_verify_token(respx_mock, capsys) -> None:
    route = respx_mock.post(SUBSCRIPTIONS_URL).mock(
        return_value=httpx.Response(201, json={"id": 120475})
    )

    exit_code = _main(
        ["create", "--callback-url", "https://relay.example.com/api/strava/webhook"],
        _settings(),
    )

    assert exit_code == manage_subscription.EXIT_OK
    body = route.calls.last.request.content.decode()
    assert "verify_token=configured-token" in body
    assert json.loads(capsys.readouterr().out) == {"id": 120475}


def test_create_prefers_explicit_verify_token(respx_mock) -> None:
    route = respx_mock.post(SUBSCRIPTIONS_URL).mock(
        return_value=httpx.Response(201, json={"id": 1})
    )

    exit_code = _main(
        [
            "create",
            "--callback-url",
            "https://relay.example.com/api/strava/webhook",
            "--verify-token",
            "cli-token",
        ],
        _settings(),
    )

    assert exit_code == manage_subscription.EXIT_OK
    assert "verify_token=cli-token" in route.calls.last.request.content.decode()


def test_create_without_any_verify_token_is_config_error(respx_mock) -> None:
    route = respx_mock.post(SUBSCRIPTIONS_URL)

    exit_code = _main(
        ["create", "--callback-url", "https://relay.example.com/api/strava/webhook"],
        _settings(verify_token=None),
    )

    assert exit_code == manage_subscription.EXIT_CONFIG_ERROR
    assert not route.called


def test_list_prints_subscriptions(respx_mock, capsys) -> None:
    respx_mock.get(SUBSCRIPTIONS_URL).mock(
        return_value=httpx.Response(200, json=[{"id": 120475}])
    )

    exit_code = _main(["list"], _settings())

    assert exit_code == manage_subscription.EXIT_OK
    assert json.loads(capsys.readouterr().out) == [{"id": 120475}]


def test_delete_reports_removed_subscription(respx_mock, capsys) -> None:
    route = respx_mock.delete(f"{SUBSCRIPTIONS_URL}/120475").mock(
        return_value=httpx.Response(204)
    )

    exit_code = _main(["delete", "120475"], _settings())

    assert exit_code == manage_subscription.EXIT_OK
    assert route.called
    assert json.loads(capsys.readouterr().out) == {"deleted": 120475}


def test_missing_client_credentials_is_config_error(respx_mock) -> None:
    exit_code = _main(["list"], _settings(client_id=None, client_secret=None))

    assert exit_code == manage_subscription.EXIT_CONFIG_ERROR


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(403, json={"message": "Forbidden"}),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.ConnectError("down"),
    ],
)
def test_upstream_failures_exit_non_zero(respx_mock, response) -> None:
    if isinstance(response, Exception):
        respx_mock.get(SUBSCRIPTIONS_URL).mock(side_effect=response)
    else:
        respx_mock.get(SUBSCRIPTIONS_URL).mock(return_value=response)

    exit_code = _main(["list"], _settings())

    assert exit_code == manage_subscription.EXIT_UPSTREAM_ERROR
