try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from strava_relay.clients import (
    DiscordWebhookClient,
    StravaActivityClient,
    StravaOAuthClient,
    StravaSubscriptionClient,
)
from strava_relay.core.config import StravaSettings
from strava_relay.core.errors import (
    ActivityFetchError,
    ConfigurationError,
    NotificationError,
    TokenExchangeError,
    TokenRefreshError,
    UpstreamError,
)

TOKEN_URL = "https://www.strava.com/oauth/token"
API_BASE = "https://www.strava.com/api/v3"
DISCORD_URL = "https://discord.example.com/api/webhooks/1/token"

TOKEN_BODY = {
    "token_type": "Bearer",
    "access_token": "a9b723",
    "refresh_token": "b5c569",
    "expires_at": 1_568_775_134,
    "expires_in": 20566,
    "athlete": {"id": 134815, "firstname": "Jane", "lastname": "Doe"},
}


@pytest.fixture
def strava_settings() -> StravaSettings:
    return StravaSettings(
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri="https://relay.example.com/api/strava/callback",
        verify_token="verify-me",
    )


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def test_authorization_url_contains_expected_params(strava_settings) -> None:
    url = StravaOAuthClient(strava_settings).build_authorization_url(state="u1:sig")

    parsed = urlparse(url)
    params = {key: values[0] for key, values in parse_qs(parsed.query).items()}
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "https://www.strava.com/oauth/authorize"
    )
    assert params == {
        "client_id": "client-123",
        "response_type": "code",
        "redirect_uri": "https://relay.example.com/api/strava/callback",
        "scope": "activity:read_all",
        "state": "u1:sig",
    }


def test_authorization_url_requires_redirect_uri() -> None:
    client = StravaOAuthClient(StravaSettings(client_id="client-123", redirect_uri=None))

    with pytest.raises(ConfigurationError):
        client.build_authorization_url(state="u1:sig")


@pytest.mark.anyio
async def test_exchange_authorization_code(strava_settings, respx_mock) -> None:
    route = respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json=TOKEN_BODY)
    )

    token = await StravaOAuthClient(strava_settings).exchange_authorization_code("abc")

    assert token.access_token == "a9b723"
    assert token.athlete.id == 134815
    assert _form(route.calls.last.request) == {
        "client_id": "client-123",
        "client_secret": "secret-456",
        "code": "abc",
        "grant_type": "authorization_code",
    }


@pytest.mark.anyio
async def test_exchange_rejects_error_status(strava_settings, respx_mock) -> None:
    respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(400, json={"message": "Bad Request"})
    )

    with pytest.raises(TokenExchangeError):
        await StravaOAuthClient(strava_settings).exchange_authorization_code("abc")


@pytest.mark.anyio
async def test_exchange_requires_athlete(strava_settings, respx_mock) -> None:
    body = {key: value for key, value in TOKEN_BODY.items() if key != "athlete"}
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=body))

    with pytest.raises(TokenExchangeError):
        await StravaOAuthClient(strava_settings).exchange_authorization_code("abc")


@pytest.mark.anyio
async def test_exchange_wraps_transport_errors(strava_settings, respx_mock) -> None:
    respx_mock.post(TOKEN_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))

    with pytest.raises(TokenExchangeError):
        await StravaOAuthClient(strava_settings).exchange_authorization_code("abc")


@pytest.mark.anyio
async def test_refresh_token_sends_refresh_grant(strava_settings, respx_mock) -> None:
    body = {key: value for key, value in TOKEN_BODY.items() if key != "athlete"}
    route = respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=body))

    token = await StravaOAuthClient(strava_settings).refresh_token("old-refresh")

    assert token.refresh_token == "b5c569"
    assert token.athlete is None
    form = _form(route.calls.last.request)
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "old-refresh"


@pytest.mark.anyio
async def test_refresh_rejects_unparsable_body(strava_settings, respx_mock) -> None:
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, text="<html>"))

    with pytest.raises(TokenRefreshError):
        await StravaOAuthClient(strava_settings).refresh_token("old-refresh")


@pytest.mark.anyio
async def test_token_calls_require_client_credentials(respx_mock) -> None:
    route = respx_mock.post(TOKEN_URL)
    client = StravaOAuthClient(StravaSettings(client_id=None, client_secret=None))

    with pytest.raises(ConfigurationError):
        await client.refresh_token("old-refresh")
    assert not route.called


@pytest.mark.anyio
async def test_get_activity_sends_bearer_token(respx_mock) -> None:
    route = respx_mock.get(f"{API_BASE}/activities/42").mock(
        return_value=httpx.Response(200, json={"id": 42, "name": "Morning Ride"})
    )

    detail = await StravaActivityClient().get_activity("token-1", 42)

    assert detail["name"] == "Morning Ride"
    assert route.calls.last.request.headers["Authorization"] == "Bearer token-1"


@pytest.mark.anyio
async def test_get_activity_raises_on_error_status(respx_mock) -> None:
    respx_mock.get(f"{API_BASE}/activities/42").mock(
        return_value=httpx.Response(404, json={"message": "Record Not Found"})
    )

    with pytest.raises(ActivityFetchError):
        await StravaActivityClient().get_activity("token-1", 42)


@pytest.mark.anyio
async def test_discord_client_posts_json(respx_mock) -> None:
    route = respx_mock.post(DISCORD_URL).mock(return_value=httpx.Response(204))

    await DiscordWebhookClient(DISCORD_URL).send({"embeds": [{"title": "hi"}]})

    assert route.calls.last.request.headers["Content-Type"] == "application/json"
    assert json.loads(route.calls.last.request.content) == {"embeds": [{"title": "hi"}]}


@pytest.mark.anyio
async def test_discord_client_raises_on_rejection(respx_mock) -> None:
    respx_mock.post(DISCORD_URL).mock(return_value=httpx.Response(429))

    with pytest.raises(NotificationError):
        await DiscordWebhookClient(DISCORD_URL).send({"embeds": []})


@pytest.mark.anyio
async def test_subscription_lifecycle(strava_settings, respx_mock) -> None:
    create = respx_mock.post(f"{API_BASE}/push_subscriptions").mock(
        return_value=httpx.Response(201, json={"id": 120475})
    )
    listing = respx_mock.get(f"{API_BASE}/push_subscriptions").mock(
        return_value=httpx.Response(
            200,
            json=[{"id": 120475, "callback_url": "https://relay.example.com/hook"}],
        )
    )
    delete = respx_mock.delete(f"{API_BASE}/push_subscriptions/120475").mock(
        return_value=httpx.Response(204)
    )
    client = StravaSubscriptionClient(strava_settings)

    created = await client.create_subscription("https://relay.example.com/hook", "verify-me")
    subscriptions = await client.list_subscriptions()
    await client.delete_subscription(120475)

    assert created == {"id": 120475}
    assert _form(create.calls.last.request)["verify_token"] == "verify-me"
    assert subscriptions[0]["id"] == 120475
    assert listing.calls.last.request.url.params["client_id"] == "client-123"
    assert delete.called


@pytest.mark.anyio
async def test_subscription_errors_surface_as_upstream(strava_settings, respx_mock) -> None:
    respx_mock.post(f"{API_BASE}/push_subscriptions").mock(
        return_value=httpx.Response(400, json={"message": "Bad Request"})
    )

    with pytest.raises(UpstreamError):
        await StravaSubscriptionClient(strava_settings).create_subscription(
            "https://relay.example.com/hook", "verify-me"
        )


@pytest.mark.anyio
async def test_subscription_transport_errors_surface_as_upstream(
    strava_settings, respx_mock
) -> None:
    respx_mock.get(f"{API_BASE}/push_subscriptions").mock(
        side_effect=httpx.ConnectError("connection refused")
    )

    with pytest.raises(UpstreamError):
        await StravaSubscriptionClient(strava_settings).list_subscriptions()


@pytest.mark.anyio
async def test_subscription_non_json_reply_surfaces_as_upstream(
    strava_settings, respx_mock
) -> None:
    respx_mock.get(f"{API_BASE}/push_subscriptions").mock(
        return_value=httpx.Response(200, text="<html>maintenance</html>")
    )

    with pytest.raises(UpstreamError):
        await StravaSubscriptionClient(strava_settings).list_subscriptions()
