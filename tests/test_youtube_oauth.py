"""Tests for the YouTube OAuth flow."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from manypost.adapters.publisher.youtube_oauth import (
    GOOGLE_TOKEN_URL,
    YOUTUBE_SCOPES,
    OAuthConfig,
    build_authorization_url,
    exchange_code,
    fetch_channel,
    refresh_access_token,
)
from manypost.domain.errors import NoChannelError, RefreshFailedError, TokenExchangeError

CONFIG = OAuthConfig(
    client_id="client-id",
    client_secret="client-secret",
    redirect_uri="https://app.example.com/callback",
)


def form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestAuthorizationUrl:
    def test_contains_offline_consent_and_state(self):
        url = build_authorization_url("user-123", config=CONFIG)
        params = {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}

        assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
        assert params["state"] == "user-123"
        assert params["access_type"] == "offline"
        assert params["prompt"] == "consent"
        assert params["response_type"] == "code"
        assert params["redirect_uri"] == CONFIG.redirect_uri
        assert params["scope"].split(" ") == YOUTUBE_SCOPES

    def test_redirect_uri_override(self):
        url = build_authorization_url("s", redirect_uri="http://localhost/cb", config=CONFIG)

        assert parse_qs(urlparse(url).query)["redirect_uri"] == ["http://localhost/cb"]


class TestExchangeCode:
    def test_success(self, mock_http):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(form(request))
            return httpx.Response(
                200,
                json={"access_token": "at", "refresh_token": "rt", "expires_in": 3599, "scope": "s"},
            )

        tokens = exchange_code("the-code", "http://localhost/cb", CONFIG, mock_http(handler))

        assert tokens.access_token == "at"
        assert tokens.refresh_token == "rt"
        assert tokens.expires_in == 3599
        assert seen["grant_type"] == "authorization_code"
        assert seen["code"] == "the-code"
        assert seen["redirect_uri"] == "http://localhost/cb"

    def test_rejected_code(self, mock_http):
        client = mock_http(
            lambda request: httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Bad Request"}
            )
        )

        with pytest.raises(TokenExchangeError, match="Bad Request"):
            exchange_code("bad", config=CONFIG, client=client)

    def test_missing_refresh_token(self, mock_http):
        client = mock_http(
            lambda request: httpx.Response(200, json={"access_token": "at", "expires_in": 3600})
        )

        with pytest.raises(TokenExchangeError, match="No refresh token"):
            exchange_code("code", config=CONFIG, client=client)


class TestFetchChannel:
    def test_returns_first_channel(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["mine"] == "true"
            assert request.headers["Authorization"] == "Bearer at"
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "id": "UC123",
                            "snippet": {
                                "title": "My Channel",
                                "thumbnails": {"default": {"url": "https://img/default.jpg"}},
                            },
                        }
                    ]
                },
            )

        channel = fetch_channel("at", mock_http(handler))

        assert channel.channel_id == "UC123"
        assert channel.title == "My Channel"
        assert channel.thumbnail_url == "https://img/default.jpg"

    def test_no_channel(self, mock_http):
        client = mock_http(lambda request: httpx.Response(200, json={"items": []}))

        with pytest.raises(NoChannelError):
            fetch_channel("at", client)


class TestRefreshAccessToken:
    def test_success(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == GOOGLE_TOKEN_URL
            assert form(request)["grant_type"] == "refresh_token"
            return httpx.Response(200, json={"access_token": "new", "expires_in": 3599})

        tokens = refresh_access_token("rt", CONFIG, mock_http(handler))

        assert tokens.access_token == "new"
        assert tokens.refresh_token is None

    def test_invalid_grant_is_revoked(self, mock_http):
        client = mock_http(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(RefreshFailedError) as exc_info:
            refresh_access_token("rt", CONFIG, client)

        assert exc_info.value.revoked is True

    def test_other_failure_is_not_revoked(self, mock_http):
        client = mock_http(lambda request: httpx.Response(500, text="unavailable"))

        with pytest.raises(RefreshFailedError) as exc_info:
            refresh_access_token("rt", CONFIG, client)

        assert exc_info.value.revoked is False
