"""YouTube OAuth 2.0 web-server flow.

The browser is sent to Google with ``state`` set to the user id, Google
redirects back to the frontend, and the frontend posts the code to the API.
The code is exchanged with the same ``redirect_uri`` that started the flow.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from manypost.config import settings
from manypost.domain.errors import (
    NoChannelError,
    OAuthError,
    RefreshFailedError,
    TokenExchangeError,
)
from manypost.domain.models import ChannelInfo, TokenSet
from manypost.logging import get_logger

logger = get_logger(__name__)

# Google OAuth endpoints
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
YOUTUBE_CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"

# Scopes needed to upload and to read channel/video statistics
YOUTUBE_SCOPES = [
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube",
    "https://www.googleapis.com/auth/youtube.readonly",
]


@dataclass
class OAuthConfig:
    """OAuth client configuration."""

    client_id: str
    client_secret: str
    redirect_uri: str


def get_oauth_config() -> OAuthConfig:
    """Build the OAuth config from settings.

    Raises:
        OAuthError: If the client id or secret is not configured.
    """
    if not settings.youtube_client_id or not settings.youtube_client_secret:
        raise OAuthError(
            "YOUTUBE_CLIENT_ID and YOUTUBE_CLIENT_SECRET must be configured. "
            "Create OAuth credentials at https://console.cloud.google.com/apis/credentials"
        )

    return OAuthConfig(
        client_id=settings.youtube_client_id,
        client_secret=settings.youtube_client_secret,
        redirect_uri=settings.youtube_redirect_uri,
    )


@contextmanager
def _http_client(client: httpx.Client | None) -> Iterator[httpx.Client]:
    """Yield the caller's client, or a short-lived one that is closed afterwards."""
    if client is not None:
        yield client
        return
    with httpx.Client(timeout=settings.http_timeout_seconds) as owned:
        yield owned


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def build_authorization_url(
    state: str,
    redirect_uri: str | None = None,
    config: OAuthConfig | None = None,
) -> str:
    """Build the Google consent URL.

    ``prompt=consent`` together with ``access_type=offline`` makes Google
    issue a refresh token on every authorization.
    """
    config = config or get_oauth_config()

    params = {
        "client_id": config.client_id,
        "redirect_uri": redirect_uri or config.redirect_uri,
        "response_type": "code",
        "scope": " ".join(YOUTUBE_SCOPES),
        "access_type": "offline",
        "include_granted_scopes": "true",
        "prompt": "consent",
        "state": state,
    }

    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def exchange_code(
    code: str,
    redirect_uri: str | None = None,
    config: OAuthConfig | None = None,
    client: httpx.Client | None = None,
) -> TokenSet:
    """Exchange an authorization code for access and refresh tokens.

    Raises:
        TokenExchangeError: If Google rejects the code or omits a token.
    """
    config = config or get_oauth_config()

    try:
        with _http_client(client) as http:
            response = http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": config.client_id,
                    "client_secret": config.client_secret,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": redirect_uri or config.redirect_uri,
                },
            )
    except httpx.HTTPError as e:
        raise TokenExchangeError(f"Token exchange request failed: {e}") from e

    data = _safe_json(response)

    if response.status_code != 200 or not data.get("access_token"):
        logger.warning(
            "youtube_token_exchange_failed",
            status=response.status_code,
            error=data.get("error"),
        )
        raise TokenExchangeError(
            f"Token exchange failed: {data.get('error_description') or response.text}",
            details=data,
        )

    if not data.get("refresh_token"):
        raise TokenExchangeError(
            "No refresh token received. Revoke access at "
            "https://myaccount.google.com/permissions and connect again.",
            details={"error": "missing_refresh_token"},
        )

    return TokenSet(
        access_token=data["access_token"],
        refresh_token=data["refresh_token"],
        expires_in=int(data.get("expires_in", 3600)),
        scope=data.get("scope"),
    )


def fetch_channel(access_token: str, client: httpx.Client | None = None) -> ChannelInfo:
    """Get the YouTube channel owned by the authorized account.

    Raises:
        NoChannelError: If the account has no channel.
        OAuthError: If the channels request fails.
    """
    try:
        with _http_client(client) as http:
            response = http.get(
                YOUTUBE_CHANNELS_URL,
                params={"part": "snippet", "mine": "true"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
    except httpx.HTTPError as e:
        raise OAuthError(f"Channel lookup failed: {e}") from e

    if response.status_code != 200:
        raise OAuthError(
            f"Channel lookup failed with status {response.status_code}",
            details=_safe_json(response),
        )

    items = _safe_json(response).get("items") or []
    if not items:
        raise NoChannelError("No YouTube channel found for this Google account")

    channel = items[0]
    snippet = channel.get("snippet", {})
    thumbnails = snippet.get("thumbnails", {})
    thumbnail = thumbnails.get("default") or thumbnails.get("medium") or {}

    return ChannelInfo(
        channel_id=channel["id"],
        title=snippet.get("title", ""),
        thumbnail_url=thumbnail.get("url"),
    )


def refresh_access_token(
    refresh_token: str,
    config: OAuthConfig | None = None,
    client: httpx.Client | None = None,
) -> TokenSet:
    """Get a new access token from a refresh token.

    Raises:
        RefreshFailedError: If no access token comes back. ``revoked`` is set
            when Google answers ``invalid_grant``.
    """
    config = config or get_oauth_config()

    try:
        with _http_client(client) as http:
            response = http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": config.client_id,
                    "client_secret": config.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )
    except httpx.HTTPError as e:
        raise RefreshFailedError(f"Token refresh request failed: {e}") from e

    data = _safe_json(response)

    if response.status_code != 200 or not data.get("access_token"):
        error = data.get("error", "unknown")
        if error == "invalid_grant":
            raise RefreshFailedError(
                "Refresh token is invalid or revoked. Reconnect the channel.",
                details=data,
                revoked=True,
            )
        raise RefreshFailedError(
            f"Token refresh failed: {data.get('error_description') or response.text}",
            details=data,
        )

    return TokenSet(
        access_token=data["access_token"],
        expires_in=int(data.get("expires_in", 3600)),
        refresh_token=data.get("refresh_token"),
        scope=data.get("scope"),
    )
