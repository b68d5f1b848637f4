"""Video publishing adapters."""

from manypost.adapters.publisher.base import (
    PublisherAdapter,
    PublishRequest,
    PublishResponse,
)
from manypost.adapters.publisher.stub import StubPublisherAdapter
from manypost.adapters.publisher.youtube import (
    YouTubePublisher,
    build_upload_title,
    build_video_metadata,
    watch_url,
)
from manypost.adapters.publisher.youtube_oauth import (
    OAuthConfig,
    build_authorization_url,
    exchange_code,
    fetch_channel,
    get_oauth_config,
    refresh_access_token,
)
from manypost.config import settings
from manypost.domain.enums import Platform
from manypost.domain.errors import UnsupportedPlatformError


def get_publisher(platform: str) -> PublisherAdapter:
    """Get the publisher adapter for a platform.

    Raises:
        UnsupportedPlatformError: If no publisher is registered for the platform.
    """
    if platform != Platform.YOUTUBE:
        raise UnsupportedPlatformError(f"Publishing to {platform} is not supported")

    if settings.publisher_provider == "stub":
        return StubPublisherAdapter(Platform.YOUTUBE)
    if settings.publisher_provider == "youtube":
        return YouTubePublisher()
    raise UnsupportedPlatformError(
        f"Unknown publisher provider: {settings.publisher_provider}"
    )


__all__ = [
    # Base
    "PublisherAdapter",
    "PublishRequest",
    "PublishResponse",
    "get_publisher",
    # Stub
    "StubPublisherAdapter",
    # YouTube
    "YouTubePublisher",
    "build_upload_title",
    "build_video_metadata",
    "watch_url",
    # YouTube OAuth
    "OAuthConfig",
    "build_authorization_url",
    "exchange_code",
    "fetch_channel",
    "get_oauth_config",
    "refresh_access_token",
]
