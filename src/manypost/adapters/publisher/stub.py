"""Stub publisher adapter for local development and tests."""

import hashlib
from dataclasses import replace

from manypost.adapters.publisher.base import (
    PublisherAdapter,
    PublishRequest,
    PublishResponse,
)
from manypost.domain.enums import Platform
from manypost.domain.models import VideoStatistics
from manypost.logging import get_logger

logger = get_logger(__name__)


class StubPublisherAdapter(PublisherAdapter):
    """Simulates publishing without external calls.

    Video ids are derived from the uploaded bytes and title, so the same
    request always yields the same id.
    """

    def __init__(self, platform: Platform = Platform.YOUTUBE) -> None:
        self._platform = platform
        self.published: list[PublishRequest] = []

    @property
    def platform(self) -> Platform:
        return self._platform

    def publish(self, request: PublishRequest) -> PublishResponse:
        # Recorded requests hold plain bytes even when the content was chunked
        content = request.content
        if not isinstance(content, bytes):
            content = b"".join(content)
        request = replace(request, content=content)
        digest = hashlib.sha256(content + request.title.encode()).hexdigest()
        platform_video_id = f"stub_{digest[:11]}"
        url = f"https://{self.platform}.example.com/watch?v={platform_video_id}"

        self.published.append(request)
        logger.info(
            "stub_publish_completed",
            platform=self.platform,
            platform_video_id=platform_video_id,
            title=request.title,
        )

        return PublishResponse(
            platform=self.platform,
            platform_video_id=platform_video_id,
            url=url,
            metadata={"adapter": "stub"},
        )

    def fetch_statistics(
        self, access_token: str, platform_video_ids: list[str]
    ) -> list[VideoStatistics]:
        return [VideoStatistics(platform_post_id=video_id) for video_id in platform_video_ids]
