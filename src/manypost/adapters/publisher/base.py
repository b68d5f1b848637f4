"""Base interface for video publishing adapters."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from manypost.domain.enums import Platform, PrivacyStatus, VideoType
from manypost.domain.models import VideoStatistics


@dataclass
class PublishRequest:
    """Everything a platform needs to publish one video."""

    access_token: str
    content: bytes | Iterable[bytes]
    title: str
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    category: str | None = None
    privacy_status: str = PrivacyStatus.PUBLIC
    video_type: str = VideoType.NORMAL
    made_for_kids: bool = False
    notify_subscribers: bool = True
    mime_type: str = "video/mp4"
    content_length: int | None = None

    def size(self) -> int | None:
        """Byte length of the content; chunked content needs ``content_length``."""
        if self.content_length is not None:
            return self.content_length
        if isinstance(self.content, bytes):
            return len(self.content)
        return None


@dataclass
class PublishResponse:
    """A video accepted by the platform."""

    platform: Platform
    platform_video_id: str
    url: str
    metadata: dict[str, Any] | None = None


class PublisherAdapter(ABC):
    """Abstract base class for platform publishing adapters.

    Implementations:
    - YouTubePublisher: resumable upload through the YouTube Data API
    - StubPublisherAdapter: deterministic ids, no network I/O

    Adapters raise on failure; there is no error-carrying response.
    """

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """The platform this adapter publishes to."""
        ...

    @abstractmethod
    def publish(self, request: PublishRequest) -> PublishResponse:
        """Upload a video and return its platform id and URL.

        Raises:
            UploadInitError: If the upload session cannot be opened.
            UploadError: If the bytes are rejected or no id comes back.
        """
        ...

    @abstractmethod
    def fetch_statistics(
        self, access_token: str, platform_video_ids: list[str]
    ) -> list[VideoStatistics]:
        """Fetch view/like/comment counters for published videos."""
        ...
