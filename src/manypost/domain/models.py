"""Domain value objects passed between services and the API layer."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass
class ChannelInfo:
    """The YouTube channel behind an authorized Google account."""

    channel_id: str
    title: str
    thumbnail_url: str | None = None


@dataclass
class TokenSet:
    """Tokens returned by a code exchange or refresh."""

    access_token: str
    expires_in: int
    refresh_token: str | None = None
    scope: str | None = None


@dataclass
class PublishOutcome:
    """Result of a successful publish."""

    post_id: UUID
    platform_post_id: str
    url: str


@dataclass
class ScanResult:
    """Per-post result of a due-post scan."""

    post_id: UUID
    success: bool
    result: PublishOutcome | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"postId": str(self.post_id), "success": self.success}
        if self.result is not None:
            data["result"] = {"videoId": self.result.platform_post_id, "videoUrl": self.result.url}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class VideoStatistics:
    """Counters reported by the YouTube Data API for one video."""

    platform_post_id: str
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0


@dataclass
class SyncSummary:
    """Outcome of a statistics sync run."""

    synced: int = 0
    skipped: int = 0
    skipped_post_ids: list[str] = field(default_factory=list)


@dataclass
class UploadTarget:
    """A presigned URL the browser can PUT a file to."""

    signed_url: str
    key: str
    public_url: str | None
    expires_at: datetime


@dataclass
class ObjectStream:
    """Video bytes read in chunks, with the size when storage reports it."""

    chunks: Iterator[bytes]
    size: int | None = None
