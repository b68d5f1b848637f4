"""YouTube Publisher Adapter using YouTube Data API v3.

Uploads go through the two-step resumable protocol: a JSON metadata POST
opens a session and returns its URL in the ``Location`` header, then the
raw bytes are PUT to that URL and YouTube answers with the video resource.
"""

from typing import Any

import httpx

from manypost.adapters.publisher.base import (
    PublisherAdapter,
    PublishRequest,
    PublishResponse,
)
from manypost.config import settings
from manypost.domain.enums import Platform, VideoType
from manypost.domain.errors import ManyPostError, UploadError, UploadInitError
from manypost.domain.models import VideoStatistics
from manypost.logging import get_logger

logger = get_logger(__name__)

# YouTube API endpoints
YOUTUBE_UPLOAD_URL = "https://www.googleapis.com/upload/youtube/v3/videos"
YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

# YouTube limits
MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 5000
MAX_TAGS_TOTAL_LENGTH = 500
MAX_IDS_PER_REQUEST = 50

SHORTS_TAG = "#Shorts"
SHORTS_SUFFIX = f" {SHORTS_TAG}"

# Science & Technology
DEFAULT_CATEGORY_ID = "28"


def watch_url(video_id: str) -> str:
    """Public URL of a YouTube video."""
    return YOUTUBE_WATCH_URL.format(video_id=video_id)


def build_upload_title(title: str, video_type: str = VideoType.NORMAL) -> str:
    """Title sent to YouTube.

    Shorts get a single ``#Shorts`` suffix unless the visible part of the
    title already carries the tag. The result never exceeds 100 characters.
    """
    if video_type == VideoType.SHORT and "#shorts" not in title[:MAX_TITLE_LENGTH].lower():
        return title[: MAX_TITLE_LENGTH - len(SHORTS_SUFFIX)] + SHORTS_SUFFIX
    return title[:MAX_TITLE_LENGTH]


def _limit_tags(tags: list[str] | None) -> list[str]:
    final_tags: list[str] = []
    total_length = 0
    for tag in tags or []:
        tag = tag.strip()
        if not tag or len(tag) > MAX_TITLE_LENGTH:
            continue
        if total_length + len(tag) > MAX_TAGS_TOTAL_LENGTH:
            break
        final_tags.append(tag)
        total_length += len(tag)
    return final_tags


def build_video_metadata(request: PublishRequest) -> dict[str, Any]:
    """Build the video resource sent when opening the upload session."""
    snippet: dict[str, Any] = {
        "title": build_upload_title(request.title, request.video_type),
        "description": (request.description or "")[:MAX_DESCRIPTION_LENGTH],
        "tags": _limit_tags(request.tags),
        "categoryId": request.category or DEFAULT_CATEGORY_ID,
    }

    status = {
        "privacyStatus": request.privacy_status,
        "selfDeclaredMadeForKids": request.made_for_kids,
    }

    return {"snippet": snippet, "status": status}


def _safe_json(response: httpx.Response) -> dict[str, Any] | None:
    """Safely parse JSON response."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _describe_error(response: httpx.Response) -> str:
    """Turn a YouTube error payload into a readable message."""
    error_data = _safe_json(response)
    if not error_data:
        return f"HTTP {response.status_code}: {response.text[:500]}"

    error_info = error_data.get("error", {})
    if not isinstance(error_info, dict):
        return f"HTTP {response.status_code}: {error_info}"

    message = error_info.get("message") or response.text[:500]
    for err in error_info.get("errors", []):
        reason = err.get("reason", "")
        if reason == "quotaExceeded":
            return "YouTube API quota exceeded. Try again tomorrow."
        if reason == "uploadLimitExceeded":
            return "YouTube upload limit exceeded for this channel."
    return f"HTTP {response.status_code}: {message}"


class YouTubePublisher(PublisherAdapter):
    """Publishes videos to YouTube with the resumable upload protocol."""

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize the YouTube publisher.

        Args:
            client: HTTP client to use. A client with the upload timeout is
                created on first use when omitted.
        """
        self._client = client
        self._owns_client = client is None

    @property
    def platform(self) -> Platform:
        return Platform.YOUTUBE

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=settings.upload_timeout_seconds)
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def publish(self, request: PublishRequest) -> PublishResponse:
        """Upload a video to YouTube."""
        metadata = build_video_metadata(request)
        upload_url = self._start_session(request, metadata)
        data = self._upload_bytes(upload_url, request)

        video_id = data.get("id")
        if not video_id:
            raise UploadError("YouTube did not return a video id", details=data)

        logger.info(
            "youtube_upload_completed",
            video_id=video_id,
            title=metadata["snippet"]["title"],
            privacy=metadata["status"]["privacyStatus"],
        )

        return PublishResponse(
            platform=Platform.YOUTUBE,
            platform_video_id=video_id,
            url=watch_url(video_id),
            metadata={"status": data.get("status")},
        )

    def _start_session(self, request: PublishRequest, metadata: dict[str, Any]) -> str:
        """Open a resumable upload session and return its URL."""
        headers = {
            "Authorization": f"Bearer {request.access_token}",
            "Content-Type": "application/json; charset=UTF-8",
            "X-Upload-Content-Type": request.mime_type,
        }
        size = request.size()
        if size is not None:
            headers["X-Upload-Content-Length"] = str(size)

        try:
            response = self.client.post(
                YOUTUBE_UPLOAD_URL,
                params={
                    "uploadType": "resumable",
                    "part": "snippet,status",
                    "notifySubscribers": "true" if request.notify_subscribers else "false",
                },
                headers=headers,
                json=metadata,
            )
        except httpx.HTTPError as e:
            raise UploadInitError(f"Failed to initialize upload: {e}") from e

        if not response.is_success:
            raise UploadInitError(
                f"Failed to initialize upload: {_describe_error(response)}",
                details=_safe_json(response),
            )

        upload_url = response.headers.get("Location")
        if not upload_url:
            raise UploadInitError("No upload URL in response")

        return upload_url

    def _upload_bytes(self, upload_url: str, request: PublishRequest) -> dict[str, Any]:
        """PUT the video to an open upload session, streaming chunked content."""
        headers = {
            "Authorization": f"Bearer {request.access_token}",
            "Content-Type": request.mime_type,
        }
        size = request.size()
        if size is not None:
            headers["Content-Length"] = str(size)

        try:
            response = self.client.put(
                upload_url,
                headers=headers,
                content=request.content,
            )
        except httpx.HTTPError as e:
            raise UploadError(f"Video upload failed: {e}") from e

        if not response.is_success:
            raise UploadError(
                f"Video upload failed: {_describe_error(response)}",
                details=_safe_json(response),
            )

        return _safe_json(response) or {}

    def fetch_statistics(
        self, access_token: str, platform_video_ids: list[str]
    ) -> list[VideoStatistics]:
        """Fetch statistics for up to 50 videos in one request."""
        if not platform_video_ids:
            return []
        if len(platform_video_ids) > MAX_IDS_PER_REQUEST:
            raise ValueError(f"At most {MAX_IDS_PER_REQUEST} ids per request")

        try:
            response = self.client.get(
                YOUTUBE_VIDEOS_URL,
                params={"part": "statistics", "id": ",".join(platform_video_ids)},
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=settings.http_timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise ManyPostError(f"YouTube statistics request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "youtube_data_api_error",
                status=response.status_code,
                body=response.text[:500],
            )
            raise ManyPostError(f"YouTube Data API error: {_describe_error(response)}")

        results = []
        for item in (_safe_json(response) or {}).get("items", []):
            stats = item.get("statistics", {})
            results.append(
                VideoStatistics(
                    platform_post_id=item["id"],
                    view_count=int(stats.get("viewCount", 0)),
                    like_count=int(stats.get("likeCount", 0)),
                    comment_count=int(stats.get("commentCount", 0)),
                )
            )
        return results
