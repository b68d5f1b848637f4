"""Unit tests for the YouTube resumable upload adapter."""

import json

import httpx
import pytest

from manypost.adapters.publisher.base import PublishRequest
from manypost.adapters.publisher.youtube import (
    DEFAULT_CATEGORY_ID,
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    YouTubePublisher,
    build_upload_title,
    build_video_metadata,
    watch_url,
)
from manypost.domain.enums import Platform, VideoType
from manypost.domain.errors import ManyPostError, UploadError, UploadInitError

SESSION_URL = "https://www.googleapis.com/upload/youtube/v3/videos?upload_id=session-1"


def make_request(**overrides) -> PublishRequest:
    values = {
        "access_token": "access-token",
        "content": b"video-bytes",
        "title": "My video",
        "description": "Description",
        "tags": ["a", "b"],
    }
    values.update(overrides)
    return PublishRequest(**values)


class TestUploadTitle:
    """Tests for the #Shorts title rule."""

    def test_normal_video_keeps_title(self):
        assert build_upload_title("Hello", VideoType.NORMAL) == "Hello"

    def test_normal_video_truncated_to_limit(self):
        assert len(build_upload_title("x" * 150, VideoType.NORMAL)) == MAX_TITLE_LENGTH

    def test_short_gets_suffix(self):
        assert build_upload_title("Hello", VideoType.SHORT) == "Hello #Shorts"

    def test_short_with_tag_is_unchanged(self):
        assert build_upload_title("My clip #shorts", VideoType.SHORT) == "My clip #shorts"

    def test_short_tag_detection_is_case_insensitive(self):
        assert build_upload_title("#SHORTS fun", VideoType.SHORT) == "#SHORTS fun"

    def test_long_short_title_fits_with_one_suffix(self):
        title = build_upload_title("y" * 120, VideoType.SHORT)

        assert len(title) == MAX_TITLE_LENGTH
        assert title.endswith(" #Shorts")
        assert title.lower().count("#shorts") == 1

    def test_tag_beyond_visible_part_gets_suffix(self):
        title = build_upload_title("z" * 100 + " #shorts", VideoType.SHORT)

        assert len(title) == MAX_TITLE_LENGTH
        assert title.lower().count("#shorts") == 1


class TestVideoMetadata:
    """Tests for the metadata sent when opening the upload session."""

    def test_defaults(self):
        metadata = build_video_metadata(make_request())

        assert metadata["snippet"]["categoryId"] == DEFAULT_CATEGORY_ID
        assert metadata["snippet"]["tags"] == ["a", "b"]
        assert metadata["status"] == {"privacyStatus": "public", "selfDeclaredMadeForKids": False}

    def test_description_truncated(self):
        metadata = build_video_metadata(make_request(description="d" * 6000))

        assert len(metadata["snippet"]["description"]) == MAX_DESCRIPTION_LENGTH

    def test_custom_category_and_privacy(self):
        metadata = build_video_metadata(
            make_request(category="22", privacy_status="unlisted", made_for_kids=True)
        )

        assert metadata["snippet"]["categoryId"] == "22"
        assert metadata["status"]["privacyStatus"] == "unlisted"
        assert metadata["status"]["selfDeclaredMadeForKids"] is True


class TestYouTubePublisher:
    """Tests for YouTubePublisher against a fake YouTube."""

    def test_platform_property(self):
        assert YouTubePublisher().platform == Platform.YOUTUBE

    def test_publish_two_step_upload(self, mock_http):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if request.method == "POST":
                return httpx.Response(200, headers={"Location": SESSION_URL})
            return httpx.Response(200, json={"id": "abc123", "status": {"uploadStatus": "uploaded"}})

        publisher = YouTubePublisher(client=mock_http(handler))
        response = publisher.publish(make_request(video_type=VideoType.SHORT, notify_subscribers=False))

        assert response.platform_video_id == "abc123"
        assert response.url == watch_url("abc123") == "https://www.youtube.com/watch?v=abc123"

        init, upload = calls
        assert init.url.params["uploadType"] == "resumable"
        assert init.url.params["notifySubscribers"] == "false"
        assert init.headers["Authorization"] == "Bearer access-token"
        assert init.headers["X-Upload-Content-Length"] == str(len(b"video-bytes"))
        assert json.loads(init.content)["snippet"]["title"] == "My video #Shorts"

        assert upload.method == "PUT"
        assert str(upload.url) == SESSION_URL
        assert upload.content == b"video-bytes"

    def test_chunked_content_is_streamed_with_known_length(self, mock_http):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            calls.append(request)
            if request.method == "POST":
                return httpx.Response(200, headers={"Location": SESSION_URL})
            return httpx.Response(200, json={"id": "abc123"})

        chunks = iter([b"video-", b"bytes"])
        publisher = YouTubePublisher(client=mock_http(handler))
        publisher.publish(make_request(content=chunks, content_length=11))

        init, upload = calls
        assert init.headers["X-Upload-Content-Length"] == "11"
        assert upload.headers["Content-Length"] == "11"
        assert "Transfer-Encoding" not in upload.headers
        assert upload.content == b"video-bytes"

    def test_chunked_content_without_length(self, mock_http):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            calls.append(request)
            if request.method == "POST":
                return httpx.Response(200, headers={"Location": SESSION_URL})
            return httpx.Response(200, json={"id": "abc123"})

        publisher = YouTubePublisher(client=mock_http(handler))
        publisher.publish(make_request(content=iter([b"video-bytes"])))

        init, upload = calls
        assert "X-Upload-Content-Length" not in init.headers
        assert upload.content == b"video-bytes"

    def test_init_failure(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                403,
                json={"error": {"message": "quota", "errors": [{"reason": "quotaExceeded"}]}},
            )

        publisher = YouTubePublisher(client=mock_http(handler))

        with pytest.raises(UploadInitError, match="quota exceeded"):
            publisher.publish(make_request())

    def test_missing_location_header(self, mock_http):
        publisher = YouTubePublisher(client=mock_http(lambda request: httpx.Response(200)))

        with pytest.raises(UploadInitError, match="No upload URL"):
            publisher.publish(make_request())

    def test_upload_rejected(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, headers={"Location": SESSION_URL})
            return httpx.Response(400, json={"error": {"message": "Bad video"}})

        publisher = YouTubePublisher(client=mock_http(handler))

        with pytest.raises(UploadError, match="Bad video"):
            publisher.publish(make_request())

    def test_upload_without_id(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, headers={"Location": SESSION_URL})
            return httpx.Response(200, json={"status": {}})

        publisher = YouTubePublisher(client=mock_http(handler))

        with pytest.raises(UploadError, match="video id"):
            publisher.publish(make_request())


class TestFetchStatistics:
    """Tests for the statistics request."""

    def test_parses_counts(self, mock_http):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ids"] = request.url.params["id"]
            return httpx.Response(
                200,
                json={
                    "items": [
                        {"id": "v1", "statistics": {"viewCount": "10", "likeCount": "2", "commentCount": "1"}},
                        {"id": "v2", "statistics": {"viewCount": "5"}},
                    ]
                },
            )

        publisher = YouTubePublisher(client=mock_http(handler))
        stats = publisher.fetch_statistics("token", ["v1", "v2"])

        assert seen["ids"] == "v1,v2"
        assert [(s.platform_post_id, s.view_count, s.like_count, s.comment_count) for s in stats] == [
            ("v1", 10, 2, 1),
            ("v2", 5, 0, 0),
        ]

    def test_empty_ids_skip_request(self):
        assert YouTubePublisher().fetch_statistics("token", []) == []

    def test_too_many_ids(self):
        with pytest.raises(ValueError):
            YouTubePublisher().fetch_statistics("token", [f"v{i}" for i in range(51)])

    def test_api_error(self, mock_http):
        publisher = YouTubePublisher(client=mock_http(lambda request: httpx.Response(500, text="boom")))

        with pytest.raises(ManyPostError):
            publisher.fetch_statistics("token", ["v1"])
