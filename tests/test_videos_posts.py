"""Tests for the video library and post scheduling services."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from manypost.config import settings
from manypost.db.models import PostHistoryModel
from manypost.domain.enums import HistoryStatus, PostStatus, UploadStatus
from manypost.domain.errors import (
    NotFoundError,
    PostNotPublishableError,
    StorageError,
    ValidationError,
)
from manypost.services.posts import cancel_post, list_history, list_posts, schedule_post
from manypost.services.storage import StorageGateway
from manypost.services.videos import delete_video, get_video, list_videos, register_video
from manypost.utils.time import ensure_utc, utcnow


class TestVideos:
    def test_register_with_key(self, session, factory):
        user = factory.user()

        video = register_video(session, user.id, "clip.mp4", storage_key=f"{user.id}/abc-clip.mp4")

        assert video.upload_status == UploadStatus.COMPLETED
        assert video.mime_type == "video/mp4"
        assert [v.id for v in list_videos(session, user.id)] == [video.id]

    def test_register_requires_location(self, session, factory):
        with pytest.raises(ValidationError):
            register_video(session, factory.user().id, "clip.mp4")

    def test_register_rejects_foreign_key(self, session, factory):
        user = factory.user()

        with pytest.raises(ValidationError):
            register_video(session, user.id, "clip.mp4", storage_key=f"{uuid4()}/clip.mp4")

    @pytest.mark.parametrize(
        "url",
        [
            "http://127.0.0.1:8080/latest/meta-data/iam",
            "http://169.254.169.254/latest/meta-data/",
            "https://cdn.example.com.evil.test/clip.mp4",
        ],
    )
    def test_register_rejects_url_outside_bucket(self, session, factory, url):
        user = factory.user()

        with patch.object(settings, "storage_public_base_url", "https://cdn.example.com"):
            with pytest.raises(ValidationError, match="storage bucket"):
                register_video(session, user.id, "iam.mp4", storage_url=url)

        assert list_videos(session, user.id) == []

    def test_register_with_bucket_url(self, session, factory):
        user = factory.user()
        url = f"https://cdn.example.com/{user.id}/abc-clip.mp4"

        with patch.object(settings, "storage_public_base_url", "https://cdn.example.com"):
            video = register_video(session, user.id, "clip.mp4", storage_url=url)

        assert video.storage_key == f"{user.id}/abc-clip.mp4"
        assert video.storage_url == url

    def test_register_rejects_bucket_url_of_other_user(self, session, factory):
        user = factory.user()
        url = f"https://cdn.example.com/{uuid4()}/abc-clip.mp4"

        with patch.object(settings, "storage_public_base_url", "https://cdn.example.com"):
            with pytest.raises(ValidationError, match="does not belong"):
                register_video(session, user.id, "clip.mp4", storage_url=url)

    def test_register_rejects_url_for_different_key(self, session, factory):
        user = factory.user()

        with patch.object(settings, "storage_public_base_url", "https://cdn.example.com"):
            with pytest.raises(ValidationError, match="does not match"):
                register_video(
                    session,
                    user.id,
                    "clip.mp4",
                    storage_key=f"{user.id}/abc-clip.mp4",
                    storage_url=f"https://cdn.example.com/{user.id}/other.mp4",
                )

    def test_get_is_owner_scoped(self, session, factory):
        video = factory.video(factory.user())

        with pytest.raises(NotFoundError):
            get_video(session, factory.user().id, video.id)

    def test_delete_survives_storage_failure(self, session, factory):
        user = factory.user()
        video = factory.video(user)
        storage = MagicMock(spec=StorageGateway)
        storage.delete_object.side_effect = StorageError("gone")

        delete_video(session, user.id, video.id, storage)

        storage.delete_object.assert_called_once_with(video.storage_key)
        assert list_videos(session, user.id) == []


class TestSchedulePost:
    def test_schedule(self, session, factory):
        user = factory.user()
        integration, video = factory.integration(user), factory.video(user)
        when = utcnow() + timedelta(days=2)

        post = schedule_post(
            session,
            user.id,
            integration_id=integration.id,
            video_id=video.id,
            scheduled_time=when,
            title="Tomorrow",
            tags=["x"],
        )

        assert post.status == PostStatus.PENDING
        assert post.platform == "youtube"
        assert ensure_utc(post.scheduled_time) == when
        assert [p.id for p in list_posts(session, user.id, status="pending")] == [post.id]

    def test_naive_time_is_treated_as_utc(self, session, factory):
        user = factory.user()
        post = schedule_post(
            session,
            user.id,
            integration_id=factory.integration(user).id,
            video_id=factory.video(user).id,
            scheduled_time=datetime(2030, 1, 1, 12, 0),
            title="Naive",
        )

        assert ensure_utc(post.scheduled_time).isoformat() == "2030-01-01T12:00:00+00:00"

    @pytest.mark.parametrize(
        "overrides,error",
        [
            ({"title": "  "}, ValidationError),
            ({"privacy_status": "secret"}, ValidationError),
            ({"video_type": "reel"}, ValidationError),
        ],
    )
    def test_invalid_fields(self, session, factory, overrides, error):
        user = factory.user()
        fields = {
            "integration_id": factory.integration(user).id,
            "video_id": factory.video(user).id,
            "scheduled_time": utcnow(),
            "title": "ok",
            **overrides,
        }

        with pytest.raises(error):
            schedule_post(session, user.id, **fields)

    def test_incomplete_video_rejected(self, session, factory):
        user = factory.user()
        video = factory.video(user, upload_status=UploadStatus.UPLOADING)

        with pytest.raises(ValidationError, match="not completed"):
            schedule_post(
                session,
                user.id,
                integration_id=factory.integration(user).id,
                video_id=video.id,
                scheduled_time=utcnow(),
                title="t",
            )


class TestCancelPost:
    @pytest.mark.parametrize("status", [PostStatus.PENDING, PostStatus.FAILED])
    def test_cancel(self, session, factory, status):
        user = factory.user()
        post = factory.post(user, factory.integration(user), factory.video(user), status=status)

        assert cancel_post(session, user.id, post.id).status == PostStatus.CANCELLED

    @pytest.mark.parametrize(
        "status", [PostStatus.PROCESSING, PostStatus.POSTED, PostStatus.CANCELLED]
    )
    def test_cannot_cancel(self, session, factory, status):
        user = factory.user()
        post = factory.post(user, factory.integration(user), factory.video(user), status=status)

        with pytest.raises(PostNotPublishableError):
            cancel_post(session, user.id, post.id)
        assert post.status == status


class TestHistory:
    def test_filter_and_order(self, session, factory):
        user = factory.user()
        now = utcnow()
        for i, status in enumerate([HistoryStatus.SUCCESS, HistoryStatus.FAILED, HistoryStatus.SUCCESS]):
            session.add(
                PostHistoryModel(
                    user_id=user.id,
                    platform="youtube",
                    title=f"h{i}",
                    status=status,
                    posted_at=now - timedelta(minutes=i),
                )
            )
        session.commit()

        assert [h.title for h in list_history(session, user.id)] == ["h0", "h1", "h2"]
        assert [h.title for h in list_history(session, user.id, status="success")] == ["h0", "h2"]
        assert len(list_history(session, user.id, limit=1)) == 1
        assert list_history(session, factory.user().id) == []
