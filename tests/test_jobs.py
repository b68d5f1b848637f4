"""Tests for the Celery publishing tasks."""

from contextlib import contextmanager
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from manypost.domain.errors import UploadError
from manypost.domain.models import PublishOutcome, SyncSummary
from manypost.jobs.publishing import publish_post_task, scan_due_posts_task, sync_video_stats_task
from manypost.worker import celery_app


@pytest.fixture
def job_session():
    """Patch the tasks' session factory with a mock session."""
    session = MagicMock()

    @contextmanager
    def session_context():
        yield session

    with patch("manypost.jobs.publishing.get_session_context", session_context):
        yield session


class TestPublishTask:
    def test_success(self, job_session):
        post_id = uuid4()
        outcome = PublishOutcome(
            post_id=post_id,
            platform_post_id="abc123",
            url="https://www.youtube.com/watch?v=abc123",
        )

        with patch("manypost.jobs.publishing.publish_post", return_value=outcome) as publish:
            result = publish_post_task.apply(args=[str(post_id)]).get()

        publish.assert_called_once_with(job_session, post_id)
        assert result["success"] is True
        assert result["videoId"] == "abc123"
        assert result["task_id"]

    def test_failure_is_reported_not_retried(self, job_session):
        with patch(
            "manypost.jobs.publishing.publish_post",
            side_effect=UploadError("Video upload failed: HTTP 500"),
        ) as publish:
            result = publish_post_task.apply(args=[str(uuid4())]).get()

        assert publish.call_count == 1
        assert result == {
            "success": False,
            "task_id": result["task_id"],
            "error": "Video upload failed: HTTP 500",
        }


class TestScanTask:
    def test_queues_a_publish_task_per_due_post(self, job_session):
        post_ids = [uuid4(), uuid4(), uuid4()]

        with (
            patch("manypost.jobs.publishing.find_due_posts", return_value=post_ids) as find,
            patch.object(publish_post_task, "delay") as delay,
        ):
            result = scan_due_posts_task.apply().get()

        find.assert_called_once_with(job_session)
        assert [c.args for c in delay.call_args_list] == [(str(p),) for p in post_ids]
        assert result["queued"] == 3
        assert result["post_ids"] == [str(p) for p in post_ids]

    def test_nothing_due(self, job_session):
        with (
            patch("manypost.jobs.publishing.find_due_posts", return_value=[]),
            patch.object(publish_post_task, "delay") as delay,
        ):
            result = scan_due_posts_task.apply().get()

        delay.assert_not_called()
        assert result["queued"] == 0

    def test_scan_does_not_publish_inline(self, job_session):
        with (
            patch("manypost.jobs.publishing.find_due_posts", return_value=[uuid4()]),
            patch.object(publish_post_task, "delay"),
            patch("manypost.jobs.publishing.publish_post") as publish,
        ):
            scan_due_posts_task.apply().get()

        publish.assert_not_called()


class TestSyncTask:
    def test_user_scope(self, job_session):
        user_id = uuid4()

        with patch(
            "manypost.jobs.publishing.sync_video_stats",
            return_value=SyncSummary(synced=3, skipped=1),
        ) as sync:
            result = sync_video_stats_task.apply(kwargs={"user_id": str(user_id)}).get()

        sync.assert_called_once_with(job_session, user_id=user_id)
        assert (result["synced"], result["skipped"]) == (3, 1)


class TestSchedule:
    def test_beat_schedule(self):
        schedule = celery_app.conf.beat_schedule

        assert schedule["scan-due-posts"]["task"] == "publishing.scan_due_posts"
        assert schedule["sync-video-stats"]["task"] == "publishing.sync_video_stats"

    def test_routes(self):
        routes = celery_app.conf.task_routes

        assert routes["publishing.publish_post"]["queue"] == "high"
