"""Celery tasks for publishing and statistics.

Tasks never retry: a failed publish is recorded on the post and in its
history, and the next attempt has to be requested explicitly.
"""

from typing import Any
from uuid import UUID

from manypost.db.session import get_session_context
from manypost.logging import get_logger
from manypost.services.publisher import publish_post
from manypost.services.scanner import find_due_posts
from manypost.services.stats import sync_video_stats
from manypost.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="publishing.publish_post", max_retries=0)
def publish_post_task(self: Any, scheduled_post_id: str) -> dict[str, Any]:
    """Publish a single scheduled post.

    Args:
        scheduled_post_id: UUID of the scheduled post.

    Returns:
        Dict with success flag and either the video id and URL or the error.
    """
    task_id = self.request.id
    logger.info("publish_task_started", task_id=task_id, post_id=scheduled_post_id)

    try:
        with get_session_context() as session:
            outcome = publish_post(session, UUID(scheduled_post_id))
    except Exception as e:
        logger.error("publish_task_failed", task_id=task_id, post_id=scheduled_post_id, error=str(e))
        return {"success": False, "task_id": task_id, "error": str(e)}

    return {
        "success": True,
        "task_id": task_id,
        "videoId": outcome.platform_post_id,
        "videoUrl": outcome.url,
    }


@celery_app.task(bind=True, name="publishing.scan_due_posts", max_retries=0)
def scan_due_posts_task(self: Any) -> dict[str, Any]:
    """Queue a publish task for every pending post that is due.

    Each upload runs in its own task so the time limits apply per post. A
    post queued twice by overlapping scans is admitted only once.
    """
    with get_session_context() as session:
        post_ids = find_due_posts(session)

    for post_id in post_ids:
        publish_post_task.delay(str(post_id))

    logger.info("scan_task_queued", task_id=self.request.id, queued=len(post_ids))
    return {
        "success": True,
        "task_id": self.request.id,
        "queued": len(post_ids),
        "post_ids": [str(post_id) for post_id in post_ids],
    }


@celery_app.task(bind=True, name="publishing.sync_video_stats", max_retries=0)
def sync_video_stats_task(self: Any, user_id: str | None = None) -> dict[str, Any]:
    """Refresh statistics for every successful post, or one user's posts."""
    with get_session_context() as session:
        summary = sync_video_stats(session, user_id=UUID(user_id) if user_id else None)

    logger.info("sync_task_completed", task_id=self.request.id, synced=summary.synced)
    return {
        "success": True,
        "task_id": self.request.id,
        "synced": summary.synced,
        "skipped": summary.skipped,
    }
