"""Celery app for publishing and statistics jobs.

Queues:
    high    - publishing a single post on request
    default - the periodic due-post scan
    low     - statistics sync
"""

from typing import Any

import structlog
from celery import Celery
from celery.signals import task_postrun, task_prerun

from manypost.config import settings
from manypost.logging import setup_logging

setup_logging()

celery_app = Celery(
    "manypost",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# An upload may take the whole upload timeout
_upload_limit = int(settings.upload_timeout_seconds)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_default_queue="default",
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=_upload_limit + 60,
    task_soft_time_limit=_upload_limit + 30,
    worker_prefetch_multiplier=1,
    worker_hijack_root_logger=False,
    result_expires=6 * 3600,
    task_routes={
        "publishing.publish_post": {"queue": "high"},
        "publishing.scan_due_posts": {"queue": "default"},
        "publishing.sync_video_stats": {"queue": "low"},
    },
    beat_schedule={
        "scan-due-posts": {
            "task": "publishing.scan_due_posts",
            "schedule": float(settings.scan_interval_seconds),
            # A scan older than one interval is stale; the next one covers it
            "options": {"queue": "default", "expires": float(settings.scan_interval_seconds)},
        },
        "sync-video-stats": {
            "task": "publishing.sync_video_stats",
            "schedule": float(settings.stats_sync_interval_seconds),
            "options": {"queue": "low"},
        },
    },
)


@task_prerun.connect
def _bind_task_context(task_id: str | None = None, task: Any = None, **_: Any) -> None:
    structlog.contextvars.bind_contextvars(task_id=task_id, task_name=getattr(task, "name", None))


@task_postrun.connect
def _clear_task_context(**_: Any) -> None:
    structlog.contextvars.unbind_contextvars("task_id", "task_name")


celery_app.autodiscover_tasks(["manypost.jobs"], related_name="publishing")
