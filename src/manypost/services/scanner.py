"""Due-post scanner.

Polled by the scheduler: finds pending posts whose time has come and
publishes each one. A failing post never stops the rest of the batch.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy import select
from sqlalchemy.orm import Session

from manypost.config import settings
from manypost.db.models import ScheduledPostModel
from manypost.domain.enums import PostStatus
from manypost.domain.models import PublishOutcome, ScanResult
from manypost.logging import get_logger, log_context
from manypost.services.publisher import publish_post
from manypost.utils.time import utcnow

logger = get_logger(__name__)


def find_due_posts(
    session: Session,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[UUID]:
    """Ids of pending posts scheduled at or before ``now``, oldest first."""
    now = now or utcnow()
    query = (
        select(ScheduledPostModel.id)
        .where(
            ScheduledPostModel.status == PostStatus.PENDING,
            ScheduledPostModel.scheduled_time <= now,
        )
        .order_by(ScheduledPostModel.scheduled_time.asc())
        .limit(limit or settings.scan_batch_size)
    )
    return list(session.execute(query).scalars().all())


def scan_due_posts(
    session: Session,
    now: datetime | None = None,
    publish: Callable[..., PublishOutcome] = publish_post,
    **publish_kwargs: Any,
) -> list[ScanResult]:
    """Publish every due post and report a result per post."""
    post_ids = find_due_posts(session, now)
    if not post_ids:
        return []

    logger.info("scan_started", due=len(post_ids))

    results: list[ScanResult] = []
    for post_id in post_ids:
        with log_context(post_id=str(post_id)):
            try:
                outcome = publish(session, post_id, **publish_kwargs)
                results.append(ScanResult(post_id=post_id, success=True, result=outcome))
            except SoftTimeLimitExceeded:
                # publish_post has already marked this post failed
                logger.warning("scan_time_limit_reached", processed=len(results) + 1)
                raise
            except Exception as e:
                session.rollback()
                logger.warning("scan_post_failed", error=str(e))
                results.append(ScanResult(post_id=post_id, success=False, error=str(e)))

    logger.info(
        "scan_completed",
        processed=len(results),
        succeeded=sum(1 for r in results if r.success),
    )
    return results
