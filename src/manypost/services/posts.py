"""Scheduled post service: scheduling, cancellation and history."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from manypost.db.models import PostHistoryModel, ScheduledPostModel
from manypost.domain.enums import (
    CANCELLABLE_STATUSES,
    PostStatus,
    PrivacyStatus,
    UploadStatus,
    VideoType,
)
from manypost.domain.errors import NotFoundError, PostNotPublishableError, ValidationError
from manypost.logging import get_logger
from manypost.services.integrations import get_integration
from manypost.services.videos import get_video
from manypost.utils.time import ensure_utc, utcnow

logger = get_logger(__name__)


def build_post(
    session: Session,
    user_id: UUID,
    *,
    integration_id: UUID,
    video_id: UUID,
    scheduled_time: datetime,
    title: str,
    description: str | None = None,
    tags: list[str] | None = None,
    category: str | None = None,
    privacy_status: str = PrivacyStatus.PUBLIC,
    video_type: str = VideoType.NORMAL,
    thumbnail_url: str | None = None,
    made_for_kids: bool = False,
    notify_subscribers: bool = True,
) -> ScheduledPostModel:
    """Validate and add a pending post to the session without committing.

    Raises:
        NotFoundError: If the integration or video is not owned by the user.
        ValidationError: If the title is empty, the integration is inactive,
            or the video has not finished uploading.
    """
    if not title or not title.strip():
        raise ValidationError("Title is required")
    if privacy_status not in set(PrivacyStatus):
        raise ValidationError(f"Invalid privacy status: {privacy_status}")
    if video_type not in set(VideoType):
        raise ValidationError(f"Invalid video type: {video_type}")

    integration = get_integration(session, user_id, integration_id)
    if not integration.is_active:
        raise ValidationError("Integration is disconnected. Reconnect the channel first.")

    video = get_video(session, user_id, video_id)
    if video.upload_status != UploadStatus.COMPLETED:
        raise ValidationError("Video upload has not completed")

    post = ScheduledPostModel(
        user_id=user_id,
        integration_id=integration.id,
        video_id=video.id,
        platform=integration.platform,
        scheduled_time=ensure_utc(scheduled_time),
        status=PostStatus.PENDING,
        title=title,
        description=description,
        tags=list(tags or []),
        category=category,
        privacy_status=privacy_status,
        video_type=video_type,
        thumbnail_url=thumbnail_url,
        made_for_kids=made_for_kids,
        notify_subscribers=notify_subscribers,
    )
    session.add(post)
    return post


def schedule_post(session: Session, user_id: UUID, **fields: Any) -> ScheduledPostModel:
    """Schedule a video for publication. See ``build_post`` for the fields."""
    post = build_post(session, user_id, **fields)
    session.commit()
    session.refresh(post)

    logger.info(
        "post_scheduled",
        user_id=str(user_id),
        post_id=str(post.id),
        scheduled_time=ensure_utc(post.scheduled_time).isoformat(),
    )
    return post


def get_post(session: Session, user_id: UUID, post_id: UUID) -> ScheduledPostModel:
    """Get a post owned by the user.

    Raises:
        NotFoundError: If it does not exist or belongs to someone else.
    """
    post = session.get(ScheduledPostModel, post_id)
    if not post or post.user_id != user_id:
        raise NotFoundError(f"No scheduled post found with ID '{post_id}'")
    return post


def list_posts(
    session: Session,
    user_id: UUID,
    status: str | None = None,
) -> list[ScheduledPostModel]:
    query = (
        select(ScheduledPostModel)
        .where(ScheduledPostModel.user_id == user_id)
        .order_by(ScheduledPostModel.scheduled_time.asc())
    )
    if status:
        query = query.where(ScheduledPostModel.status == status)
    return list(session.execute(query).scalars().all())


def cancel_post(session: Session, user_id: UUID, post_id: UUID) -> ScheduledPostModel:
    """Cancel a pending or failed post.

    The transition is a single conditional update, so a post the scanner
    admitted in the meantime is never cancelled mid-upload.

    Raises:
        NotFoundError: If the post is not owned by the user.
        PostNotPublishableError: If the post is processing, posted or cancelled.
    """
    post = get_post(session, user_id, post_id)

    result = session.execute(
        update(ScheduledPostModel)
        .where(
            ScheduledPostModel.id == post_id,
            ScheduledPostModel.user_id == user_id,
            ScheduledPostModel.status.in_([str(s) for s in CANCELLABLE_STATUSES]),
        )
        .values(status=PostStatus.CANCELLED, updated_at=utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        session.refresh(post)
        raise PostNotPublishableError(f"Post {post_id} cannot be cancelled from '{post.status}'")

    session.commit()
    session.refresh(post)

    logger.info("post_cancelled", user_id=str(user_id), post_id=str(post_id))
    return post


def list_history(
    session: Session,
    user_id: UUID,
    status: str | None = None,
    limit: int = 100,
) -> list[PostHistoryModel]:
    query = (
        select(PostHistoryModel)
        .where(PostHistoryModel.user_id == user_id)
        .order_by(PostHistoryModel.posted_at.desc())
        .limit(limit)
    )
    if status:
        query = query.where(PostHistoryModel.status == status)
    return list(session.execute(query).scalars().all())
