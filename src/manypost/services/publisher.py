"""Publishing of scheduled posts.

A publish attempt is admitted by a single conditional update that moves the
post from pending or failed to processing. Exactly one caller can win that
update, so a post is never uploaded twice concurrently. Once admitted, the
attempt always ends in ``posted`` or ``failed`` with one history row.
"""

from uuid import UUID

import httpx
from sqlalchemy import update
from sqlalchemy.orm import Session

from manypost.adapters.publisher import PublisherAdapter, PublishRequest, get_publisher
from manypost.db.models import (
    IntegrationModel,
    PostHistoryModel,
    ScheduledPostModel,
    VideoModel,
)
from manypost.domain.enums import PUBLISHABLE_STATUSES, HistoryStatus, PostStatus
from manypost.domain.errors import ManyPostError, NotFoundError, PostNotPublishableError
from manypost.domain.models import PublishOutcome
from manypost.logging import get_logger
from manypost.services.storage import StorageGateway, get_storage
from manypost.services.tokens import ensure_access_token
from manypost.services.videos import open_video
from manypost.utils.time import utcnow

logger = get_logger(__name__)


def admit_post(session: Session, post_id: UUID) -> bool:
    """Move a post to processing if it is pending or failed. Commits on success."""
    result = session.execute(
        update(ScheduledPostModel)
        .where(
            ScheduledPostModel.id == post_id,
            ScheduledPostModel.status.in_([str(s) for s in PUBLISHABLE_STATUSES]),
        )
        .values(status=PostStatus.PROCESSING, updated_at=utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        return False
    session.commit()
    return True


def publish_post(
    session: Session,
    post_id: UUID,
    user_id: UUID | None = None,
    publisher: PublisherAdapter | None = None,
    storage: StorageGateway | None = None,
    oauth_client: httpx.Client | None = None,
) -> PublishOutcome:
    """Publish one scheduled post now.

    Args:
        session: Database session.
        post_id: The scheduled post to publish.
        user_id: When given, the post must belong to this user.
        publisher: Adapter override; chosen by platform when omitted.
        storage: Storage gateway override.
        oauth_client: HTTP client used for token refresh.

    Returns:
        The platform id and URL of the published video.

    Raises:
        NotFoundError: If the post does not exist. Nothing is written.
        PostNotPublishableError: If the post is processing, posted or
            cancelled. Nothing is written.
        Exception: Any failure after admission is re-raised after the post
            is marked failed and a failed history row is stored.
    """
    log = logger.bind(post_id=str(post_id))

    post = session.get(ScheduledPostModel, post_id)
    if post is None or (user_id is not None and post.user_id != user_id):
        raise NotFoundError(f"No scheduled post found with ID '{post_id}'")

    if not admit_post(session, post_id):
        session.refresh(post)
        log.info("publish_rejected", status=post.status)
        raise PostNotPublishableError(f"Post {post_id} is '{post.status}' and cannot be published")

    session.refresh(post)
    log.info("publish_started", platform=post.platform, integration_id=str(post.integration_id))

    # Captured up front so the failure path does not depend on session state
    history_fields = {
        "user_id": post.user_id,
        "scheduled_post_id": post.id,
        "integration_id": post.integration_id,
        "video_id": post.video_id,
        "platform": post.platform,
        "title": post.title,
    }

    try:
        outcome = _upload(session, post, publisher, storage, oauth_client)
    except Exception as e:
        session.rollback()
        _record_failure(session, post_id, history_fields, e)
        log.error("publish_failed", error=str(e), error_type=type(e).__name__)
        raise

    session.execute(
        update(ScheduledPostModel)
        .where(ScheduledPostModel.id == post_id)
        .values(status=PostStatus.POSTED, updated_at=utcnow())
    )
    session.add(
        PostHistoryModel(
            **history_fields,
            platform_post_id=outcome.platform_post_id,
            platform_post_url=outcome.url,
            status=HistoryStatus.SUCCESS,
            posted_at=utcnow(),
        )
    )
    session.commit()

    log.info("post_published", platform_post_id=outcome.platform_post_id, url=outcome.url)
    return outcome


def _upload(
    session: Session,
    post: ScheduledPostModel,
    publisher: PublisherAdapter | None,
    storage: StorageGateway | None,
    oauth_client: httpx.Client | None,
) -> PublishOutcome:
    publisher = publisher or get_publisher(post.platform)

    integration = session.get(IntegrationModel, post.integration_id)
    if integration is None or not integration.is_active:
        raise ManyPostError(f"Integration {post.integration_id} is missing or disconnected")

    video = session.get(VideoModel, post.video_id)
    if video is None:
        raise ManyPostError(f"Video {post.video_id} not found")

    access_token = ensure_access_token(session, integration, client=oauth_client)
    stream = open_video(storage or get_storage(), video)

    response = publisher.publish(
        PublishRequest(
            access_token=access_token,
            content=stream.chunks,
            content_length=stream.size or video.file_size,
            title=post.title,
            description=post.description,
            tags=list(post.tags or []),
            category=post.category,
            privacy_status=post.privacy_status,
            video_type=post.video_type,
            made_for_kids=post.made_for_kids,
            notify_subscribers=post.notify_subscribers,
            mime_type=video.mime_type or "video/mp4",
        )
    )

    return PublishOutcome(
        post_id=post.id,
        platform_post_id=response.platform_video_id,
        url=response.url,
    )


def _record_failure(
    session: Session,
    post_id: UUID,
    history_fields: dict,
    error: Exception,
) -> None:
    session.execute(
        update(ScheduledPostModel)
        .where(ScheduledPostModel.id == post_id)
        .values(status=PostStatus.FAILED, updated_at=utcnow())
    )
    session.add(
        PostHistoryModel(
            **history_fields,
            status=HistoryStatus.FAILED,
            error_message=str(error) or type(error).__name__,
            posted_at=utcnow(),
        )
    )
    session.commit()
