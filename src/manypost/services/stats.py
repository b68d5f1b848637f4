"""Statistics synchronization for published videos.

Each run appends a snapshot row per video; the newest snapshot is the one
shown to users. Problems with one channel or one batch only skip the videos
involved.
"""

from collections import defaultdict
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from manypost.adapters.publisher import PublisherAdapter, get_publisher
from manypost.adapters.publisher.youtube import MAX_IDS_PER_REQUEST
from manypost.db.models import IntegrationModel, PostHistoryModel, VideoStatModel
from manypost.domain.enums import HistoryStatus, Platform
from manypost.domain.errors import ManyPostError
from manypost.domain.models import SyncSummary
from manypost.logging import get_logger
from manypost.services.tokens import ensure_access_token
from manypost.utils.time import utcnow

logger = get_logger(__name__)


def _chunks(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def _fallback_integration(session: Session, user_id: UUID) -> IntegrationModel | None:
    """The user's most recently connected active YouTube integration."""
    return session.execute(
        select(IntegrationModel)
        .where(
            IntegrationModel.user_id == user_id,
            IntegrationModel.platform == Platform.YOUTUBE,
            IntegrationModel.is_active.is_(True),
        )
        .order_by(IntegrationModel.connected_at.desc())
        .limit(1)
    ).scalar_one_or_none()


def _group_by_integration(
    session: Session, rows: list[PostHistoryModel]
) -> dict[UUID | None, tuple[IntegrationModel | None, list[PostHistoryModel]]]:
    groups: dict[UUID | None, tuple[IntegrationModel | None, list[PostHistoryModel]]] = {}
    for row in rows:
        integration = (
            session.get(IntegrationModel, row.integration_id) if row.integration_id else None
        )
        if integration is None:
            integration = _fallback_integration(session, row.user_id)
        key = integration.id if integration else None
        if key not in groups:
            groups[key] = (integration, [])
        groups[key][1].append(row)
    return groups


def sync_video_stats(
    session: Session,
    user_id: UUID | None = None,
    publisher: PublisherAdapter | None = None,
    oauth_client: httpx.Client | None = None,
) -> SyncSummary:
    """Fetch fresh statistics for successfully published YouTube videos.

    Args:
        session: Database session.
        user_id: Limit the sync to one user's videos.
        publisher: Adapter override for the statistics call.
        oauth_client: HTTP client used for token refresh.
    """
    query = select(PostHistoryModel).where(
        PostHistoryModel.status == HistoryStatus.SUCCESS,
        PostHistoryModel.platform == Platform.YOUTUBE,
        PostHistoryModel.platform_post_id.is_not(None),
    )
    if user_id is not None:
        query = query.where(PostHistoryModel.user_id == user_id)
    rows = list(session.execute(query).scalars().all())

    summary = SyncSummary()
    if not rows:
        return summary

    publisher = publisher or get_publisher(Platform.YOUTUBE)

    def skip(skipped: list[PostHistoryModel], reason: str) -> None:
        summary.skipped += len(skipped)
        summary.skipped_post_ids.extend(r.platform_post_id or "" for r in skipped)
        logger.info("stats_sync_skipped", count=len(skipped), reason=reason)

    for integration, group in _group_by_integration(session, rows).values():
        if integration is None or not integration.is_active:
            skip(group, "integration_unavailable")
            continue

        try:
            access_token = ensure_access_token(session, integration, client=oauth_client)
        except ManyPostError as e:
            session.rollback()
            skip(group, f"token_unavailable: {e}")
            continue

        by_video_id: dict[str, list[PostHistoryModel]] = defaultdict(list)
        for row in group:
            by_video_id[row.platform_post_id or ""].append(row)

        fetched_at = utcnow()
        for chunk in _chunks(list(by_video_id), MAX_IDS_PER_REQUEST):
            try:
                stats = publisher.fetch_statistics(access_token, chunk)
            except ManyPostError as e:
                skip([r for vid in chunk for r in by_video_id[vid]], f"stats_request_failed: {e}")
                continue

            returned = {s.platform_post_id: s for s in stats}
            for video_id in chunk:
                video_stats = returned.get(video_id)
                if video_stats is None:
                    skip(by_video_id[video_id], "video_not_returned")
                    continue
                for row in by_video_id[video_id]:
                    session.add(
                        VideoStatModel(
                            user_id=row.user_id,
                            post_history_id=row.id,
                            platform_post_id=video_id,
                            view_count=video_stats.view_count,
                            like_count=video_stats.like_count,
                            comment_count=video_stats.comment_count,
                            fetched_at=fetched_at,
                        )
                    )
                    summary.synced += 1

        integration.last_synced_at = fetched_at
        session.commit()

    logger.info("stats_sync_completed", synced=summary.synced, skipped=summary.skipped)
    return summary


def get_latest_stats(
    session: Session, user_id: UUID
) -> list[tuple[PostHistoryModel, VideoStatModel]]:
    """Most recent snapshot for each of the user's published videos."""
    snapshots = session.execute(
        select(VideoStatModel)
        .where(VideoStatModel.user_id == user_id)
        .order_by(VideoStatModel.fetched_at.desc())
    ).scalars()

    latest: dict[UUID, VideoStatModel] = {}
    for snapshot in snapshots:
        latest.setdefault(snapshot.post_history_id, snapshot)

    return [(snapshot.post_history, snapshot) for snapshot in latest.values()]
