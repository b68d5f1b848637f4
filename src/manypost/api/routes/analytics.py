"""Post history and statistics endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict

from manypost.api.deps import CurrentUserDep, SessionDep
from manypost.domain.enums import HistoryStatus
from manypost.services.posts import list_history
from manypost.services.stats import get_latest_stats

router = APIRouter(tags=["Analytics"])


class HistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scheduled_post_id: UUID | None
    integration_id: UUID | None
    video_id: UUID | None
    platform: str
    platform_post_id: str | None
    platform_post_url: str | None
    title: str | None
    status: str
    error_message: str | None
    posted_at: datetime


class HistoryListResponse(BaseModel):
    history: list[HistoryResponse]


class VideoStatsResponse(BaseModel):
    post_history_id: UUID
    platform_post_id: str
    platform_post_url: str | None
    title: str | None
    view_count: int
    like_count: int
    comment_count: int
    fetched_at: datetime


class StatsSummary(BaseModel):
    total_views: int
    total_likes: int
    total_comments: int
    videos: list[VideoStatsResponse]


@router.get("/history", response_model=HistoryListResponse)
async def get_history(
    session: SessionDep,
    user_id: CurrentUserDep,
    history_status: HistoryStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
) -> HistoryListResponse:
    """Publish attempts, newest first."""
    rows = list_history(session, user_id, status=history_status, limit=limit)
    return HistoryListResponse(history=[HistoryResponse.model_validate(r) for r in rows])


@router.get("/stats", response_model=StatsSummary)
async def get_stats(session: SessionDep, user_id: CurrentUserDep) -> StatsSummary:
    """Latest statistics snapshot per published video, with totals."""
    videos = [
        VideoStatsResponse(
            post_history_id=history.id,
            platform_post_id=snapshot.platform_post_id,
            platform_post_url=history.platform_post_url,
            title=history.title,
            view_count=snapshot.view_count,
            like_count=snapshot.like_count,
            comment_count=snapshot.comment_count,
            fetched_at=snapshot.fetched_at,
        )
        for history, snapshot in get_latest_stats(session, user_id)
    ]
    return StatsSummary(
        total_views=sum(v.view_count for v in videos),
        total_likes=sum(v.like_count for v in videos),
        total_comments=sum(v.comment_count for v in videos),
        videos=videos,
    )
