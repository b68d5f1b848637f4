"""Scheduled post endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, Field

from manypost.api.deps import CurrentUserDep, SessionDep
from manypost.domain.enums import PostStatus, PrivacyStatus, VideoType
from manypost.services import posts as post_service

router = APIRouter(prefix="/posts", tags=["Posts"])


class PostContent(BaseModel):
    """Metadata sent to the platform with the video."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    tags: list[str] = Field(default_factory=list)
    category: str | None = Field(None, description="YouTube category id, defaults to 28")
    privacy_status: PrivacyStatus = PrivacyStatus.PUBLIC
    video_type: VideoType = VideoType.NORMAL
    thumbnail_url: str | None = None
    made_for_kids: bool = False
    notify_subscribers: bool = True


class SchedulePostRequest(PostContent):
    integration_id: UUID
    video_id: UUID
    scheduled_time: datetime


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    integration_id: UUID
    video_id: UUID
    platform: str
    scheduled_time: datetime
    status: str
    title: str
    description: str | None
    tags: list[str] | None
    category: str | None
    privacy_status: str
    video_type: str
    thumbnail_url: str | None
    made_for_kids: bool
    notify_subscribers: bool
    created_at: datetime
    updated_at: datetime | None


class PostListResponse(BaseModel):
    scheduled_posts: list[PostResponse]


class SchedulePostResponse(BaseModel):
    success: bool = True
    post: PostResponse


@router.get("", response_model=PostListResponse)
async def list_posts(
    session: SessionDep,
    user_id: CurrentUserDep,
    post_status: PostStatus | None = Query(None, alias="status"),
) -> PostListResponse:
    """List the caller's scheduled posts, soonest first."""
    posts = post_service.list_posts(session, user_id, status=post_status)
    return PostListResponse(scheduled_posts=[PostResponse.model_validate(p) for p in posts])


@router.post("", response_model=SchedulePostResponse, status_code=status.HTTP_201_CREATED)
async def schedule_post(
    request: SchedulePostRequest,
    session: SessionDep,
    user_id: CurrentUserDep,
) -> SchedulePostResponse:
    """Schedule a video on one of the caller's integrations."""
    post = post_service.schedule_post(session, user_id, **request.model_dump())
    return SchedulePostResponse(post=PostResponse.model_validate(post))


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: UUID, session: SessionDep, user_id: CurrentUserDep) -> PostResponse:
    return PostResponse.model_validate(post_service.get_post(session, user_id, post_id))


@router.post("/{post_id}/cancel", response_model=PostResponse)
async def cancel_post(post_id: UUID, session: SessionDep, user_id: CurrentUserDep) -> PostResponse:
    """Cancel a pending or failed post."""
    return PostResponse.model_validate(post_service.cancel_post(session, user_id, post_id))
