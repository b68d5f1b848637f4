"""Video library endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, Field

from manypost.api.deps import CurrentUserDep, SessionDep, StorageDep
from manypost.services import videos as video_service

router = APIRouter(prefix="/videos", tags=["Videos"])


class RegisterVideoRequest(BaseModel):
    """A finished browser upload."""

    file_name: str = Field(..., min_length=1, max_length=512)
    storage_key: str | None = None
    storage_url: str | None = None
    file_size: int | None = Field(None, ge=0)
    mime_type: str | None = None
    duration: float | None = Field(None, ge=0)
    width: int | None = Field(None, ge=0)
    height: int | None = Field(None, ge=0)
    thumbnail_url: str | None = None


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    file_name: str
    file_size: int | None
    duration: float | None
    width: int | None
    height: int | None
    mime_type: str | None
    storage_url: str | None
    storage_key: str | None
    thumbnail_url: str | None
    upload_status: str
    uploaded_at: datetime | None
    created_at: datetime


class VideoListResponse(BaseModel):
    videos: list[VideoResponse]


@router.get("", response_model=VideoListResponse)
async def list_videos(
    session: SessionDep,
    user_id: CurrentUserDep,
    completed_only: bool = Query(False, description="Only videos that finished uploading"),
) -> VideoListResponse:
    videos = video_service.list_videos(session, user_id, completed_only=completed_only)
    return VideoListResponse(videos=[VideoResponse.model_validate(v) for v in videos])


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def register_video(
    request: RegisterVideoRequest,
    session: SessionDep,
    user_id: CurrentUserDep,
) -> VideoResponse:
    """Record a video uploaded through a presigned URL."""
    video = video_service.register_video(session, user_id, **request.model_dump())
    return VideoResponse.model_validate(video)


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(video_id: UUID, session: SessionDep, user_id: CurrentUserDep) -> VideoResponse:
    return VideoResponse.model_validate(video_service.get_video(session, user_id, video_id))


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_video(
    video_id: UUID,
    session: SessionDep,
    user_id: CurrentUserDep,
    storage: StorageDep,
) -> None:
    """Delete a video and its stored object."""
    video_service.delete_video(session, user_id, video_id, storage)
