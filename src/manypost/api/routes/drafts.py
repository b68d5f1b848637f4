"""Draft endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field

from manypost.api.deps import CurrentUserDep, SessionDep
from manypost.api.routes.posts import PostResponse
from manypost.domain.enums import PrivacyStatus, VideoType
from manypost.services import drafts as draft_service

router = APIRouter(prefix="/drafts", tags=["Drafts"])


class DraftFields(BaseModel):
    """Every draft field is optional."""

    integration_id: UUID | None = None
    video_id: UUID | None = None
    scheduled_time: datetime | None = None
    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=5000)
    tags: list[str] | None = None
    category: str | None = None
    privacy_status: PrivacyStatus | None = None
    video_type: VideoType | None = None
    thumbnail_url: str | None = None
    made_for_kids: bool | None = None
    notify_subscribers: bool | None = None


class PromoteDraftRequest(DraftFields):
    """Fields that fill in or replace the draft's values when scheduling."""

    pass


class DraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    integration_id: UUID | None
    video_id: UUID | None
    platform: str | None
    scheduled_time: datetime | None
    title: str | None
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


class DraftListResponse(BaseModel):
    drafts: list[DraftResponse]


@router.get("", response_model=DraftListResponse)
async def list_drafts(session: SessionDep, user_id: CurrentUserDep) -> DraftListResponse:
    drafts = draft_service.list_drafts(session, user_id)
    return DraftListResponse(drafts=[DraftResponse.model_validate(d) for d in drafts])


@router.post("", response_model=DraftResponse, status_code=status.HTTP_201_CREATED)
async def create_draft(
    request: DraftFields, session: SessionDep, user_id: CurrentUserDep
) -> DraftResponse:
    draft = draft_service.create_draft(session, user_id, **request.model_dump())
    return DraftResponse.model_validate(draft)


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(draft_id: UUID, session: SessionDep, user_id: CurrentUserDep) -> DraftResponse:
    return DraftResponse.model_validate(draft_service.get_draft(session, user_id, draft_id))


@router.patch("/{draft_id}", response_model=DraftResponse)
async def update_draft(
    draft_id: UUID,
    request: DraftFields,
    session: SessionDep,
    user_id: CurrentUserDep,
) -> DraftResponse:
    """Update only the fields present in the request body."""
    draft = draft_service.update_draft(
        session, user_id, draft_id, **request.model_dump(exclude_unset=True)
    )
    return DraftResponse.model_validate(draft)


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft(draft_id: UUID, session: SessionDep, user_id: CurrentUserDep) -> None:
    draft_service.delete_draft(session, user_id, draft_id)


@router.post(
    "/{draft_id}/schedule",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def promote_draft(
    draft_id: UUID,
    session: SessionDep,
    user_id: CurrentUserDep,
    request: PromoteDraftRequest | None = None,
) -> PostResponse:
    """Schedule a draft. The draft is removed once the post exists."""
    overrides = request.model_dump(exclude_none=True) if request else {}
    post = draft_service.promote_draft(session, user_id, draft_id, **overrides)
    return PostResponse.model_validate(post)
