"""Publishing endpoints called by the scheduler, workers and users."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from manypost.api.deps import PrincipalDep, ServiceDep, SessionDep, StorageDep
from manypost.domain.errors import ManyPostError
from manypost.logging import get_logger
from manypost.services.publisher import publish_post
from manypost.services.scanner import scan_due_posts
from manypost.services.stats import sync_video_stats

router = APIRouter(tags=["Publishing"])
logger = get_logger(__name__)


class PublishRequestBody(BaseModel):
    scheduled_post_id: UUID


class PublishResult(BaseModel):
    success: bool = True
    video_id: str = Field(serialization_alias="videoId")
    video_url: str = Field(serialization_alias="videoUrl")


class ScanResponse(BaseModel):
    success: bool = True
    processed: int
    results: list[dict[str, Any]]


class SyncResponse(BaseModel):
    success: bool = True
    synced: int
    skipped: int


@router.post(
    "/publish",
    response_model=PublishResult,
    responses={
        status.HTTP_404_NOT_FOUND: {"description": "Post not found"},
        status.HTTP_409_CONFLICT: {"description": "Post is not pending or failed"},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"description": "Publishing failed"},
    },
)
def publish(
    request: PublishRequestBody,
    session: SessionDep,
    principal: PrincipalDep,
    storage: StorageDep,
) -> PublishResult | JSONResponse:
    """Publish a scheduled post now.

    Users may only publish their own posts; the service token may publish any.
    Once a post is admitted, any failure marks it failed and answers 500.
    """
    owner = None if principal.is_service else principal.user_id

    try:
        outcome = publish_post(
            session, request.scheduled_post_id, user_id=owner, storage=storage
        )
    except ManyPostError as e:
        if e.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_409_CONFLICT):
            raise
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": e.message},
        )
    except Exception as e:
        logger.exception("publish_unexpected_error", post_id=str(request.scheduled_post_id))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e) or type(e).__name__},
        )

    return PublishResult(video_id=outcome.platform_post_id, video_url=outcome.url)


@router.post("/scan", response_model=ScanResponse)
def scan(session: SessionDep, storage: StorageDep, _: ServiceDep) -> ScanResponse:
    """Publish every pending post whose time has come."""
    results = scan_due_posts(session, storage=storage)
    return ScanResponse(processed=len(results), results=[r.to_dict() for r in results])


@router.post("/sync-stats", response_model=SyncResponse)
def sync_stats(session: SessionDep, principal: PrincipalDep) -> SyncResponse:
    """Refresh statistics: all videos for the service token, own videos for a user."""
    user_id = None if principal.is_service else principal.user_id
    summary = sync_video_stats(session, user_id=user_id)
    return SyncResponse(synced=summary.synced, skipped=summary.skipped)
