"""Draft posts: partially filled posts that can later be scheduled."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from manypost.db.models import DraftModel, ScheduledPostModel
from manypost.domain.errors import NotFoundError, ValidationError
from manypost.logging import get_logger
from manypost.services.integrations import get_integration
from manypost.services.posts import build_post
from manypost.services.videos import get_video
from manypost.utils.time import ensure_utc

logger = get_logger(__name__)

# Fields a draft shares with a scheduled post
DRAFT_FIELDS = (
    "integration_id",
    "video_id",
    "scheduled_time",
    "title",
    "description",
    "tags",
    "category",
    "privacy_status",
    "video_type",
    "thumbnail_url",
    "made_for_kids",
    "notify_subscribers",
)

# Needed before a draft can become a scheduled post
REQUIRED_FOR_SCHEDULING = ("integration_id", "video_id", "scheduled_time", "title")

# Columns with defaults that cannot be cleared
NON_NULLABLE_FIELDS = ("privacy_status", "video_type", "made_for_kids", "notify_subscribers")


def _clean(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - set(DRAFT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
    values = dict(fields)
    if values.get("scheduled_time") is not None:
        values["scheduled_time"] = ensure_utc(values["scheduled_time"])
    return values


def _check_references(session: Session, user_id: UUID, values: dict[str, Any]) -> None:
    """Referenced integration and video must belong to the user."""
    if values.get("integration_id") is not None:
        integration = get_integration(session, user_id, values["integration_id"])
        values["platform"] = integration.platform
    if values.get("video_id") is not None:
        get_video(session, user_id, values["video_id"])


def create_draft(session: Session, user_id: UUID, **fields: Any) -> DraftModel:
    """Save a draft. Every field is optional."""
    values = {k: v for k, v in _clean(fields).items() if v is not None}
    _check_references(session, user_id, values)
    draft = DraftModel(user_id=user_id, **values)
    session.add(draft)
    session.commit()
    session.refresh(draft)

    logger.info("draft_created", user_id=str(user_id), draft_id=str(draft.id))
    return draft


def get_draft(session: Session, user_id: UUID, draft_id: UUID) -> DraftModel:
    """Get a draft owned by the user.

    Raises:
        NotFoundError: If it does not exist or belongs to someone else.
    """
    draft = session.get(DraftModel, draft_id)
    if not draft or draft.user_id != user_id:
        raise NotFoundError(f"No draft found with ID '{draft_id}'")
    return draft


def list_drafts(session: Session, user_id: UUID) -> list[DraftModel]:
    query = (
        select(DraftModel)
        .where(DraftModel.user_id == user_id)
        .order_by(DraftModel.created_at.desc())
    )
    return list(session.execute(query).scalars().all())


def update_draft(session: Session, user_id: UUID, draft_id: UUID, **fields: Any) -> DraftModel:
    """Overwrite the given fields of a draft. ``None`` clears an optional field."""
    draft = get_draft(session, user_id, draft_id)
    values = {
        k: v for k, v in _clean(fields).items() if v is not None or k not in NON_NULLABLE_FIELDS
    }
    _check_references(session, user_id, values)
    for name, value in values.items():
        setattr(draft, name, value)
    session.commit()
    session.refresh(draft)
    return draft


def delete_draft(session: Session, user_id: UUID, draft_id: UUID) -> None:
    draft = get_draft(session, user_id, draft_id)
    session.delete(draft)
    session.commit()
    logger.info("draft_deleted", user_id=str(user_id), draft_id=str(draft_id))


def promote_draft(
    session: Session,
    user_id: UUID,
    draft_id: UUID,
    scheduled_time: datetime | None = None,
    **overrides: Any,
) -> ScheduledPostModel:
    """Turn a draft into a pending scheduled post and delete the draft.

    Every non-null draft field is carried over unchanged; ``overrides`` and
    ``scheduled_time`` fill in or replace fields. Both writes share one
    transaction.

    Raises:
        ValidationError: If a field needed for scheduling is still missing.
    """
    draft = get_draft(session, user_id, draft_id)

    values = {
        name: getattr(draft, name) for name in DRAFT_FIELDS if getattr(draft, name) is not None
    }
    values.update({k: v for k, v in _clean(overrides).items() if v is not None})
    if scheduled_time is not None:
        values["scheduled_time"] = ensure_utc(scheduled_time)

    missing = [name for name in REQUIRED_FOR_SCHEDULING if not values.get(name)]
    if missing:
        raise ValidationError(
            f"Draft is missing fields required for scheduling: {', '.join(missing)}",
            details={"missing": missing},
        )

    post = build_post(session, user_id, **values)
    session.delete(draft)
    session.commit()
    session.refresh(post)

    logger.info(
        "draft_promoted",
        user_id=str(user_id),
        draft_id=str(draft_id),
        post_id=str(post.id),
    )
    return post
