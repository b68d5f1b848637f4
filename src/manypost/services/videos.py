"""Video library service."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from manypost.db.models import VideoModel
from manypost.domain.enums import UploadStatus
from manypost.domain.errors import NotFoundError, StorageError, ValidationError
from manypost.domain.models import ObjectStream
from manypost.logging import get_logger
from manypost.services.storage import StorageGateway, key_belongs_to, key_from_public_url
from manypost.utils.time import utcnow

logger = get_logger(__name__)


def register_video(
    session: Session,
    user_id: UUID,
    file_name: str,
    storage_key: str | None = None,
    storage_url: str | None = None,
    file_size: int | None = None,
    mime_type: str | None = None,
    duration: float | None = None,
    width: int | None = None,
    height: int | None = None,
    thumbnail_url: str | None = None,
) -> VideoModel:
    """Record a video the browser finished uploading with a presigned URL.

    A public URL is accepted only when it points into the storage bucket; the
    object key behind it is stored too and must be under the user's prefix.

    Raises:
        ValidationError: If neither a key nor a URL is given, the URL is
            outside the bucket, or the key is outside the user's prefix.
    """
    if storage_url and not storage_key:
        storage_key = key_from_public_url(storage_url)
        if storage_key is None:
            raise ValidationError("Storage URL must point into the video storage bucket")
    if not storage_key:
        raise ValidationError("Either storage_key or storage_url is required")
    if not key_belongs_to(user_id, storage_key):
        raise ValidationError("Storage key does not belong to the current user")
    if storage_url and key_from_public_url(storage_url) != storage_key:
        raise ValidationError("Storage URL does not match the storage key")

    now = utcnow()
    video = VideoModel(
        user_id=user_id,
        file_name=file_name,
        file_size=file_size,
        mime_type=mime_type or "video/mp4",
        duration=duration,
        width=width,
        height=height,
        storage_key=storage_key,
        storage_url=storage_url,
        thumbnail_url=thumbnail_url,
        upload_status=UploadStatus.COMPLETED,
        uploaded_at=now,
        created_at=now,
    )
    session.add(video)
    session.commit()
    session.refresh(video)

    logger.info("video_registered", user_id=str(user_id), video_id=str(video.id))
    return video


def get_video(session: Session, user_id: UUID, video_id: UUID) -> VideoModel:
    """Get a video owned by the user.

    Raises:
        NotFoundError: If it does not exist or belongs to someone else.
    """
    video = session.get(VideoModel, video_id)
    if not video or video.user_id != user_id:
        raise NotFoundError(f"No video found with ID '{video_id}'")
    return video


def list_videos(
    session: Session,
    user_id: UUID,
    completed_only: bool = False,
) -> list[VideoModel]:
    query = (
        select(VideoModel)
        .where(VideoModel.user_id == user_id)
        .order_by(VideoModel.created_at.desc())
    )
    if completed_only:
        query = query.where(VideoModel.upload_status == UploadStatus.COMPLETED)
    return list(session.execute(query).scalars().all())


def delete_video(
    session: Session,
    user_id: UUID,
    video_id: UUID,
    storage: StorageGateway,
) -> None:
    """Delete a video row and, best effort, its stored object."""
    video = get_video(session, user_id, video_id)

    if video.storage_key:
        try:
            storage.delete_object(video.storage_key)
        except StorageError as e:
            logger.warning(
                "video_object_delete_failed",
                video_id=str(video_id),
                key=video.storage_key,
                error=str(e),
            )

    session.delete(video)
    session.commit()
    logger.info("video_deleted", user_id=str(user_id), video_id=str(video_id))


def open_video(storage: StorageGateway, video: VideoModel) -> ObjectStream:
    """Stream a video's content from object storage.

    Raises:
        StorageError: If the video has no location or cannot be read.
    """
    if video.storage_key:
        return storage.open_object(video.storage_key)
    if video.storage_url:
        return storage.fetch_url(video.storage_url)
    raise StorageError(f"Video {video.id} has no storage location")
