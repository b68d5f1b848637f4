"""Domain enumerations."""

from enum import StrEnum


class Platform(StrEnum):
    """Supported publishing platforms."""

    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"


class PostStatus(StrEnum):
    """Lifecycle of a scheduled post.

    pending -> processing -> posted | failed. Pending and failed posts may be
    cancelled; failed posts may be published again.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    POSTED = "posted"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Statuses from which a publish attempt may be admitted
PUBLISHABLE_STATUSES = (PostStatus.PENDING, PostStatus.FAILED)

# Statuses from which a user may cancel a post
CANCELLABLE_STATUSES = (PostStatus.PENDING, PostStatus.FAILED)


class HistoryStatus(StrEnum):
    """Outcome recorded for a publish attempt."""

    SUCCESS = "success"
    FAILED = "failed"


class UploadStatus(StrEnum):
    """State of a video in object storage."""

    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


class PrivacyStatus(StrEnum):
    """YouTube privacy setting."""

    PUBLIC = "public"
    PRIVATE = "private"
    UNLISTED = "unlisted"


class VideoType(StrEnum):
    """How a video is presented on the platform."""

    NORMAL = "normal"
    SHORT = "short"
