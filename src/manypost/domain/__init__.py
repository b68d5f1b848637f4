"""Domain layer: enums, errors and value objects."""

from manypost.domain.enums import (
    HistoryStatus,
    Platform,
    PostStatus,
    PrivacyStatus,
    UploadStatus,
    VideoType,
)
from manypost.domain.errors import (
    AuthError,
    ForbiddenError,
    InvalidStateError,
    ManyPostError,
    NoChannelError,
    NotFoundError,
    OAuthError,
    PostNotPublishableError,
    RefreshFailedError,
    StorageError,
    TokenExchangeError,
    UnsupportedPlatformError,
    UploadError,
    UploadInitError,
    ValidationError,
)

__all__ = [
    # Enums
    "HistoryStatus",
    "Platform",
    "PostStatus",
    "PrivacyStatus",
    "UploadStatus",
    "VideoType",
    # Errors
    "AuthError",
    "ForbiddenError",
    "InvalidStateError",
    "ManyPostError",
    "NoChannelError",
    "NotFoundError",
    "OAuthError",
    "PostNotPublishableError",
    "RefreshFailedError",
    "StorageError",
    "TokenExchangeError",
    "UnsupportedPlatformError",
    "UploadError",
    "UploadInitError",
    "ValidationError",
]
