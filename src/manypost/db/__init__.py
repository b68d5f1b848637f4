"""Database layer."""

from manypost.db.models import (
    ApiKeyModel,
    Base,
    DraftModel,
    IntegrationModel,
    PostHistoryModel,
    ScheduledPostModel,
    UserModel,
    VideoModel,
    VideoStatModel,
)
from manypost.db.session import get_session, get_session_context, ping_database

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "ping_database",
    # Models
    "ApiKeyModel",
    "DraftModel",
    "IntegrationModel",
    "PostHistoryModel",
    "ScheduledPostModel",
    "UserModel",
    "VideoModel",
    "VideoStatModel",
]
