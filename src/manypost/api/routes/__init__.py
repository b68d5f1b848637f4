"""API route modules."""

from manypost.api.routes import (
    analytics,
    api_keys,
    drafts,
    health,
    integrations,
    posts,
    publishing,
    storage,
    videos,
)

__all__ = [
    "analytics",
    "api_keys",
    "drafts",
    "health",
    "integrations",
    "posts",
    "publishing",
    "storage",
    "videos",
]
