"""Shared utilities."""

from manypost.utils.time import ensure_utc, utcnow

__all__ = ["ensure_utc", "utcnow"]
