"""Exception hierarchy shared by services, adapters and the API layer.

Every error carries an HTTP ``status_code`` so the API can map it without
knowing which layer raised it.
"""

from typing import Any


class ManyPostError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthError(ManyPostError):
    """Raised when a caller cannot be authenticated."""

    status_code = 401


class ForbiddenError(AuthError):
    """Raised when an authenticated caller lacks the required role."""

    status_code = 403


class NotFoundError(ManyPostError):
    """Raised when a row does not exist or is not owned by the caller."""

    status_code = 404


class ValidationError(ManyPostError):
    """Raised when a request is structurally valid but semantically wrong."""

    status_code = 400


class PostNotPublishableError(ManyPostError):
    """Raised when a post is not in a state that allows the requested transition."""

    status_code = 409


class UnsupportedPlatformError(ManyPostError):
    """Raised when no publisher exists for a platform."""

    status_code = 400


class OAuthError(ManyPostError):
    """Raised when an OAuth flow fails."""

    status_code = 502


class InvalidStateError(OAuthError):
    """Raised when the OAuth state does not match the authenticated user."""

    status_code = 400


class TokenExchangeError(OAuthError):
    """Raised when an authorization code cannot be exchanged for tokens."""

    pass


class RefreshFailedError(OAuthError):
    """Raised when a refresh token does not yield a new access token."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        revoked: bool = False,
    ) -> None:
        super().__init__(message, details)
        self.revoked = revoked


class NoChannelError(OAuthError):
    """Raised when the authorized Google account has no YouTube channel."""

    status_code = 400


class UploadInitError(ManyPostError):
    """Raised when YouTube refuses to open a resumable upload session."""

    status_code = 502


class UploadError(ManyPostError):
    """Raised when the video bytes are rejected or no video id is returned."""

    status_code = 502


class StorageError(ManyPostError):
    """Raised when object storage is misconfigured or an object cannot be read."""

    status_code = 502


class EncryptionError(ManyPostError):
    """Raised when stored tokens cannot be encrypted or decrypted."""

    status_code = 500
