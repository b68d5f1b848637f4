"""Access-token lifecycle for connected integrations.

Tokens are decrypted only when needed and refreshed shortly before they
expire. A refreshed token is committed before it is handed to the caller so
a crash during a long upload never loses it.
"""

from datetime import datetime, timedelta

import httpx
from sqlalchemy.orm import Session

from manypost.adapters.publisher.youtube_oauth import refresh_access_token
from manypost.config import settings
from manypost.db.models import IntegrationModel
from manypost.domain.errors import RefreshFailedError
from manypost.logging import get_logger
from manypost.services.encryption import decrypt_token, encrypt_token
from manypost.utils.time import ensure_utc, utcnow

logger = get_logger(__name__)


def token_expiry(expires_in: int, now: datetime | None = None) -> datetime:
    """Expiry to store for a token that lives ``expires_in`` seconds.

    The safety margin is subtracted so a stored expiry is always a little
    earlier than the provider's.
    """
    now = now or utcnow()
    lifetime = max(expires_in - settings.token_refresh_margin_seconds, 0)
    return now + timedelta(seconds=lifetime)


def needs_refresh(integration: IntegrationModel, now: datetime | None = None) -> bool:
    """True when the stored access token is missing or about to expire."""
    if not integration.encrypted_access_token:
        return True
    expires_at = ensure_utc(integration.token_expires_at)
    if expires_at is None:
        return True
    now = now or utcnow()
    return expires_at <= now + timedelta(seconds=settings.token_refresh_margin_seconds)


def mark_integration_revoked(session: Session, integration: IntegrationModel, reason: str) -> None:
    """Deactivate an integration whose consent was revoked."""
    integration.is_active = False
    integration.metadata_ = {
        **(integration.metadata_ or {}),
        "revoked_reason": reason,
        "revoked_at": utcnow().isoformat(),
    }
    session.commit()

    logger.warning(
        "integration_revoked",
        integration_id=str(integration.id),
        channel_id=integration.channel_id,
        reason=reason,
    )


def ensure_access_token(
    session: Session,
    integration: IntegrationModel,
    client: httpx.Client | None = None,
    now: datetime | None = None,
) -> str:
    """Return a usable access token, refreshing and persisting it if needed.

    Raises:
        RefreshFailedError: If the token is stale and cannot be refreshed.
            The integration is deactivated when consent was revoked.
    """
    if not needs_refresh(integration, now):
        return decrypt_token(integration.encrypted_access_token or "")

    if not integration.encrypted_refresh_token:
        raise RefreshFailedError(
            f"Integration {integration.id} has no refresh token. Reconnect the channel."
        )

    logger.info("access_token_refresh", integration_id=str(integration.id))

    try:
        tokens = refresh_access_token(
            decrypt_token(integration.encrypted_refresh_token), client=client
        )
    except RefreshFailedError as e:
        if e.revoked:
            mark_integration_revoked(session, integration, e.message)
        raise

    integration.encrypted_access_token = encrypt_token(tokens.access_token)
    if tokens.refresh_token:
        integration.encrypted_refresh_token = encrypt_token(tokens.refresh_token)
    integration.token_expires_at = token_expiry(tokens.expires_in, now)
    session.commit()

    logger.info(
        "access_token_refreshed",
        integration_id=str(integration.id),
        expires_at=integration.token_expires_at.isoformat(),
    )
    return tokens.access_token
