"""API keys for programmatic access.

Keys look like ``mp_<64 hex chars>``. The plaintext is shown once at
creation; only its SHA-256 digest is stored and compared.
"""

import hashlib
import secrets
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from manypost.db.models import ApiKeyModel
from manypost.domain.errors import AuthError, NotFoundError, ValidationError
from manypost.logging import get_logger
from manypost.utils.time import utcnow

logger = get_logger(__name__)

KEY_PREFIX = "mp_"
DISPLAY_PREFIX_LENGTH = 8


def generate_api_key() -> str:
    return KEY_PREFIX + secrets.token_hex(32)


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()


def create_api_key(session: Session, user_id: UUID, name: str) -> tuple[ApiKeyModel, str]:
    """Create a key for the user.

    Returns:
        The stored key row and the plaintext key, which is not recoverable later.
    """
    name = name.strip()
    if not name:
        raise ValidationError("API key name is required")

    raw_key = generate_api_key()
    api_key = ApiKeyModel(
        user_id=user_id,
        name=name,
        key_prefix=raw_key[:DISPLAY_PREFIX_LENGTH],
        key_hash=hash_api_key(raw_key),
        is_active=True,
    )
    session.add(api_key)
    session.commit()
    session.refresh(api_key)

    logger.info("api_key_created", user_id=str(user_id), api_key_id=str(api_key.id))
    return api_key, raw_key


def list_api_keys(session: Session, user_id: UUID) -> list[ApiKeyModel]:
    query = (
        select(ApiKeyModel)
        .where(ApiKeyModel.user_id == user_id)
        .order_by(ApiKeyModel.created_at.desc())
    )
    return list(session.execute(query).scalars().all())


def revoke_api_key(session: Session, user_id: UUID, key_id: UUID) -> ApiKeyModel:
    """Deactivate a key. Revoked keys stay listed but no longer authenticate."""
    api_key = session.get(ApiKeyModel, key_id)
    if not api_key or api_key.user_id != user_id:
        raise NotFoundError(f"No API key found with ID '{key_id}'")

    api_key.is_active = False
    session.commit()

    logger.info("api_key_revoked", user_id=str(user_id), api_key_id=str(key_id))
    return api_key


def authenticate_api_key(session: Session, raw_key: str) -> ApiKeyModel:
    """Resolve a plaintext key to its active row and record its use.

    Raises:
        AuthError: If the key is malformed, unknown or revoked.
    """
    if not raw_key or not raw_key.startswith(KEY_PREFIX):
        raise AuthError("Invalid API key")

    api_key = session.execute(
        select(ApiKeyModel).where(
            ApiKeyModel.key_hash == hash_api_key(raw_key),
            ApiKeyModel.is_active.is_(True),
        )
    ).scalar_one_or_none()
    if not api_key:
        raise AuthError("Invalid API key")

    api_key.last_used_at = utcnow()
    session.commit()
    return api_key
