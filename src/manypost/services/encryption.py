"""Encryption of OAuth tokens at rest.

``ENCRYPTION_MASTER_KEY`` holds one or more comma-separated Fernet keys.
The first key encrypts; every key is tried when decrypting, so a new key can
be put in front while integrations stored under the old one still work.
"""

from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from manypost.config import settings
from manypost.domain.errors import EncryptionError
from manypost.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "EncryptionError",
    "build_cipher",
    "decrypt_token",
    "encrypt_token",
    "generate_master_key",
    "get_cipher",
]


def _configured_keys() -> list[str]:
    raw = settings.encryption_master_key or ""
    keys = [k.strip() for k in raw.split(",") if k.strip()]
    if keys:
        return keys

    if settings.environment.lower() in ("production", "prod"):
        raise EncryptionError(
            "ENCRYPTION_MASTER_KEY is required in production. "
            "Generate one with: manypost generate-key"
        )

    # Tokens stored under this key are unreadable after a restart
    logger.warning("encryption_using_ephemeral_key")
    return [generate_master_key()]


def build_cipher(keys: list[str]) -> MultiFernet:
    """Cipher that encrypts with ``keys[0]`` and decrypts with any of them."""
    if not keys:
        raise EncryptionError("At least one encryption key is required")
    try:
        return MultiFernet([Fernet(k.encode()) for k in keys])
    except ValueError as e:
        raise EncryptionError(f"Invalid encryption key: {e}") from e


@lru_cache(maxsize=1)
def get_cipher() -> MultiFernet:
    return build_cipher(_configured_keys())


def encrypt_token(token: str, cipher: MultiFernet | None = None) -> str:
    """Encrypt an access or refresh token for storage."""
    if not token:
        raise EncryptionError("Cannot encrypt empty token")
    return (cipher or get_cipher()).encrypt(token.encode()).decode()


def decrypt_token(encrypted_token: str, cipher: MultiFernet | None = None) -> str:
    """Decrypt a stored token.

    Raises:
        EncryptionError: If no configured key can read it.
    """
    if not encrypted_token:
        raise EncryptionError("Cannot decrypt empty token")
    try:
        return (cipher or get_cipher()).decrypt(encrypted_token.encode()).decode()
    except InvalidToken as e:
        raise EncryptionError(
            "Failed to decrypt token. Was ENCRYPTION_MASTER_KEY changed "
            "without keeping the previous key?"
        ) from e


def generate_master_key() -> str:
    return Fernet.generate_key().decode()
