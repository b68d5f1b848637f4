"""Object storage gateway for uploaded videos.

Works against any S3-compatible store (Cloudflare R2 in production). The
browser uploads directly with a presigned PUT URL; the publisher reads the
bytes back with the service credentials.
"""

import re
from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from manypost.config import settings
from manypost.domain.errors import StorageError
from manypost.domain.models import ObjectStream, UploadTarget
from manypost.logging import get_logger
from manypost.utils.time import utcnow

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_file_name(file_name: str) -> str:
    """Keep only the base name and replace characters unsafe in object keys."""
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "video"


def build_object_key(user_id: UUID, file_name: str) -> str:
    """Object key for a user upload: ``<user_id>/<uuid>-<file name>``."""
    return f"{user_id}/{uuid4()}-{sanitize_file_name(file_name)}"


def key_belongs_to(user_id: UUID, key: str) -> bool:
    return key.startswith(f"{user_id}/") and ".." not in key


class StorageGateway:
    """Thin wrapper over a boto3 S3 client."""

    def __init__(self, client: Any | None = None, bucket: str | None = None) -> None:
        self._client = client
        self.bucket = bucket or settings.storage_bucket

    @property
    def client(self) -> Any:
        """Get or create the S3 client."""
        if self._client is None:
            if not (
                settings.storage_endpoint_url
                and settings.storage_access_key_id
                and settings.storage_secret_access_key
            ):
                raise StorageError("Object storage is not configured")

            self._client = boto3.client(
                "s3",
                endpoint_url=settings.storage_endpoint_url,
                aws_access_key_id=settings.storage_access_key_id,
                aws_secret_access_key=settings.storage_secret_access_key,
                region_name=settings.storage_region,
                config=Config(signature_version="s3v4", retries={"max_attempts": 3}),
            )
        return self._client

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise StorageError("STORAGE_BUCKET is not configured")
        return self.bucket

    def public_url(self, key: str) -> str | None:
        if not settings.storage_public_base_url:
            return None
        return f"{settings.storage_public_base_url.rstrip('/')}/{key}"

    def generate_upload_url(
        self, user_id: UUID, file_name: str, content_type: str
    ) -> UploadTarget:
        """Create a presigned PUT URL under the user's key prefix."""
        bucket = self._require_bucket()
        key = build_object_key(user_id, file_name)
        expires_in = settings.storage_signed_url_expiry

        try:
            signed_url = self.client.generate_presigned_url(
                "put_object",
                Params={"Bucket": bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign upload URL: {e}") from e

        logger.info("upload_url_generated", user_id=str(user_id), key=key)

        return UploadTarget(
            signed_url=signed_url,
            key=key,
            public_url=self.public_url(key),
            expires_at=utcnow() + timedelta(seconds=expires_in),
        )

    def delete_object(self, key: str) -> None:
        bucket = self._require_bucket()
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete object {key}: {e}") from e
        logger.info("storage_object_deleted", key=key)

    def open_object(self, key: str, chunk_size: int = 1024 * 1024) -> ObjectStream:
        """Stream an object's bytes with the service credentials."""
        bucket = self._require_bucket()
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to read object {key}: {e}") from e

        return ObjectStream(
            chunks=response["Body"].iter_chunks(chunk_size),
            size=response.get("ContentLength"),
        )

    def fetch_url(self, url: str) -> ObjectStream:
        """Download an object from the public bucket URL.

        Only URLs under ``storage_public_base_url`` are fetched, and redirects
        are not followed, so a stored URL cannot point the server elsewhere.
        """
        if key_from_public_url(url) is None:
            raise StorageError("Video URL is outside the public storage bucket")

        try:
            with httpx.Client(
                timeout=settings.upload_timeout_seconds, follow_redirects=False
            ) as client:
                response = client.get(url)
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to download {url}: {e}") from e

        if response.status_code != 200:
            raise StorageError(f"Failed to download {url}: HTTP {response.status_code}")
        return ObjectStream(chunks=iter([response.content]), size=len(response.content))


def key_from_public_url(url: str) -> str | None:
    """Object key behind a public bucket URL, or None for any other URL."""
    base = (settings.storage_public_base_url or "").rstrip("/")
    if not base or not url.startswith(f"{base}/"):
        return None
    key = url[len(base) + 1 :].split("?", 1)[0].split("#", 1)[0]
    return key or None


def get_storage() -> StorageGateway:
    """Get a storage gateway configured from settings."""
    return StorageGateway()
