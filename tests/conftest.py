"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import timedelta
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "redis://localhost:6379/1"
os.environ["CELERY_RESULT_BACKEND"] = "redis://localhost:6379/1"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SERVICE_API_TOKEN"] = "test-service-token"
os.environ["ENCRYPTION_MASTER_KEY"] = Fernet.generate_key().decode()
os.environ["YOUTUBE_CLIENT_ID"] = "test-client-id"
os.environ["YOUTUBE_CLIENT_SECRET"] = "test-client-secret"
os.environ["PUBLISHER_PROVIDER"] = "stub"
os.environ["STORAGE_BUCKET"] = "test-bucket"

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from manypost.db.models import (  # noqa: E402
    Base,
    IntegrationModel,
    ScheduledPostModel,
    UserModel,
    VideoModel,
)
from manypost.domain.enums import Platform, PostStatus, UploadStatus  # noqa: E402
from manypost.domain.models import ObjectStream  # noqa: E402
from manypost.services.encryption import encrypt_token  # noqa: E402
from manypost.services.storage import StorageGateway  # noqa: E402
from manypost.utils.time import utcnow  # noqa: E402

SERVICE_TOKEN = "test-service-token"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42 fake video"

ClientBuilder = Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]


def video_stream() -> ObjectStream:
    """The fake video split into two chunks."""
    return ObjectStream(chunks=iter([VIDEO_BYTES[:8], VIDEO_BYTES[8:]]), size=len(VIDEO_BYTES))


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared by every session in a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


class Factory:
    """Creates committed rows with sensible defaults."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._count = 0

    def _next(self) -> int:
        self._count += 1
        return self._count

    def user(self, email: str | None = None) -> UserModel:
        user = UserModel(email=email or f"user{self._next()}@example.com")
        self.session.add(user)
        self.session.commit()
        return user

    def integration(
        self,
        user: UserModel,
        access_token: str = "valid-access-token",
        refresh_token: str | None = "valid-refresh-token",
        expires_in: timedelta = timedelta(hours=1),
        is_active: bool = True,
        channel_id: str | None = None,
    ) -> IntegrationModel:
        integration = IntegrationModel(
            user_id=user.id,
            platform=Platform.YOUTUBE,
            channel_id=channel_id or f"UC{self._next():022d}",
            channel_name="Test Channel",
            encrypted_access_token=encrypt_token(access_token),
            encrypted_refresh_token=encrypt_token(refresh_token) if refresh_token else None,
            token_expires_at=utcnow() + expires_in,
            is_active=is_active,
        )
        self.session.add(integration)
        self.session.commit()
        return integration

    def video(self, user: UserModel, **overrides: Any) -> VideoModel:
        values: dict[str, Any] = {
            "user_id": user.id,
            "file_name": "clip.mp4",
            "storage_key": f"{user.id}/{self._next()}-clip.mp4",
            "mime_type": "video/mp4",
            "upload_status": UploadStatus.COMPLETED,
        }
        values.update(overrides)
        video = VideoModel(**values)
        self.session.add(video)
        self.session.commit()
        return video

    def post(
        self,
        user: UserModel,
        integration: IntegrationModel,
        video: VideoModel,
        **overrides: Any,
    ) -> ScheduledPostModel:
        values: dict[str, Any] = {
            "user_id": user.id,
            "integration_id": integration.id,
            "video_id": video.id,
            "platform": Platform.YOUTUBE,
            "scheduled_time": utcnow() - timedelta(minutes=1),
            "status": PostStatus.PENDING,
            "title": "My video",
            "description": "A description",
            "tags": ["one", "two"],
        }
        values.update(overrides)
        post = ScheduledPostModel(**values)
        self.session.add(post)
        self.session.commit()
        return post


@pytest.fixture
def factory(session: Session) -> Factory:
    return Factory(session)


@pytest.fixture
def video_bytes() -> bytes:
    return VIDEO_BYTES


@pytest.fixture
def fake_storage() -> MagicMock:
    """Storage gateway whose objects all contain the same fake video."""
    storage = MagicMock(spec=StorageGateway)
    storage.open_object.side_effect = lambda key: video_stream()
    storage.fetch_url.side_effect = lambda url: video_stream()
    return storage


@pytest.fixture
def mock_http() -> Generator[ClientBuilder, None, None]:
    """Build an httpx client served by a request handler."""
    clients: list[httpx.Client] = []

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.close()


@pytest.fixture
def test_client(
    session_factory: sessionmaker[Session],
    fake_storage: MagicMock,
) -> Generator[TestClient, None, None]:
    """Test client wired to the in-memory database and fake storage."""
    from manypost.db.session import get_session
    from manypost.main import app
    from manypost.services.storage import get_storage

    def override_session() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_storage] = lambda: fake_storage

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def user_headers(session: Session) -> Callable[[UserModel], dict[str, str]]:
    """Authorization headers carrying a fresh API key for a user."""
    from manypost.services.api_keys import create_api_key

    def build(user: UserModel) -> dict[str, str]:
        _, raw_key = create_api_key(session, user.id, "tests")
        return {"Authorization": f"Bearer {raw_key}"}

    return build


@pytest.fixture
def service_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {SERVICE_TOKEN}"}
