"""Health and readiness endpoints for load balancers and the scheduler."""

from fastapi import APIRouter, status
from pydantic import BaseModel
from redis import Redis
from redis.exceptions import RedisError

from manypost import __version__
from manypost.config import settings
from manypost.db.session import ping_database
from manypost.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    version: str
    components: dict[str, bool]


class ReadinessResponse(BaseModel):
    """Whether the publisher can run: database for posts, Redis for the queue."""

    ready: bool
    database: bool
    broker: bool


def _configured_components() -> dict[str, bool]:
    return {
        "youtube_oauth": bool(settings.youtube_client_id and settings.youtube_client_secret),
        "storage": bool(settings.storage_endpoint_url and settings.storage_bucket),
        "encryption_key": bool(settings.encryption_master_key),
        "service_token": bool(settings.service_api_token),
        "live_publisher": settings.publisher_provider != "stub",
    }


def _ping_broker() -> bool:
    try:
        Redis.from_url(settings.celery_broker_url, socket_connect_timeout=2).ping()
    except RedisError as e:
        logger.error("broker_unreachable", error=str(e))
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """The API is up. Lists which integrations are configured."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        components=_configured_components(),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check() -> ReadinessResponse:
    database_ok = ping_database()
    broker_ok = _ping_broker()
    return ReadinessResponse(ready=database_ok and broker_ok, database=database_ok, broker=broker_ok)


@router.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
