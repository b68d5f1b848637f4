"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from manypost import __version__
from manypost.api.errors import register_exception_handlers
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
from manypost.config import settings
from manypost.db.session import ping_database
from manypost.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info(
        "application_starting",
        version=__version__,
        environment=settings.environment,
        publisher=settings.publisher_provider,
    )
    if not settings.service_api_token:
        logger.warning("service_token_missing", hint="/publish and /scan accept user keys only")

    # Readiness reports a missing database; startup continues
    if ping_database():
        logger.info("database_connected")

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="ManyPost",
    description="Schedule and publish videos to connected YouTube channels",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router)
app.include_router(publishing.router)
app.include_router(storage.router)
app.include_router(integrations.router, prefix="/api/v1")
app.include_router(videos.router, prefix="/api/v1")
app.include_router(posts.router, prefix="/api/v1")
app.include_router(drafts.router, prefix="/api/v1")
app.include_router(api_keys.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    return {
        "name": "ManyPost",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "manypost.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
