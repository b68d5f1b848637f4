"""Mapping of application errors to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from manypost.domain.errors import ManyPostError
from manypost.logging import get_logger

logger = get_logger(__name__)


async def handle_manypost_error(request: Request, exc: ManyPostError) -> JSONResponse:
    """Render any ``ManyPostError`` as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            error=exc.message,
            error_type=type(exc).__name__,
        )
    else:
        logger.info(
            "request_rejected",
            path=request.url.path,
            status=exc.status_code,
            error=exc.message,
        )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ManyPostError, handle_manypost_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
