"""Structured logging for the API, workers and CLI.

OAuth tokens, API keys and authorization codes pass through most of the
publishing code, so every event goes through ``redact_secrets`` before it
is rendered.
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

from manypost.config import settings

SECRET_FIELDS = frozenset(
    {
        "access_token",
        "refresh_token",
        "authorization",
        "api_key",
        "raw_key",
        "client_secret",
        "code",
    }
)
REDACTED = "***"

_configured = False


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask values of known secret fields."""
    for name in SECRET_FIELDS.intersection(event_dict):
        if event_dict[name]:
            event_dict[name] = REDACTED
    return event_dict


def _renderer() -> Any:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging() -> None:
    """Route structlog and stdlib logging through one stdout handler."""
    global _configured
    if _configured:
        return

    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _renderer(),
            ],
        )
    )

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    # Request lines and HTTP client chatter drown out publish events
    for name in ("uvicorn.access", "httpx", "httpcore", "botocore", "boto3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind values (post id, task id, ...) to every event logged inside."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
