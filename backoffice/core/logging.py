"""Logging configuration and request correlation."""

import contextvars
import logging
import logging.config
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

request_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)

logger = logging.getLogger(__name__)


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_context.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install the application's logging configuration."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["request_id"],
                },
            },
            "loggers": {
                "backoffice": {"handlers": ["console"], "level": level.upper(), "propagate": False},
            },
        }
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Generate and track unique request IDs."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_context.set(request_id)
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %s (%.3fs)",
                request.method,
                request.url.path,
                response.status_code,
                time.perf_counter() - start_time,
            )
        finally:
            request_id_context.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response
