"""Translate engine errors into HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from backoffice.domain.exceptions import (
    InsufficientData,
    InvalidQuery,
    InvalidRange,
    InvalidTarget,
    InvalidValue,
    NotFound,
    PersistenceError,
    ReadingError,
    StaleRecord,
)
from backoffice.domain.lifecycle import IllegalTransition

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[ReadingError], int]] = [
    (InvalidTarget, status.HTTP_400_BAD_REQUEST),
    (InvalidValue, status.HTTP_400_BAD_REQUEST),
    (InvalidRange, status.HTTP_400_BAD_REQUEST),
    (InvalidQuery, status.HTTP_400_BAD_REQUEST),
    (InsufficientData, 422),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (StaleRecord, status.HTTP_409_CONFLICT),
]


def status_for(exc: ReadingError) -> int:
    """HTTP status code for an engine error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    if isinstance(exc, PersistenceError) and exc.integrity:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(status_code: int, error: str, message: str) -> dict:
    return {"code": status_code, "error": error, "message": message}


async def reading_error_handler(request: Request, exc: ReadingError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    else:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content=_error_body(status_code, type(exc).__name__, exc.message),
    )


async def illegal_transition_handler(request: Request, exc: IllegalTransition) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(status.HTTP_409_CONFLICT, type(exc).__name__, str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReadingError, reading_error_handler)
    app.add_exception_handler(IllegalTransition, illegal_transition_handler)
