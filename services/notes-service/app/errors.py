"""Application error types and their JSON rendering.

Every ``AppError`` is rendered as ``{"error": <message>}`` with the status code
carried by the error, so clients see one response shape regardless of cause.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error for failures that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"
    message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RateLimitExceeded(AppError):
    """Raised by the request gate when the caller has no budget left.

    Also covers unidentifiable callers and limiter backend failures; the
    response never reveals which of those applied.
    """

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"
    message = "too many requests"


class NoteNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "note_not_found"
    message = "note not found"


class StorageError(AppError):
    """Raised when the note store fails or cannot be reached in time."""

    code = "storage_error"
    message = "storage unavailable"


class StorageTimeout(StorageError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "storage_timeout"
    message = "storage timed out"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an ``AppError`` as the service's standard error payload."""
    logger.info(
        "request rejected: %s %s -> %s (%s)",
        request.method,
        request.url.path,
        exc.status_code,
        exc.code,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def install_error_handlers(app: FastAPI) -> None:
    """Register the application error handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
