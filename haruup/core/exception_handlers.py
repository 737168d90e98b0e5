"""Translate exceptions into the JSON error envelope.

Every error body has the shape::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

``details`` is present only when the error carries some.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from haruup.core.config import settings
from haruup.core.errors import (
    AppError,
    AuthenticationAppError,
    InvalidStateAppError,
    LLMAppError,
    NotFoundAppError,
    RateLimitExceededError,
    RateLimitUnavailableError,
)
from haruup.core.logging import get_request_id

logger = logging.getLogger(__name__)

DEFAULT_ERROR_STATUS = 400

# Checked in order, first match wins.
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 403),
    (NotFoundAppError, 404),
    (InvalidStateAppError, 409),
    (RateLimitExceededError, 429),
    (RateLimitUnavailableError, 503),
    (LLMAppError, 500),
)


def status_code_for(exc: AppError) -> int:
    return next(
        (status_code for error_type, status_code in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        DEFAULT_ERROR_STATUS,
    )


def _error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return {"error": error}


def _quota_headers(exc: AppError) -> dict[str, str] | None:
    if not isinstance(exc, RateLimitExceededError) or not settings.rate_limit.include_headers:
        return None
    return {
        "Retry-After": str(exc.reset_after_seconds),
        "X-RateLimit-Limit": str(exc.limit),
        "X-RateLimit-Remaining": str(max(0, exc.limit - exc.current_count)),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details),
        headers=_quota_headers(exc),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything unexpected; the client never sees internals."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
