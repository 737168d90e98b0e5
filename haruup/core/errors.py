"""Domain errors raised by services and adapters.

Routes never build error responses themselves: they let these propagate and
``haruup.core.exception_handlers`` maps each class to an HTTP status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional context attached to an error and returned to the client."""

    hint: str
    limit: int
    current_count: int
    reset_after_seconds: int
    member_id: int
    member_mission_id: int
    character_id: int
    level_id: int
    level_number: int
    feature_key: str
    model: str
    context: dict[str, Any]


@dataclass
class AppError(Exception):
    """Base class: a stable ``code``, a readable ``message`` and optional ``details``."""

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Bad input or configuration (400)."""


class AuthenticationAppError(AppError):
    """Missing or unknown API key (403)."""


class NotFoundAppError(AppError):
    """Member, character, level or mission does not exist (404)."""


class InvalidStateAppError(AppError):
    """Operation conflicts with stored state, e.g. a mission already completed (409)."""


class RateLimitUnavailableError(AppError):
    """Limiter store unreachable; requests are refused rather than let through (503)."""


class LLMAppError(AppError):
    """Label generation failed at the provider."""


class RateLimitExceededError(AppError):
    """Daily quota for a feature is used up (429)."""

    def __init__(self, *, limit: int, current_count: int, reset_after_seconds: int) -> None:
        self.limit = limit
        self.current_count = current_count
        self.reset_after_seconds = reset_after_seconds
        super().__init__(
            code="rate_limit_exceeded",
            message=f"Daily request limit ({limit}) exceeded.",
            details={
                "limit": limit,
                "current_count": current_count,
                "reset_after_seconds": reset_after_seconds,
            },
        )
