"""Rate limiting dependencies for FastAPI routes.

This module wires the daily rate limiting adapter into the HTTP layer.

Design goals:
- Explicit composition: each route declares ``Depends(rate_limit(key, limit))``.
- Swap-friendly: storage backend selected by settings behind an abstract interface.
- Fail closed: an unreachable store rejects the call with 503.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Depends
from redis.asyncio import Redis

from haruup.adapters.rate_limit.base import AbstractDailyRateLimiter
from haruup.adapters.rate_limit.in_memory import InMemoryDailyRateLimiter
from haruup.adapters.rate_limit.redis_store import RedisDailyRateLimiter
from haruup.core.auth import get_current_member_id
from haruup.core.config import settings
from haruup.core.errors import RateLimitExceededError, ValidationAppError

logger = logging.getLogger(__name__)


_limiter: AbstractDailyRateLimiter | None = None
_limiter_backend: str | None = None


def _create_limiter(backend: str) -> AbstractDailyRateLimiter:
    if backend == "memory":
        return InMemoryDailyRateLimiter()
    if backend == "redis":
        client = Redis.from_url(
            settings.redis.url,
            socket_timeout=settings.redis.socket_timeout_seconds,
            decode_responses=True,
        )
        return RedisDailyRateLimiter(client)
    raise ValidationAppError(
        code="rate_limit_unknown_backend",
        message=f"Unknown rate limit backend: '{backend}'. Supported backends: redis, memory",
    )


def get_rate_limiter() -> AbstractDailyRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If the configured backend changes (primarily in tests), it is rebuilt.
    """

    global _limiter, _limiter_backend

    backend = settings.rate_limit.backend.lower()
    if _limiter is None or _limiter_backend != backend:
        _limiter = _create_limiter(backend)
        _limiter_backend = backend

    return _limiter


async def close_rate_limiter() -> None:
    """Close the process-wide limiter on shutdown and forget it."""
    global _limiter, _limiter_backend

    limiter, _limiter, _limiter_backend = _limiter, None, None
    if limiter is not None:
        await limiter.close()


def rate_limit(feature_key: str, limit: int | Callable[[], int]) -> Callable[..., Awaitable[None]]:
    """Build a dependency that enforces a per-member daily quota.

    Args:
        feature_key: Counter namespace, e.g. ``"ranking:popular"``.
        limit: Daily quota, or a callable read on every request so settings
            overrides take effect without rebuilding routes.

    Returns:
        An async FastAPI dependency raising RateLimitExceededError (429) when
        the quota is used up.
    """

    async def enforce(member_id: int = Depends(get_current_member_id)) -> None:
        if not settings.rate_limit.enabled:
            return

        daily_limit = limit() if callable(limit) else limit
        result = await get_rate_limiter().check_and_increment(member_id, feature_key, daily_limit)

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "feature_key": feature_key,
                    "count": result.current_count,
                    "limit": result.limit,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "feature_key": feature_key,
                "count": result.current_count,
                "limit": result.limit,
                "reset_after_s": result.reset_after_seconds,
            },
        )
        raise RateLimitExceededError(
            limit=result.limit,
            current_count=result.current_count,
            reset_after_seconds=result.reset_after_seconds,
        )

    return enforce
