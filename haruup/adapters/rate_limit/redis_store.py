"""Redis-backed daily rate limiter.

Counters are plain string integers under ``ratelimit:{feature}:{user}:{date}``
with a TTL that ends at the next local midnight, so no cleanup job is needed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from haruup.adapters.rate_limit.base import AbstractDailyRateLimiter, RateLimitResult, build_key
from haruup.core.clock import local_now, seconds_until_midnight
from haruup.core.errors import RateLimitUnavailableError

logger = logging.getLogger(__name__)


class RedisDailyRateLimiter(AbstractDailyRateLimiter):
    """Daily limiter shared by every worker through Redis.

    INCR is the only write on the hot path, so concurrent calls for the same
    member never lose an increment. A call that pushes the counter past the
    limit gives its unit back with DECR and is reported as blocked.

    Store failures raise RateLimitUnavailableError; callers fail closed.
    """

    def __init__(self, client: Redis, *, clock: Callable[[], datetime] = local_now) -> None:
        self._client = client
        self._clock = clock

    async def _ttl(self, key: str) -> int:
        ttl = await self._client.ttl(key)
        # -1: no expiry, -2: key vanished between calls
        return ttl if ttl and ttl > 0 else 0

    async def check_and_increment(self, user_id: int, feature_key: str, daily_limit: int) -> RateLimitResult:
        if daily_limit < 1:
            raise ValueError("daily_limit must be >= 1")
        if not feature_key:
            raise ValueError("feature_key must be a non-empty string")

        now = self._clock()
        key = build_key(user_id, feature_key, now.date())

        try:
            raw = await self._client.get(key)
            current = int(raw) if raw is not None else 0

            if current >= daily_limit:
                return RateLimitResult(
                    allowed=False,
                    current_count=current,
                    limit=daily_limit,
                    reset_after_seconds=await self._ttl(key),
                )

            new_count = await self._client.incr(key)

            if new_count == 1:
                ttl = seconds_until_midnight(now)
                await self._client.expire(key, ttl)
                logger.debug("rate_limit.ttl_set", extra={"feature_key": feature_key, "ttl_s": ttl})

            if new_count > daily_limit:
                # Lost a race with a concurrent call for the same member.
                await self._client.decr(key)
                return RateLimitResult(
                    allowed=False,
                    current_count=daily_limit,
                    limit=daily_limit,
                    reset_after_seconds=await self._ttl(key),
                )

            return RateLimitResult(
                allowed=True,
                current_count=int(new_count),
                limit=daily_limit,
                reset_after_seconds=await self._ttl(key),
            )
        except RedisError as exc:
            logger.error(
                "rate_limit.store_unavailable",
                extra={"feature_key": feature_key, "error_type": type(exc).__name__},
            )
            raise RateLimitUnavailableError(
                code="rate_limit_unavailable",
                message="Rate limit store is unavailable. Try again later.",
                details={"feature_key": feature_key},
            ) from exc

    async def get_current_count(self, user_id: int, feature_key: str) -> int:
        key = build_key(user_id, feature_key, self._clock().date())
        try:
            raw = await self._client.get(key)
        except RedisError as exc:
            raise RateLimitUnavailableError(
                code="rate_limit_unavailable",
                message="Rate limit store is unavailable. Try again later.",
                details={"feature_key": feature_key},
            ) from exc
        return int(raw) if raw is not None else 0

    async def reset(self, user_id: int, feature_key: str) -> None:
        key = build_key(user_id, feature_key, self._clock().date())
        try:
            await self._client.delete(key)
        except RedisError as exc:
            raise RateLimitUnavailableError(
                code="rate_limit_unavailable",
                message="Rate limit store is unavailable. Try again later.",
                details={"feature_key": feature_key},
            ) from exc
        logger.info("rate_limit.reset", extra={"feature_key": feature_key, "user_id": user_id})

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("rate_limit.store_closed")
