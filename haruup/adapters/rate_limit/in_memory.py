"""In-memory daily rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from haruup.adapters.rate_limit.base import AbstractDailyRateLimiter, RateLimitResult, build_key
from haruup.core.clock import local_now, seconds_until_midnight


@dataclass
class _Counter:
    count: int
    expires_at: datetime


class InMemoryDailyRateLimiter(AbstractDailyRateLimiter):
    """Daily counters held in a dict, expiring at the next local midnight.

    Mirrors the Redis limiter's key layout and TTL rule so tests and local
    runs behave like production within a single process.
    """

    def __init__(self, *, clock: Callable[[], datetime] = local_now) -> None:
        """Initialize the limiter.

        Args:
            clock: Time source returning timezone-aware local time.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._counters: dict[str, _Counter] = {}

    def _live_counter(self, key: str, now: datetime) -> _Counter | None:
        counter = self._counters.get(key)
        if counter is not None and counter.expires_at <= now:
            del self._counters[key]
            return None
        return counter

    def _purge_expired(self, now: datetime) -> None:
        expired = [key for key, counter in self._counters.items() if counter.expires_at <= now]
        for key in expired:
            del self._counters[key]

    async def check_and_increment(self, user_id: int, feature_key: str, daily_limit: int) -> RateLimitResult:
        """Count one call for today unless the quota is used up.

        Raises:
            ValueError: If feature_key is empty or daily_limit is below 1.
        """
        if daily_limit < 1:
            raise ValueError("daily_limit must be >= 1")
        if not feature_key:
            raise ValueError("feature_key must be a non-empty string")

        now = self._clock()
        key = build_key(user_id, feature_key, now.date())

        with self._lock:
            self._purge_expired(now)
            counter = self._live_counter(key, now)

            if counter is not None and counter.count >= daily_limit:
                remaining = max(0, int((counter.expires_at - now).total_seconds()))
                return RateLimitResult(
                    allowed=False,
                    current_count=counter.count,
                    limit=daily_limit,
                    reset_after_seconds=remaining,
                )

            if counter is None:
                ttl = seconds_until_midnight(now)
                counter = _Counter(count=0, expires_at=now + timedelta(seconds=ttl))
                self._counters[key] = counter

            counter.count += 1
            return RateLimitResult(
                allowed=True,
                current_count=counter.count,
                limit=daily_limit,
                reset_after_seconds=max(0, int((counter.expires_at - now).total_seconds())),
            )

    async def get_current_count(self, user_id: int, feature_key: str) -> int:
        now = self._clock()
        with self._lock:
            counter = self._live_counter(build_key(user_id, feature_key, now.date()), now)
            return counter.count if counter else 0

    async def reset(self, user_id: int, feature_key: str) -> None:
        now = self._clock()
        with self._lock:
            self._counters.pop(build_key(user_id, feature_key, now.date()), None)
