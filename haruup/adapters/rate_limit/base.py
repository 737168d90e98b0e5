"""Daily rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so
the counter store can be swapped without touching routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

KEY_PREFIX = "ratelimit"


def build_key(user_id: int, feature_key: str, day: date) -> str:
    """Build the counter key for a member, feature and calendar day.

    Format: ``ratelimit:{feature_key}:{user_id}:{YYYY-MM-DD}``
    e.g. ``ratelimit:ranking:popular:123:2025-12-07``.
    """
    return f"{KEY_PREFIX}:{feature_key}:{user_id}:{day.isoformat()}"


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a daily check-and-increment.

    Attributes:
        allowed: Whether the call may proceed.
        current_count: Calls counted today (unchanged when blocked).
        limit: Daily quota.
        reset_after_seconds: Seconds until the counter expires (0 if unknown).
    """

    allowed: bool
    current_count: int
    limit: int
    reset_after_seconds: int


class AbstractDailyRateLimiter(ABC):
    """Interface for per-member, per-feature daily counters."""

    @abstractmethod
    async def check_and_increment(self, user_id: int, feature_key: str, daily_limit: int) -> RateLimitResult:
        """Count one call unless today's quota is already used up.

        Args:
            user_id: Member identifier.
            feature_key: Feature namespace (e.g. ``ranking:popular``).
            daily_limit: Calls allowed per calendar day.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_current_count(self, user_id: int, feature_key: str) -> int:
        """Return today's count for the member and feature (0 when absent)."""
        raise NotImplementedError

    @abstractmethod
    async def reset(self, user_id: int, feature_key: str) -> None:
        """Delete today's counter for the member and feature."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the store. Nothing to release by default."""
        return None
