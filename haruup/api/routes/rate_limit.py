"""Read-only view of a member's daily counters.

Counters are never reset over HTTP: the calling member is the one being
limited, so a reset endpoint would let them lift their own quota.
``AbstractDailyRateLimiter.reset`` stays available to tests and maintenance
scripts that hold the limiter directly.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path

from haruup.core.auth import CurrentMemberId
from haruup.core.rate_limit import get_rate_limiter
from haruup.schemas.rate_limit import RateLimitStatus

router = APIRouter(prefix="/rate-limits", tags=["Rate limits"])

FeatureKey = Annotated[str, Path(min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_.:-]+$")]


@router.get("/{feature_key}", response_model=RateLimitStatus)
async def get_rate_limit_status(
    member_id: CurrentMemberId,
    feature_key: FeatureKey,
) -> RateLimitStatus:
    """Report how many calls the member has made today for a feature.

    Reading the counter never increments it.

    Args:
        member_id: Member resolved from ``X-Member-Id``.
        feature_key: Counter namespace, e.g. ``ranking:popular``.

    Returns:
        RateLimitStatus with today's count (0 when nothing was recorded).

    Raises:
        RateLimitUnavailableError: If the limiter store cannot be reached (503).
    """
    count = await get_rate_limiter().get_current_count(member_id, feature_key)
    return RateLimitStatus(feature_key=feature_key, member_id=member_id, current_count=count)
