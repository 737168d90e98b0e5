from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.adapters.llm.factory import get_llm_client
from haruup.core.auth import CurrentMemberId, verify_api_key
from haruup.core.config import settings
from haruup.core.rate_limit import rate_limit
from haruup.models import Gender, get_async_session
from haruup.schemas.ranking import (
    AgeGroup,
    AgeGroupItem,
    PopularMission,
    RankingBatchResult,
    RankingFilter,
)
from haruup.services.ranking_batch_service import RankingBatchService
from haruup.services.ranking_label_service import RankingLabelService
from haruup.services.ranking_query_service import MAX_LIMIT, RankingQueryService

router = APIRouter(prefix="/ranking", tags=["Ranking"])


def get_ranking_label_service() -> RankingLabelService:
    """Label service over the shared LLM client (stored labels only without one)."""
    return RankingLabelService(get_llm_client())


@router.get(
    "/popular",
    response_model=list[PopularMission],
    dependencies=[Depends(rate_limit("ranking:popular", lambda: settings.rate_limit.popular_daily_limit))],
)
async def get_popular_missions(
    _: CurrentMemberId,
    gender: Gender | None = Query(None),
    age_group: list[AgeGroup] = Query([]),
    job_id: list[int] = Query([]),
    job_detail_id: list[int] = Query([]),
    interest: list[str] = Query([], description="Top-level interest name"),
    limit: int | None = Query(None, ge=1, le=MAX_LIMIT),
    session: AsyncSession = Depends(get_async_session),
) -> list[PopularMission]:
    """Most selected missions over the last 30 days.

    Repeated query parameters widen a filter (OR); different filters narrow
    the result (AND). Counts against the ``ranking:popular`` daily quota.

    Args:
        gender: Only missions chosen by members of this gender.
        age_group: Age brackets, matched against birth dates as of today.
        job_id: Job ids.
        job_detail_id: Job detail ids.
        interest: Top-level interest names, e.g. ``외국어 공부``.
        limit: Number of entries, 1..100 (default ``RANKING_DEFAULT_LIMIT``).
        session: Request-scoped database session.

    Returns:
        Ranked entries, each with up to five example missions.

    Raises:
        RateLimitExceededError: If today's quota is used up (429).
        RateLimitUnavailableError: If the limiter store is down (503).
    """
    ranking_filter = RankingFilter(
        gender=gender,
        age_groups=age_group,
        job_ids=job_id,
        job_detail_ids=job_detail_id,
        interests=interest,
    )
    return await RankingQueryService(session).get_popular_missions(ranking_filter, limit)


@router.post(
    "/batch",
    response_model=RankingBatchResult,
    dependencies=[
        Depends(rate_limit("ranking:batch", lambda: settings.rate_limit.ranking_batch_daily_limit)),
    ],
)
async def run_ranking_batch(
    _: CurrentMemberId,
    target_date: date | None = Query(None, description="Defaults to today"),
    session: AsyncSession = Depends(get_async_session),
    label_service: RankingLabelService = Depends(get_ranking_label_service),
) -> RankingBatchResult:
    """Run the ranking batch manually. Safe to repeat for the same date.

    Args:
        target_date: Day whose selected missions are ranked; defaults to today.
        session: Request-scoped database session.
        label_service: Label resolution for rows without a stored label.

    Returns:
        RankingBatchResult with per-row counters and failed rows in ``errors``.

    Raises:
        RateLimitExceededError: If today's manual trigger quota is used up (429).
    """
    return await RankingBatchService(session, label_service).execute_batch(target_date)


@router.get(
    "/age-groups",
    response_model=list[AgeGroupItem],
    dependencies=[Depends(verify_api_key)],
)
async def list_age_groups() -> list[AgeGroupItem]:
    """List the age brackets accepted by ``age_group``, with Korean display names."""
    return [
        AgeGroupItem(
            code=group,
            display_name=group.display_name,
            min_age=group.min_age,
            max_age=group.max_age,
        )
        for group in AgeGroup
    ]
