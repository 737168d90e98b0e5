"""Popular missions chart."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.clock import local_today
from haruup.core.config import settings
from haruup.core.errors import ValidationAppError
from haruup.models import RankingMissionDaily
from haruup.schemas.ranking import (
    MISSIONS_PER_LABEL,
    AgeGroup,
    MissionItem,
    PopularMission,
    RankingFilter,
)
from haruup.services.ranking_batch_service import INTEREST_PATH_SEPARATOR

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def years_before(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def birth_date_bounds(group: AgeGroup, today: date) -> tuple[date, date]:
    """Return ``(earliest_exclusive, latest_inclusive)`` birth dates for an age group.

    Someone is ``a`` years old on ``today`` when their birth date lies in
    ``(today - (a + 1) years, today - a years]``.
    """
    return years_before(today, group.max_age + 1), years_before(today, group.min_age)


def build_filter_conditions(ranking_filter: RankingFilter, today: date) -> list:
    """Translate chart filters into SQL conditions: AND across dimensions, OR within one."""
    r = RankingMissionDaily
    conditions = []

    if ranking_filter.gender is not None:
        conditions.append(r.gender == ranking_filter.gender)

    if ranking_filter.age_groups:
        age_clauses = []
        for group in dict.fromkeys(ranking_filter.age_groups):
            earliest, latest = birth_date_bounds(group, today)
            age_clauses.append(and_(r.birth_dt > earliest, r.birth_dt <= latest))
        conditions.append(or_(*age_clauses))

    if ranking_filter.job_ids:
        conditions.append(r.job_id.in_(ranking_filter.job_ids))

    if ranking_filter.job_detail_ids:
        conditions.append(r.job_detail_id.in_(ranking_filter.job_detail_ids))

    if ranking_filter.interests:
        conditions.append(r.interest_category.in_(ranking_filter.interests))

    return conditions


class RankingQueryService:
    def __init__(self, session: AsyncSession, *, today: Callable[[], date] = local_today) -> None:
        self.session = session
        self._today = today

    async def _missions_by_label(
        self,
        keys: list[tuple[str, str | None]],
        conditions: list,
    ) -> dict[tuple[str, str | None], list[MissionItem]]:
        """Most selected mission texts for each ``(label, interest_path)`` chart entry.

        Uses the same window and filters as the chart itself, so counts add
        up to at most the entry's ``selection_count``.
        """
        if not keys:
            return {}

        r = RankingMissionDaily
        selection_count = func.count(r.id).label("selection_count")
        stmt = (
            select(r.label_name, r.interest_path, r.mission_content, selection_count)
            .where(r.label_name.in_(sorted({label for label, _ in keys})), *conditions)
            .group_by(r.label_name, r.interest_path, r.mission_content)
            .order_by(selection_count.desc(), r.mission_content)
        )

        missions: dict[tuple[str, str | None], list[MissionItem]] = {key: [] for key in keys}
        for row in await self.session.execute(stmt):
            bucket = missions.get((row.label_name, row.interest_path))
            if bucket is not None and len(bucket) < MISSIONS_PER_LABEL:
                bucket.append(
                    MissionItem(mission_content=row.mission_content, selection_count=row.selection_count)
                )
        return missions

    async def get_popular_missions(
        self,
        ranking_filter: RankingFilter | None = None,
        limit: int | None = None,
    ) -> list[PopularMission]:
        """Most selected mission labels over the trailing window.

        Rows without a label are ignored. Ties on count are broken by label so
        the order is stable between calls. Each entry lists up to five of the
        mission texts behind it, most selected first.

        Args:
            ranking_filter: Demographic and interest filters; None means no filter.
            limit: Number of entries, 1..100. Defaults to ``RANKING_DEFAULT_LIMIT``.

        Returns:
            Chart entries ranked from 1.

        Raises:
            ValidationAppError: If ``limit`` is outside 1..100.
        """
        ranking_filter = ranking_filter or RankingFilter()
        limit = settings.ranking.default_limit if limit is None else limit
        if not 1 <= limit <= MAX_LIMIT:
            raise ValidationAppError(
                code="invalid_limit",
                message=f"limit must be between 1 and {MAX_LIMIT}.",
            )

        today = self._today()
        window_start = today - timedelta(days=settings.ranking.window_days - 1)

        r = RankingMissionDaily
        conditions = [r.ranking_date >= window_start, *build_filter_conditions(ranking_filter, today)]
        selection_count = func.count(r.id).label("selection_count")
        stmt = (
            select(r.label_name, r.interest_path, selection_count)
            .where(r.label_name.is_not(None), *conditions)
            .group_by(r.label_name, r.interest_path)
            .order_by(selection_count.desc(), r.label_name)
            .limit(limit)
        )

        rows = (await self.session.execute(stmt)).all()
        missions = await self._missions_by_label([(row.label_name, row.interest_path) for row in rows], conditions)

        logger.info(
            "ranking.popular_queried",
            extra={"window_start": window_start.isoformat(), "limit": limit, "result_count": len(rows)},
        )

        return [
            PopularMission(
                rank=index,
                label=row.label_name,
                interest_path=row.interest_path.split(INTEREST_PATH_SEPARATOR) if row.interest_path else [],
                selection_count=row.selection_count,
                missions=missions[(row.label_name, row.interest_path)],
            )
            for index, row in enumerate(rows, start=1)
        ]
