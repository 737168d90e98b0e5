"""Daily ranking batch.

Copies the missions members selected on a given day into
``ranking_mission_daily`` together with a demographic snapshot of the member,
so the popular chart never has to join live profile tables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.clock import local_today
from haruup.models import MemberInterest, MemberMission, MemberProfile, RankingMissionDaily
from haruup.schemas.ranking import RankingBatchResult
from haruup.services.ranking_label_service import RankingLabelService

logger = logging.getLogger(__name__)

INTEREST_PATH_SEPARATOR = " > "


@dataclass(frozen=True)
class _Candidate:
    member_mission_id: int
    member_id: int
    member_interest_id: int
    mission_content: str
    label_name: str | None


class RankingBatchService:
    """Builds ranking rows for one target date.

    Every row commits on its own. A row that fails is rolled back and reported
    in ``errors``; the rest of the batch continues.
    """

    def __init__(self, session: AsyncSession, label_service: RankingLabelService) -> None:
        self.session = session
        self.label_service = label_service

    async def _load_candidates(self, target_date: date) -> list[_Candidate]:
        already_ranked = select(RankingMissionDaily.member_mission_id)
        rows = await self.session.execute(
            select(
                MemberMission.id,
                MemberMission.member_id,
                MemberMission.member_interest_id,
                MemberMission.mission_content,
                MemberMission.label_name,
            )
            .where(
                MemberMission.is_selected.is_(True),
                MemberMission.target_date == target_date,
                MemberMission.id.not_in(already_ranked),
            )
            .order_by(MemberMission.id)
        )
        return [_Candidate(*row) for row in rows.all()]

    async def _load_profiles(self, member_ids: set[int]) -> dict[int, dict[str, Any]]:
        if not member_ids:
            return {}
        rows = await self.session.execute(
            select(
                MemberProfile.member_id,
                MemberProfile.gender,
                MemberProfile.birth_dt,
                MemberProfile.job_id,
                MemberProfile.job_detail_id,
            ).where(MemberProfile.member_id.in_(member_ids))
        )
        return {row.member_id: row._asdict() for row in rows}

    async def _load_interest_paths(self, interest_ids: set[int]) -> dict[int, list[str]]:
        if not interest_ids:
            return {}
        rows = await self.session.execute(
            select(MemberInterest.id, MemberInterest.full_path).where(MemberInterest.id.in_(interest_ids))
        )
        return {row.id: [str(part) for part in (row.full_path or [])] for row in rows}

    def _insert_ignoring_duplicates(self, values: dict[str, Any]):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(RankingMissionDaily).values(**values).on_conflict_do_nothing(
                index_elements=["member_mission_id"]
            )
        if dialect == "sqlite":
            return sqlite_insert(RankingMissionDaily).values(**values).on_conflict_do_nothing(
                index_elements=["member_mission_id"]
            )
        return insert(RankingMissionDaily).values(**values)

    async def _insert_row(self, values: dict[str, Any]) -> bool:
        """Insert one ranking row. Returns False when the mission is already ranked."""
        try:
            result = await self.session.execute(self._insert_ignoring_duplicates(values))
        except IntegrityError:
            await self.session.rollback()
            return False
        return result.rowcount != 0

    async def execute_batch(self, target_date: date | None = None) -> RankingBatchResult:
        """Rank every mission selected on ``target_date`` (default: today).

        Re-running for the same date inserts nothing new: already ranked
        missions are filtered out up front and duplicate inserts from a
        concurrent run are counted as skipped.
        """
        target_date = target_date or local_today()
        result = RankingBatchResult(target_date=target_date)

        logger.info("ranking_batch.started", extra={"target_date": target_date.isoformat()})

        candidates = await self._load_candidates(target_date)
        profiles = await self._load_profiles({c.member_id for c in candidates})
        interest_paths = await self._load_interest_paths({c.member_interest_id for c in candidates})

        logger.info("ranking_batch.candidates_loaded", extra={"count": len(candidates)})

        for candidate in candidates:
            path = interest_paths.get(candidate.member_interest_id, [])
            profile = profiles.get(candidate.member_id, {})

            try:
                outcome = await self.label_service.process_label(
                    candidate.member_mission_id,
                    candidate.label_name,
                    candidate.mission_content,
                    path,
                )

                inserted = await self._insert_row(
                    {
                        "ranking_date": target_date,
                        "member_mission_id": candidate.member_mission_id,
                        "mission_content": candidate.mission_content,
                        "label_name": outcome.label,
                        "interest_path": INTEREST_PATH_SEPARATOR.join(path) or None,
                        "interest_category": path[0] if path else None,
                        "gender": profile.get("gender"),
                        "birth_dt": profile.get("birth_dt"),
                        "job_id": profile.get("job_id"),
                        "job_detail_id": profile.get("job_detail_id"),
                    }
                )
                # After the insert: a duplicate rolls the transaction back.
                if outcome.label and not outcome.stored:
                    await self.session.execute(
                        update(MemberMission)
                        .where(MemberMission.id == candidate.member_mission_id)
                        .values(label_name=outcome.label)
                    )
                await self.session.commit()
                if not inserted:
                    result.skipped_count += 1
                    logger.info(
                        "ranking_batch.row_skipped",
                        extra={"member_mission_id": candidate.member_mission_id},
                    )
                    continue
            except SQLAlchemyError as exc:
                await self.session.rollback()
                message = f"member_mission_id={candidate.member_mission_id}: {type(exc).__name__}"
                result.errors.append(message)
                logger.error(
                    "ranking_batch.row_failed",
                    extra={"member_mission_id": candidate.member_mission_id, "error_type": type(exc).__name__},
                )
                continue

            result.processed_count += 1
            if outcome.stored:
                result.existing_label_count += 1
            elif outcome.label:
                result.new_label_count += 1

        logger.info(
            "ranking_batch.completed",
            extra={
                "target_date": target_date.isoformat(),
                "processed_count": result.processed_count,
                "new_label_count": result.new_label_count,
                "existing_label_count": result.existing_label_count,
                "skipped_count": result.skipped_count,
                "error_count": len(result.errors),
            },
        )
        return result
