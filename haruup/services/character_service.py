"""Member character lifecycle and progress updates.

The streak rule works on calendar days in the application timezone:
- last mission yesterday: the streak grows by one
- last mission today: the streak is left as is (repeat completion)
- anything else: a new streak of one day starts
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.clock import local_today
from haruup.core.errors import InvalidStateAppError, NotFoundAppError, ValidationAppError
from haruup.models import Character, MemberCharacter
from haruup.services.level_service import LevelService

logger = logging.getLogger(__name__)


def next_streak_days(current_streak_days: int, last_mission_date: date | None, today: date) -> int:
    """Return the streak length after completing a mission on ``today``."""
    if last_mission_date == today:
        return max(current_streak_days, 1)
    if last_mission_date == today - timedelta(days=1):
        return current_streak_days + 1
    return 1


def apply_mission_completion(
    progress: MemberCharacter,
    new_level_id: int,
    total_exp: int,
    current_exp: int,
    today: date,
) -> MemberCharacter:
    """Apply one completed mission to a member's progress record in place.

    Args:
        progress: The member character to update.
        new_level_id: Level resolved after adding the mission's experience.
        total_exp: Lifetime experience after the mission.
        current_exp: Experience within the new level after the mission.
        today: Calendar day of the completion.

    Returns:
        The same record, mutated.

    Raises:
        ValidationAppError: If experience values are negative.
    """
    if total_exp < 0 or current_exp < 0:
        raise ValidationAppError(
            code="invalid_experience",
            message="Experience values cannot be negative.",
        )

    progress.level_id = new_level_id
    progress.total_exp = total_exp
    progress.current_exp = current_exp

    progress.total_missions = (progress.total_missions or 0) + 1
    progress.completed_missions = (progress.completed_missions or 0) + 1

    progress.current_streak_days = next_streak_days(
        progress.current_streak_days or 0,
        progress.last_mission_date,
        today,
    )
    progress.longest_streak_days = max(progress.longest_streak_days or 0, progress.current_streak_days)
    progress.last_mission_date = today

    return progress


class CharacterService:
    """Creates member characters and persists progress updates."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        level_service: LevelService | None = None,
        today: Callable[[], date] = local_today,
    ) -> None:
        self.session = session
        self.level_service = level_service or LevelService(session)
        self._today = today

    async def get_member_character(self, member_id: int) -> MemberCharacter:
        mc = await self.session.scalar(
            select(MemberCharacter).where(MemberCharacter.member_id == member_id)
        )
        if mc is None:
            raise NotFoundAppError(
                code="member_character_not_found",
                message="The member has no character yet.",
                details={"member_id": member_id},
            )
        return mc

    async def create_initial_character(self, member_id: int, character_id: int) -> MemberCharacter:
        """Create the member's character at level 1 with empty counters.

        Raises:
            NotFoundAppError: If the character does not exist.
            InvalidStateAppError: If the member already has a character.
        """
        if await self.session.get(Character, character_id) is None:
            raise NotFoundAppError(
                code="character_not_found",
                message="Character not found.",
                details={"character_id": character_id},
            )

        existing = await self.session.scalar(
            select(MemberCharacter.id).where(MemberCharacter.member_id == member_id)
        )
        if existing is not None:
            raise InvalidStateAppError(
                code="member_character_exists",
                message="The member already has a character.",
                details={"member_id": member_id},
            )

        mc = MemberCharacter(
            member_id=member_id,
            character_id=character_id,
            level_id=await self.level_service.get_initial_level_id(),
            total_exp=0,
            current_exp=0,
            total_missions=0,
            completed_missions=0,
            failed_missions=0,
            current_streak_days=0,
            longest_streak_days=0,
        )
        self.session.add(mc)
        await self.session.commit()
        await self.session.refresh(mc)

        logger.info("member_character.created", extra={"character_id": character_id})
        return mc

    async def apply_mission_completion(
        self,
        mc: MemberCharacter,
        *,
        new_level_id: int,
        total_exp: int,
        current_exp: int,
    ) -> MemberCharacter:
        """Apply a completed mission and flush it; the caller commits."""
        today = self._today()
        previous_streak = mc.current_streak_days
        apply_mission_completion(mc, new_level_id, total_exp, current_exp, today)
        await self.session.flush()

        logger.info(
            "member_character.progress_applied",
            extra={
                "level_id": mc.level_id,
                "total_exp": mc.total_exp,
                "streak_before": previous_streak,
                "streak_after": mc.current_streak_days,
                "longest_streak": mc.longest_streak_days,
            },
        )
        return mc
