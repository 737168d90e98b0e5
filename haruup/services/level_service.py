"""Level lookup and experience resolution.

Levels are created on demand: asking for level N+1 creates it with the
standard requirements if nobody reached it before.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.errors import NotFoundAppError, ValidationAppError
from haruup.models import Level

logger = logging.getLogger(__name__)

INITIAL_LEVEL_NUMBER = 1


def calculate_required_exp(level_number: int) -> int:
    """Experience needed to leave ``level_number`` for the next level."""
    return 1000


def calculate_max_exp(level_number: int) -> int:
    return 1000


@dataclass(frozen=True)
class ResolvedExperience:
    """Level and experience after applying earned experience."""

    level_id: int
    level_number: int
    total_exp: int
    current_exp: int
    levels_gained: int


class LevelService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _find_by_number(self, level_number: int) -> Level | None:
        return await self.session.scalar(select(Level).where(Level.level_number == level_number))

    async def get_or_create_level(self, level_number: int) -> Level:
        """Return the level, creating it from the standard rules if missing."""
        if level_number < INITIAL_LEVEL_NUMBER:
            raise ValidationAppError(
                code="invalid_level_number",
                message="Level numbers start at 1.",
                details={"level_number": level_number},
            )

        level = await self._find_by_number(level_number)
        if level is not None:
            return level

        level = Level(
            level_number=level_number,
            required_exp=calculate_required_exp(level_number),
            max_exp=calculate_max_exp(level_number),
        )
        self.session.add(level)
        await self.session.flush()
        logger.info("level.created", extra={"level_number": level_number})
        return level

    async def get_initial_level_id(self) -> int:
        level = await self.get_or_create_level(INITIAL_LEVEL_NUMBER)
        return level.id

    async def get_by_id(self, level_id: int) -> Level:
        level = await self.session.get(Level, level_id)
        if level is None:
            raise NotFoundAppError(
                code="level_not_found",
                message="Level not found.",
                details={"level_id": level_id},
            )
        return level

    async def get_next_level(self, level_number: int) -> Level:
        return await self.get_or_create_level(level_number + 1)

    async def resolve_experience(
        self,
        *,
        level_id: int,
        total_exp: int,
        current_exp: int,
        exp_earned: int,
    ) -> ResolvedExperience:
        """Add earned experience and walk up as many levels as it covers.

        Args:
            level_id: Member's current level.
            total_exp: Member's lifetime experience before this mission.
            current_exp: Experience within the current level before this mission.
            exp_earned: Experience granted by the completed mission.

        Returns:
            ResolvedExperience with the final level and experience values.

        Raises:
            NotFoundAppError: If the current level does not exist.
            ValidationAppError: If exp_earned is negative.
        """
        if exp_earned < 0:
            raise ValidationAppError(
                code="invalid_exp_earned",
                message="Earned experience cannot be negative.",
            )

        current_level = await self.get_by_id(level_id)
        new_total = total_exp + exp_earned
        new_current = current_exp + exp_earned
        gained = 0

        while new_current >= current_level.required_exp:
            new_current -= current_level.required_exp
            current_level = await self.get_next_level(current_level.level_number)
            gained += 1

        if gained:
            logger.info(
                "level.up",
                extra={"level_number": current_level.level_number, "levels_gained": gained},
            )

        return ResolvedExperience(
            level_id=current_level.id,
            level_number=current_level.level_number,
            total_exp=new_total,
            current_exp=new_current,
            levels_gained=gained,
        )
