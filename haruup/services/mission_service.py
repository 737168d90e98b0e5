"""Mission completion use case: mark done, grant experience, update streak."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.errors import InvalidStateAppError, NotFoundAppError
from haruup.models import MemberCharacter, MemberMission, MissionStatus
from haruup.services.character_service import CharacterService
from haruup.services.level_service import LevelService

logger = logging.getLogger(__name__)


class MissionCompletionService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        character_service: CharacterService | None = None,
        level_service: LevelService | None = None,
    ) -> None:
        self.session = session
        self.level_service = level_service or LevelService(session)
        self.character_service = character_service or CharacterService(
            session, level_service=self.level_service
        )

    async def _get_owned_mission(self, member_id: int, member_mission_id: int) -> MemberMission:
        mission = await self.session.get(MemberMission, member_mission_id)
        if mission is None or mission.member_id != member_id:
            raise NotFoundAppError(
                code="member_mission_not_found",
                message="Mission not found.",
                details={"member_mission_id": member_mission_id},
            )
        return mission

    async def complete_mission(self, member_id: int, member_mission_id: int) -> MemberCharacter:
        """Complete a member's mission and apply its experience to their character.

        Steps, in one transaction:
        1. mark the mission COMPLETED
        2. resolve level and experience (possibly several level-ups)
        3. update mission counters and streak

        Raises:
            NotFoundAppError: Mission or member character missing.
            InvalidStateAppError: Mission already completed.
        """
        mission = await self._get_owned_mission(member_id, member_mission_id)
        if mission.mission_status == MissionStatus.COMPLETED:
            raise InvalidStateAppError(
                code="mission_already_completed",
                message="Mission is already completed.",
                details={"member_mission_id": member_mission_id},
            )

        mc = await self.character_service.get_member_character(member_id)

        mission.mission_status = MissionStatus.COMPLETED

        resolved = await self.level_service.resolve_experience(
            level_id=mc.level_id,
            total_exp=mc.total_exp,
            current_exp=mc.current_exp,
            exp_earned=mission.exp_earned or 0,
        )

        mc = await self.character_service.apply_mission_completion(
            mc,
            new_level_id=resolved.level_id,
            total_exp=resolved.total_exp,
            current_exp=resolved.current_exp,
        )
        await self.session.commit()
        await self.session.refresh(mc)

        logger.info(
            "mission.completed",
            extra={
                "member_mission_id": member_mission_id,
                "exp_earned": mission.exp_earned,
                "levels_gained": resolved.levels_gained,
            },
        )
        return mc
