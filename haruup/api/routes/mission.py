from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.auth import CurrentMemberId
from haruup.core.config import settings
from haruup.core.rate_limit import rate_limit
from haruup.models import get_async_session
from haruup.schemas.character import MemberCharacterResponse
from haruup.services.mission_service import MissionCompletionService

router = APIRouter(prefix="/missions", tags=["Missions"])


@router.post(
    "/{member_mission_id}/complete",
    response_model=MemberCharacterResponse,
    dependencies=[
        Depends(rate_limit("mission:complete", lambda: settings.rate_limit.mission_complete_daily_limit)),
    ],
)
async def complete_mission(
    member_id: CurrentMemberId,
    member_mission_id: int = Path(..., gt=0),
    session: AsyncSession = Depends(get_async_session),
) -> MemberCharacterResponse:
    """Complete a mission and return the member's updated character.

    Grants the mission's experience (with level-ups) and updates the streak
    in one transaction. Counts against ``mission:complete`` daily quota.

    Args:
        member_id: Member resolved from ``X-Member-Id``.
        member_mission_id: Mission assigned to the member.
        session: Request-scoped database session.

    Returns:
        MemberCharacterResponse after the update.

    Raises:
        NotFoundAppError: If the mission is not the member's or no character exists (404).
        InvalidStateAppError: If the mission is already completed (409).
        RateLimitExceededError: If today's completion quota is used up (429).
    """
    mc = await MissionCompletionService(session).complete_mission(member_id, member_mission_id)
    return MemberCharacterResponse.model_validate(mc)
