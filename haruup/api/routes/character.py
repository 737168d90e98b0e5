from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from haruup.core.auth import CurrentMemberId
from haruup.models import get_async_session
from haruup.schemas.character import CreateCharacterRequest, MemberCharacterResponse
from haruup.services.character_service import CharacterService

router = APIRouter(prefix="/characters", tags=["Characters"])


@router.post(
    "",
    response_model=MemberCharacterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_character(
    body: CreateCharacterRequest,
    member_id: CurrentMemberId,
    session: AsyncSession = Depends(get_async_session),
) -> MemberCharacterResponse:
    """Create the member's character at level 1.

    Args:
        body: Character chosen from the catalogue.
        member_id: Member resolved from ``X-Member-Id``.
        session: Request-scoped database session.

    Returns:
        MemberCharacterResponse with zeroed experience and streak.

    Raises:
        NotFoundAppError: If the character does not exist (404).
        InvalidStateAppError: If the member already has a character (409).
    """
    mc = await CharacterService(session).create_initial_character(member_id, body.character_id)
    return MemberCharacterResponse.model_validate(mc)


@router.get("/me", response_model=MemberCharacterResponse)
async def get_my_character(
    member_id: CurrentMemberId,
    session: AsyncSession = Depends(get_async_session),
) -> MemberCharacterResponse:
    """Return the member's character with level, experience and streak.

    Args:
        member_id: Member resolved from ``X-Member-Id``.
        session: Request-scoped database session.

    Returns:
        MemberCharacterResponse for the member.

    Raises:
        NotFoundAppError: If the member has not created a character yet (404).
    """
    mc = await CharacterService(session).get_member_character(member_id)
    return MemberCharacterResponse.model_validate(mc)
