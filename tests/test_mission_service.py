"""Tests for the mission completion flow."""

from datetime import date

import pytest

from haruup.core.errors import InvalidStateAppError, NotFoundAppError
from haruup.models import MemberCharacter, MemberMission, MissionStatus
from haruup.services.character_service import CharacterService
from haruup.services.mission_service import MissionCompletionService

TODAY = date(2025, 1, 11)


@pytest.fixture
def service(session):
    character_service = CharacterService(session, today=lambda: TODAY)
    return MissionCompletionService(session, character_service=character_service)


async def _member_character(session, character, level, **overrides) -> MemberCharacter:
    values = dict(
        member_id=1,
        character_id=character.id,
        level_id=level.id,
        total_exp=900,
        current_exp=900,
        total_missions=3,
        completed_missions=3,
        failed_missions=0,
        current_streak_days=5,
        longest_streak_days=5,
        last_mission_date=date(2025, 1, 10),
    )
    values.update(overrides)
    mc = MemberCharacter(**values)
    session.add(mc)
    await session.commit()
    return mc


async def _mission(session, member_id: int = 1, **overrides) -> MemberMission:
    values = dict(
        member_id=member_id,
        member_interest_id=1,
        mission_content="영어 단어 20개 외우기",
        difficulty=2,
        mission_status=MissionStatus.ACTIVE,
        exp_earned=150,
        target_date=TODAY,
        is_selected=True,
    )
    values.update(overrides)
    mission = MemberMission(**values)
    session.add(mission)
    await session.commit()
    return mission


@pytest.mark.asyncio
async def test_complete_mission_updates_everything(session, service, character, level_1) -> None:
    await _member_character(session, character, level_1)
    mission = await _mission(session)

    mc = await service.complete_mission(1, mission.id)

    assert mission.mission_status == MissionStatus.COMPLETED
    assert mc.total_exp == 1050
    assert mc.current_exp == 50
    assert mc.level_id != level_1.id
    assert mc.completed_missions == 4
    assert mc.total_missions == 4
    assert mc.current_streak_days == 6
    assert mc.longest_streak_days == 6
    assert mc.last_mission_date == TODAY


@pytest.mark.asyncio
async def test_completing_twice_conflicts(session, service, character, level_1) -> None:
    await _member_character(session, character, level_1)
    mission = await _mission(session)

    await service.complete_mission(1, mission.id)

    with pytest.raises(InvalidStateAppError) as exc_info:
        await service.complete_mission(1, mission.id)

    assert exc_info.value.code == "mission_already_completed"


@pytest.mark.asyncio
async def test_other_members_mission_is_not_found(session, service, character, level_1) -> None:
    await _member_character(session, character, level_1)
    mission = await _mission(session, member_id=2)

    with pytest.raises(NotFoundAppError):
        await service.complete_mission(1, mission.id)


@pytest.mark.asyncio
async def test_member_without_character(session, service) -> None:
    mission = await _mission(session)

    with pytest.raises(NotFoundAppError) as exc_info:
        await service.complete_mission(1, mission.id)

    assert exc_info.value.code == "member_character_not_found"
