"""Tests for streak rules, level resolution and character bootstrap."""

from datetime import date

import pytest
from sqlalchemy import func, select

from haruup.core.errors import InvalidStateAppError, NotFoundAppError, ValidationAppError
from haruup.models import Level, MemberCharacter
from haruup.services.character_service import (
    CharacterService,
    apply_mission_completion,
    next_streak_days,
)
from haruup.services.level_service import LevelService


def _progress(**overrides) -> MemberCharacter:
    values = dict(
        member_id=1,
        character_id=1,
        level_id=1,
        total_exp=0,
        current_exp=0,
        total_missions=0,
        completed_missions=0,
        failed_missions=0,
        current_streak_days=0,
        longest_streak_days=0,
        last_mission_date=None,
    )
    values.update(overrides)
    return MemberCharacter(**values)


class TestStreakRule:
    def test_consecutive_day_extends_streak(self) -> None:
        mc = _progress(current_streak_days=5, longest_streak_days=5, last_mission_date=date(2025, 1, 10))

        apply_mission_completion(mc, 1, 100, 100, date(2025, 1, 11))

        assert mc.current_streak_days == 6
        assert mc.longest_streak_days == 6
        assert mc.last_mission_date == date(2025, 1, 11)

    def test_gap_restarts_streak(self) -> None:
        mc = _progress(current_streak_days=5, longest_streak_days=9, last_mission_date=date(2025, 1, 8))

        apply_mission_completion(mc, 1, 100, 100, date(2025, 1, 11))

        assert mc.current_streak_days == 1
        assert mc.longest_streak_days == 9

    def test_first_mission_starts_streak(self) -> None:
        mc = _progress()

        apply_mission_completion(mc, 1, 100, 100, date(2025, 1, 11))

        assert mc.current_streak_days == 1
        assert mc.longest_streak_days == 1
        assert mc.total_missions == 1
        assert mc.completed_missions == 1

    def test_same_day_repeat_keeps_streak(self) -> None:
        mc = _progress(current_streak_days=4, longest_streak_days=4, last_mission_date=date(2025, 1, 11))

        apply_mission_completion(mc, 1, 200, 200, date(2025, 1, 11))

        assert mc.current_streak_days == 4
        assert mc.completed_missions == 1

    @pytest.mark.parametrize(
        "current,last,expected",
        [
            (0, None, 1),
            (3, date(2025, 1, 10), 4),
            (3, date(2025, 1, 11), 3),
            (3, date(2025, 1, 1), 1),
            (3, date(2025, 1, 12), 1),
        ],
    )
    def test_next_streak_days(self, current: int, last: date | None, expected: int) -> None:
        assert next_streak_days(current, last, date(2025, 1, 11)) == expected

    def test_longest_never_below_current(self) -> None:
        mc = _progress()
        day = date(2025, 1, 1)
        for offset in (0, 1, 2, 5, 6, 6, 7):
            apply_mission_completion(mc, 1, 0, 0, date.fromordinal(day.toordinal() + offset))
            assert mc.longest_streak_days >= mc.current_streak_days

    def test_negative_experience_rejected(self) -> None:
        with pytest.raises(ValidationAppError):
            apply_mission_completion(_progress(), 1, -1, 0, date(2025, 1, 11))


class TestLevelService:
    @pytest.mark.asyncio
    async def test_resolve_without_level_up(self, session, level_1: Level) -> None:
        resolved = await LevelService(session).resolve_experience(
            level_id=level_1.id, total_exp=300, current_exp=300, exp_earned=200
        )

        assert resolved.level_id == level_1.id
        assert resolved.total_exp == 500
        assert resolved.current_exp == 500
        assert resolved.levels_gained == 0

    @pytest.mark.asyncio
    async def test_resolve_crosses_several_levels(self, session, level_1: Level) -> None:
        resolved = await LevelService(session).resolve_experience(
            level_id=level_1.id, total_exp=900, current_exp=900, exp_earned=2300
        )

        assert resolved.level_number == 4
        assert resolved.current_exp == 200
        assert resolved.total_exp == 3200
        assert resolved.levels_gained == 3
        assert await session.scalar(select(func.count(Level.id))) == 4

    @pytest.mark.asyncio
    async def test_unknown_level(self, session) -> None:
        with pytest.raises(NotFoundAppError):
            await LevelService(session).resolve_experience(
                level_id=999, total_exp=0, current_exp=0, exp_earned=10
            )

    @pytest.mark.asyncio
    async def test_negative_exp_rejected(self, session, level_1: Level) -> None:
        with pytest.raises(ValidationAppError):
            await LevelService(session).resolve_experience(
                level_id=level_1.id, total_exp=0, current_exp=0, exp_earned=-5
            )

    @pytest.mark.asyncio
    async def test_level_numbers_start_at_one(self, session) -> None:
        with pytest.raises(ValidationAppError):
            await LevelService(session).get_or_create_level(0)


class TestCharacterService:
    @pytest.mark.asyncio
    async def test_create_initial_character(self, session, character) -> None:
        mc = await CharacterService(session).create_initial_character(10, character.id)

        level = await session.get(Level, mc.level_id)
        assert level.level_number == 1
        assert mc.member_id == 10
        assert mc.total_exp == 0
        assert mc.current_streak_days == 0
        assert mc.last_mission_date is None

    @pytest.mark.asyncio
    async def test_second_character_conflicts(self, session, character) -> None:
        service = CharacterService(session)
        await service.create_initial_character(10, character.id)

        with pytest.raises(InvalidStateAppError):
            await service.create_initial_character(10, character.id)

    @pytest.mark.asyncio
    async def test_unknown_character(self, session) -> None:
        with pytest.raises(NotFoundAppError) as exc_info:
            await CharacterService(session).create_initial_character(10, 404)

        assert exc_info.value.code == "character_not_found"

    @pytest.mark.asyncio
    async def test_get_member_character_missing(self, session) -> None:
        with pytest.raises(NotFoundAppError):
            await CharacterService(session).get_member_character(10)
