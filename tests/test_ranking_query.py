"""Tests for the popular missions chart."""

from datetime import date, timedelta

import pytest

from haruup.core.errors import ValidationAppError
from haruup.models import Gender, RankingMissionDaily
from haruup.schemas.ranking import AgeGroup, RankingFilter
from haruup.services.ranking_query_service import (
    RankingQueryService,
    birth_date_bounds,
    years_before,
)

TODAY = date(2025, 1, 30)

_next_id = iter(range(1, 10_000))


def _row(label: str | None, *, days_ago: int = 0, path: str = "운동 > 러닝", **overrides) -> RankingMissionDaily:
    values = dict(
        ranking_date=TODAY - timedelta(days=days_ago),
        member_mission_id=next(_next_id),
        mission_content=label or "라벨 없음",
        label_name=label,
        interest_path=path,
        interest_category=path.split(" > ")[0],
        gender=Gender.MALE,
        birth_dt=date(2000, 3, 1),
        job_id=1,
        job_detail_id=10,
    )
    values.update(overrides)
    return RankingMissionDaily(**values)


@pytest.fixture
def query(session) -> RankingQueryService:
    return RankingQueryService(session, today=lambda: TODAY)


class TestAgeBounds:
    def test_years_before_leap_day(self) -> None:
        assert years_before(date(2024, 2, 29), 1) == date(2023, 2, 28)

    def test_bounds_cover_exact_birthdays(self) -> None:
        earliest, latest = birth_date_bounds(AgeGroup.MID_20S, TODAY)
        # 23 today, 26 until tomorrow
        assert latest == date(2002, 1, 30)
        assert earliest == date(1998, 1, 30)

    def test_oldest_group_is_capped(self) -> None:
        earliest, latest = birth_date_bounds(AgeGroup.FIFTIES_PLUS, TODAY)
        assert latest == date(1975, 1, 30)
        assert earliest == date(1904, 1, 30)


@pytest.mark.asyncio
async def test_groups_and_orders_by_count(session, query) -> None:
    session.add_all(
        [_row("조깅하기") for _ in range(3)]
        + [_row("영어 단어 외우기", path="외국어 공부 > 영어") for _ in range(3)]
        + [_row("물 마시기", path="건강") for _ in range(5)]
        + [_row(None) for _ in range(9)]
    )
    await session.commit()

    result = await query.get_popular_missions()

    assert [(m.rank, m.label, m.selection_count) for m in result] == [
        (1, "물 마시기", 5),
        (2, "영어 단어 외우기", 3),
        (3, "조깅하기", 3),
    ]
    assert result[1].interest_path == ["외국어 공부", "영어"]


@pytest.mark.asyncio
async def test_window_is_thirty_days(session, query) -> None:
    session.add_all([_row("조깅하기", days_ago=29), _row("독서", days_ago=30)])
    await session.commit()

    result = await query.get_popular_missions()

    assert [m.label for m in result] == ["조깅하기"]


@pytest.mark.asyncio
async def test_limit_truncates(session, query) -> None:
    session.add_all([_row(f"미션 {i:02d}") for i in range(15)])
    await session.commit()

    assert len(await query.get_popular_missions()) == 10
    assert len(await query.get_popular_missions(limit=3)) == 3


@pytest.mark.asyncio
async def test_invalid_limit(query) -> None:
    with pytest.raises(ValidationAppError):
        await query.get_popular_missions(limit=0)


@pytest.mark.asyncio
async def test_filters_combine(session, query) -> None:
    session.add_all(
        [
            _row("조깅하기", gender=Gender.FEMALE, birth_dt=date(2003, 6, 1), job_id=2),
            _row("조깅하기", gender=Gender.FEMALE, birth_dt=date(1990, 6, 1), job_id=2),
            _row("조깅하기", gender=Gender.MALE, birth_dt=date(2003, 6, 1), job_id=2),
            _row("영어 단어 외우기", path="외국어 공부 > 영어", gender=Gender.FEMALE, birth_dt=date(2003, 6, 1), job_id=3),
        ]
    )
    await session.commit()

    female_early_20s = RankingFilter(gender=Gender.FEMALE, age_groups=[AgeGroup.EARLY_20S])
    result = await query.get_popular_missions(female_early_20s)
    assert {(m.label, m.selection_count) for m in result} == {("조깅하기", 1), ("영어 단어 외우기", 1)}

    by_job = RankingFilter(gender=Gender.FEMALE, job_ids=[3])
    assert [m.label for m in await query.get_popular_missions(by_job)] == ["영어 단어 외우기"]

    by_interest = RankingFilter(interests=["운동"])
    result = await query.get_popular_missions(by_interest)
    assert [(m.label, m.selection_count) for m in result] == [("조깅하기", 3)]


@pytest.mark.asyncio
async def test_age_groups_are_ored(session, query) -> None:
    session.add_all(
        [
            _row("조깅하기", birth_dt=date(2004, 1, 1)),  # 21
            _row("조깅하기", birth_dt=date(1985, 1, 1)),  # 40
            _row("조깅하기", birth_dt=date(1995, 1, 1)),  # 30
        ]
    )
    await session.commit()

    result = await query.get_popular_missions(
        RankingFilter(age_groups=[AgeGroup.EARLY_20S, AgeGroup.FORTIES])
    )

    assert result[0].selection_count == 2


class TestMissionsPerLabel:
    @pytest.mark.asyncio
    async def test_top_five_most_selected(self, session, query) -> None:
        session.add_all(
            [_row("조깅하기", mission_content="30분 조깅하기") for _ in range(3)]
            + [_row("조깅하기", mission_content="아침 조깅") for _ in range(2)]
            + [_row("조깅하기", mission_content=f"조깅 {i}") for i in range(1, 6)]
            + [_row("조깅하기", mission_content="오래된 조깅", days_ago=40)]
        )
        await session.commit()

        (entry,) = await query.get_popular_missions()

        assert entry.selection_count == 10
        assert [(m.mission_content, m.selection_count) for m in entry.missions] == [
            ("30분 조깅하기", 3),
            ("아침 조깅", 2),
            ("조깅 1", 1),
            ("조깅 2", 1),
            ("조깅 3", 1),
        ]

    @pytest.mark.asyncio
    async def test_missions_follow_filters(self, session, query) -> None:
        session.add_all(
            [
                _row("조깅하기", mission_content="30분 조깅하기", gender=Gender.FEMALE),
                _row("조깅하기", mission_content="새벽 조깅", gender=Gender.MALE),
                _row("조깅하기", mission_content="새벽 조깅", gender=Gender.MALE),
            ]
        )
        await session.commit()

        (entry,) = await query.get_popular_missions(RankingFilter(gender=Gender.FEMALE))

        assert [m.mission_content for m in entry.missions] == ["30분 조깅하기"]

    @pytest.mark.asyncio
    async def test_same_label_under_two_paths(self, session, query) -> None:
        session.add_all(
            [
                _row("스트레칭", path="운동", mission_content="10분 스트레칭"),
                _row("스트레칭", path="운동", mission_content="10분 스트레칭"),
                _row("스트레칭", path="건강 > 자세", mission_content="거북목 스트레칭"),
            ]
        )
        await session.commit()

        result = await query.get_popular_missions()

        missions = {tuple(m.interest_path): [i.mission_content for i in m.missions] for m in result}
        assert missions == {("운동",): ["10분 스트레칭"], ("건강", "자세"): ["거북목 스트레칭"]}
