"""Pydantic schemas for the popular missions chart and the ranking batch."""

from __future__ import annotations

import enum
from datetime import date

from pydantic import BaseModel, Field

from haruup.models.member import Gender

# Upper bound of the open-ended oldest group
MAX_AGE = 120

# Example missions listed under each chart label
MISSIONS_PER_LABEL = 5


class AgeGroup(str, enum.Enum):
    """Age brackets offered as chart filters."""

    TEEN = "TEEN"
    EARLY_20S = "EARLY_20S"
    MID_20S = "MID_20S"
    LATE_20S = "LATE_20S"
    EARLY_30S = "EARLY_30S"
    MID_30S = "MID_30S"
    LATE_30S = "LATE_30S"
    FORTIES = "FORTIES"
    FIFTIES_PLUS = "FIFTIES_PLUS"

    @property
    def display_name(self) -> str:
        return _AGE_GROUP_META[self][0]

    @property
    def min_age(self) -> int:
        return _AGE_GROUP_META[self][1]

    @property
    def max_age(self) -> int:
        return _AGE_GROUP_META[self][2]


_AGE_GROUP_META: dict[AgeGroup, tuple[str, int, int]] = {
    AgeGroup.TEEN: ("10대", 10, 19),
    AgeGroup.EARLY_20S: ("20~22세", 20, 22),
    AgeGroup.MID_20S: ("23~26세", 23, 26),
    AgeGroup.LATE_20S: ("27~29세", 27, 29),
    AgeGroup.EARLY_30S: ("30~33세", 30, 33),
    AgeGroup.MID_30S: ("33~36세", 33, 36),
    AgeGroup.LATE_30S: ("37~39세", 37, 39),
    AgeGroup.FORTIES: ("40대", 40, 49),
    AgeGroup.FIFTIES_PLUS: ("50대 이상", 50, MAX_AGE),
}


class RankingFilter(BaseModel):
    """Optional chart filters. Empty lists and None impose no constraint."""

    gender: Gender | None = None
    age_groups: list[AgeGroup] = Field(default_factory=list)
    job_ids: list[int] = Field(default_factory=list)
    job_detail_ids: list[int] = Field(default_factory=list)
    interests: list[str] = Field(
        default_factory=list,
        description="Top-level interest names, e.g. '외국어 공부'.",
    )


class MissionItem(BaseModel):
    """A concrete mission text grouped under a chart label."""

    mission_content: str
    selection_count: int = Field(..., ge=1)


class PopularMission(BaseModel):
    rank: int = Field(..., ge=1)
    label: str
    interest_path: list[str] = Field(default_factory=list)
    selection_count: int = Field(..., ge=1)
    missions: list[MissionItem] = Field(
        default_factory=list,
        description=f"Most selected missions behind the label, at most {MISSIONS_PER_LABEL}.",
    )


class RankingBatchResult(BaseModel):
    target_date: date
    processed_count: int = 0
    new_label_count: int = 0
    existing_label_count: int = 0
    skipped_count: int = 0
    errors: list[str] = Field(default_factory=list)


class AgeGroupItem(BaseModel):
    code: AgeGroup
    display_name: str
    min_age: int
    max_age: int
