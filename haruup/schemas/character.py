"""Pydantic schemas for member characters and mission completion."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class CreateCharacterRequest(BaseModel):
    """Character chosen by the member during onboarding."""

    character_id: int = Field(..., gt=0, description="Id of the character to raise.")


class MemberCharacterResponse(BaseModel):
    """Member progress: level, experience, mission counters and streak."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    character_id: int
    level_id: int
    total_exp: int = Field(..., ge=0, description="Experience earned since the character was created.")
    current_exp: int = Field(..., ge=0, description="Experience accumulated within the current level.")
    total_missions: int
    completed_missions: int
    failed_missions: int
    current_streak_days: int = Field(..., ge=0, description="Consecutive days with a completed mission.")
    longest_streak_days: int = Field(..., ge=0, description="Best streak ever reached.")
    last_mission_date: date | None = None
