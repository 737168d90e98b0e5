"""Pydantic schemas for rate limit inspection."""

from pydantic import BaseModel


class RateLimitStatus(BaseModel):
    feature_key: str
    member_id: int
    current_count: int
