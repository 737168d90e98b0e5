"""SQLAlchemy models. Importing this package registers every table on Base.metadata."""

from .base import AsyncSessionLocal, Base, engine, get_async_session, init_db
from .character import Character, Level, MemberCharacter
from .member import Gender, MemberInterest, MemberProfile
from .mission import MemberMission, MissionStatus
from .ranking import RankingMissionDaily

__all__ = [
    "AsyncSessionLocal",
    "Base",
    "Character",
    "Gender",
    "Level",
    "MemberCharacter",
    "MemberInterest",
    "MemberMission",
    "MemberProfile",
    "MissionStatus",
    "RankingMissionDaily",
    "engine",
    "get_async_session",
    "init_db",
]
