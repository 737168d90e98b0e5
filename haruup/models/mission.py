"""Missions assigned to members."""

import enum

from sqlalchemy import BigInteger, Boolean, Column, Date, Enum, Integer, String, Text

from .base import Base, TimestampMixin


class MissionStatus(str, enum.Enum):
    READY = "READY"
    ACTIVE = "ACTIVE"
    POSTPONED = "POSTPONED"
    COMPLETED = "COMPLETED"
    INACTIVE = "INACTIVE"


class MemberMission(TimestampMixin, Base):
    __tablename__ = "member_mission"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    member_id = Column(BigInteger, nullable=False, index=True)
    member_interest_id = Column(BigInteger, nullable=False)
    mission_content = Column(Text, nullable=False)
    difficulty = Column(Integer)
    label_name = Column(String(100))
    mission_status = Column(
        Enum(MissionStatus, name="mission_status", native_enum=False, length=20),
        default=MissionStatus.READY,
        nullable=False,
    )
    exp_earned = Column(Integer, default=0, nullable=False)
    target_date = Column(Date, nullable=False, index=True)
    is_selected = Column(Boolean, default=False, nullable=False)
