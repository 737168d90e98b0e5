"""Character catalogue, levels and per-member progress."""

from sqlalchemy import BigInteger, Column, Date, ForeignKey, Integer, String, Text

from .base import Base, TimestampMixin


class Character(TimestampMixin, Base):
    __tablename__ = "character"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    description = Column(Text)


class Level(TimestampMixin, Base):
    __tablename__ = "level"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    level_number = Column(Integer, unique=True, nullable=False)
    # experience needed to move from this level to the next one
    required_exp = Column(Integer, nullable=False)
    max_exp = Column(Integer)


class MemberCharacter(TimestampMixin, Base):
    __tablename__ = "member_character"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    member_id = Column(BigInteger, unique=True, nullable=False, index=True)
    character_id = Column(BigInteger, ForeignKey("character.id"), nullable=False)
    level_id = Column(BigInteger, ForeignKey("level.id"), nullable=False)

    total_exp = Column(Integer, default=0, nullable=False)
    current_exp = Column(Integer, default=0, nullable=False)

    total_missions = Column(Integer, default=0, nullable=False)
    completed_missions = Column(Integer, default=0, nullable=False)
    failed_missions = Column(Integer, default=0, nullable=False)

    current_streak_days = Column(Integer, default=0, nullable=False)
    longest_streak_days = Column(Integer, default=0, nullable=False)
    last_mission_date = Column(Date)
