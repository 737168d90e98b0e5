"""Member profile and selected interests (read-only for this service)."""

import enum

from sqlalchemy import JSON, BigInteger, Column, Date, Enum, Integer, String

from .base import Base, TimestampMixin


class Gender(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class MemberProfile(TimestampMixin, Base):
    __tablename__ = "member_profile"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    member_id = Column(BigInteger, unique=True, nullable=False)
    nickname = Column(String(50))
    gender = Column(Enum(Gender, name="member_gender", native_enum=False, length=10))
    birth_dt = Column(Date)
    job_id = Column(BigInteger)
    job_detail_id = Column(BigInteger)


class MemberInterest(TimestampMixin, Base):
    __tablename__ = "member_interest"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    member_id = Column(BigInteger, nullable=False, index=True)
    interest_id = Column(BigInteger)
    # ordered category hierarchy, e.g. ["외국어 공부", "영어", "단어 학습"]
    full_path = Column(JSON)
