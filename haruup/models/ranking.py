"""Denormalized rows feeding the popular missions chart."""

from sqlalchemy import BigInteger, Column, Date, Enum, Index, Integer, String, Text

from .base import Base, TimestampMixin
from .member import Gender


class RankingMissionDaily(TimestampMixin, Base):
    """One row per selected member mission, snapshotted at batch time.

    Rows are append-only; the unique member_mission_id keeps re-runs idempotent.
    """

    __tablename__ = "ranking_mission_daily"
    __table_args__ = (
        Index("idx_ranking_daily_date", "ranking_date"),
        Index("idx_ranking_daily_label", "label_name"),
        Index("idx_ranking_daily_filter", "ranking_date", "birth_dt", "gender", "job_id", "job_detail_id"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    ranking_date = Column(Date, nullable=False)
    member_mission_id = Column(BigInteger, unique=True, nullable=False)
    mission_content = Column(Text, nullable=False)
    label_name = Column(String(100))
    # "main > middle > sub"; interest_category holds "main" for filtering
    interest_path = Column(String(500))
    interest_category = Column(String(100))
    gender = Column(Enum(Gender, name="member_gender", native_enum=False, length=10))
    birth_dt = Column(Date)
    job_id = Column(BigInteger)
    job_detail_id = Column(BigInteger)
