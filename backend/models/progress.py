"""Reading progress and curriculum schedule settings."""
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Integer, Boolean, Index, JSON

from core.database import Base, GUID, utcnow


class CurriculumProgress(Base):
    """Per-passage reading status (at most one record per passage)"""
    __tablename__ = "curriculum_progress"
    __table_args__ = (
        Index("ix_curriculum_progress_passage", "passage_id", unique=True),
        Index("ix_curriculum_progress_status", "status"),
    )

    id = Column(GUID, primary_key=True, default=uuid4)
    passage_id = Column(String(32), ForeignKey("curriculum_passages.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="not_started")  # not_started, in_progress, completed
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    scheduled_date = Column(Date)
    actual_date = Column(Date)  # Local calendar date the reading was completed
    time_spent_minutes = Column(Integer)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class CurriculumSettings(Base):
    """Reading schedule preferences (single row, single-user app)"""
    __tablename__ = "curriculum_settings"

    id = Column(GUID, primary_key=True, default=uuid4)
    frequency = Column(String(20), nullable=False, default="daily")  # daily, every_other_day, 3x_week, 2x_week, weekly
    preferred_days = Column(JSON, default=list)  # 0-6 for Sun-Sat
    start_date = Column(Date)
    is_active = Column(Boolean, default=True)
    reminder_time = Column(String(5))  # '08:00'
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)
