"""Per-passage reading journal and mentor discussion threads."""
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, Index, JSON

from core.database import Base, GUID, utcnow


class ReadingJournal(Base):
    """Free-text reflection on a passage. Written through upsert by passage."""
    __tablename__ = "reading_journal"
    __table_args__ = (
        Index("ix_reading_journal_passage", "passage_id", unique=True),
    )

    id = Column(GUID, primary_key=True, default=uuid4)
    passage_id = Column(String(32), ForeignKey("curriculum_passages.id", ondelete="CASCADE"), nullable=False)
    progress_id = Column(GUID, ForeignKey("curriculum_progress.id", ondelete="SET NULL"))  # Linked once, at creation
    reflection = Column(Text)
    personal_connection = Column(Text)
    questions_answered = Column(JSON, default=list)  # [{question, answer}]
    favorite_quote = Column(Text)
    practice_commitment = Column(Text)
    mood_before = Column(Integer)  # 1-10
    mood_after = Column(Integer)  # 1-10
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime)


class CurriculumDiscussion(Base):
    """Append-only mentor conversation about one passage"""
    __tablename__ = "curriculum_discussions"
    __table_args__ = (
        Index("ix_curriculum_discussions_passage", "passage_id", unique=True),
    )

    id = Column(GUID, primary_key=True, default=uuid4)
    passage_id = Column(String(32), ForeignKey("curriculum_passages.id", ondelete="CASCADE"), nullable=False)
    messages = Column(JSON, default=list)  # [{role, content, timestamp}]
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime)
