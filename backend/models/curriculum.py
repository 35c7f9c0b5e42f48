"""Curriculum Catalog Models

Defines the reading plan hierarchy: Phase → Text → Passage, with optional
study guides attached to passages. The catalog is written once by the seeding
script and treated as read-only afterwards.
"""
from uuid import uuid4
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, Boolean, Index, JSON
from sqlalchemy.orm import relationship

from core.database import Base, GUID, utcnow


class CurriculumPhase(Base):
    """Top-level curriculum stage (e.g., 'Foundation', 'Meditations')"""
    __tablename__ = "curriculum_phases"
    __table_args__ = (
        Index("ix_curriculum_phases_order", "order_index"),
    )

    id = Column(String(32), primary_key=True)  # phase-001
    name = Column(String(64), nullable=False)  # short internal name: 'foundation'
    title = Column(String(255), nullable=False)  # 'Phase 1: Foundation'
    description = Column(Text)
    order_index = Column(Integer, nullable=False)
    estimated_weeks = Column(Integer)
    is_ongoing = Column(Boolean, default=False)

    texts = relationship(
        "CurriculumText",
        back_populates="phase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CurriculumText.order_index",
    )


class CurriculumText(Base):
    """One source work within a phase (e.g., 'Enchiridion' by Epictetus)"""
    __tablename__ = "curriculum_texts"
    __table_args__ = (
        Index("ix_curriculum_texts_phase_order", "phase_id", "order_index"),
    )

    id = Column(String(32), primary_key=True)  # text-001
    phase_id = Column(String(32), ForeignKey("curriculum_phases.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    description = Column(Text)
    order_index = Column(Integer, nullable=False)
    total_passages = Column(Integer, default=0)  # Cache; recomputed whenever passages are written

    phase = relationship("CurriculumPhase", back_populates="texts")
    passages = relationship(
        "CurriculumPassage",
        back_populates="text",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CurriculumPassage.order_index",
    )


class CurriculumPassage(Base):
    """Atomic reading unit. ``order_index`` is the catalog-wide reading order."""
    __tablename__ = "curriculum_passages"
    __table_args__ = (
        Index("ix_curriculum_passages_order", "order_index"),
        Index("ix_curriculum_passages_text_order", "text_id", "order_index"),
    )

    id = Column(String(32), primary_key=True)  # passage-001
    text_id = Column(String(32), ForeignKey("curriculum_texts.id", ondelete="CASCADE"), nullable=False)
    session_number = Column(Integer, nullable=False)  # Book for nested texts, else position
    passage_number = Column(Integer, nullable=False)  # Order within session
    reference = Column(String(128))  # 'Chapter IV', 'Book 2, Passage III', 'Letter XII'
    content = Column(Text, nullable=False)
    translation = Column(String(255))
    order_index = Column(Integer, nullable=False)

    text = relationship("CurriculumText", back_populates="passages")
    study_guide = relationship(
        "StudyGuide",
        back_populates="passage",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class StudyGuide(Base):
    """Supplementary study material for a passage (0 or 1 per passage)"""
    __tablename__ = "study_guides"
    __table_args__ = (
        Index("ix_study_guides_passage", "passage_id", unique=True),
    )

    id = Column(GUID, primary_key=True, default=uuid4)
    passage_id = Column(String(32), ForeignKey("curriculum_passages.id", ondelete="CASCADE"), nullable=False)
    key_points = Column(JSON, default=list)
    vocabulary = Column(JSON, default=list)  # [{term, definition}]
    reflection_questions = Column(JSON, default=list)
    practical_exercise = Column(Text)
    related_passages = Column(JSON, default=list)
    stoic_concepts = Column(JSON, default=list)

    passage = relationship("CurriculumPassage", back_populates="study_guide")


class CatalogCounter(Base):
    """Monotonic counters persisted alongside the catalog.

    ``passage`` holds the next passage sequence number, so identifiers issued
    once are never handed out again even after texts are removed.
    """
    __tablename__ = "catalog_counters"

    name = Column(String(32), primary_key=True)
    value = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
