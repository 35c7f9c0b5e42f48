"""Shared response models for the curriculum API.

JSON uses camelCase; Python attributes stay snake_case. Models read straight
from ORM rows (``from_attributes``).
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SaveResponse(CamelModel):
    id: str | None = None
    success: bool = True


class PhaseResponse(CamelModel):
    id: str
    name: str
    title: str
    description: str | None = None
    order_index: int
    estimated_weeks: int | None = None
    is_ongoing: bool = False


class TextResponse(CamelModel):
    id: str
    phase_id: str
    title: str
    author: str
    description: str | None = None
    order_index: int
    total_passages: int = 0


class PhaseWithTextsResponse(PhaseResponse):
    texts: list[TextResponse] = []


class PassageResponse(CamelModel):
    id: str
    text_id: str
    session_number: int
    passage_number: int
    reference: str | None = None
    content: str
    translation: str | None = None
    order_index: int


class StudyGuideResponse(CamelModel):
    id: UUID
    passage_id: str
    key_points: list[str] = []
    vocabulary: list[dict] = []
    reflection_questions: list[str] = []
    practical_exercise: str | None = None
    related_passages: list[str] = []
    stoic_concepts: list[str] = []


class ProgressRecordResponse(CamelModel):
    id: UUID
    passage_id: str
    status: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    scheduled_date: date | None = None
    actual_date: date | None = None
    time_spent_minutes: int | None = None


class PassageContextResponse(CamelModel):
    passage: PassageResponse
    study_guide: StudyGuideResponse | None = None
    text: TextResponse | None = None
    phase: PhaseResponse | None = None
    progress: ProgressRecordResponse | None = None
