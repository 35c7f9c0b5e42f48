"""Curriculum Engine

Read model over the catalog plus reading progress:
- today's reading (first unread passage in global order)
- passage detail with its text, phase, study guide and progress
- per-phase completion and unlock state
- schedule settings
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.database import commit, fetch_one, utcnow
from core.errors import AppError, Err, Ok, Result
from core.logging import curriculum_logger
from engines.progress import Overview, ProgressStatus, ProgressTracker
from models import (
    CurriculumPassage,
    CurriculumPhase,
    CurriculumProgress,
    CurriculumSettings,
    CurriculumText,
    StudyGuide,
)

log = curriculum_logger()

ALL_COMPLETE_MESSAGE = "You have completed all readings!"


@dataclass(slots=True)
class PassageContext:
    passage: CurriculumPassage
    text: CurriculumText | None
    phase: CurriculumPhase | None
    study_guide: StudyGuide | None
    progress: CurriculumProgress | None


@dataclass(slots=True)
class TodayReading:
    current_reading: PassageContext | None
    day_number: int
    total_completed: int
    total_passages: int
    message: str | None = None


@dataclass(slots=True)
class PhaseProgress:
    phase: CurriculumPhase
    texts: list[CurriculumText]
    passages_completed: int
    passages_total: int
    is_unlocked: bool = False

    @property
    def is_complete(self) -> bool:
        # Empty phases count as complete so they never block later phases
        return self.passages_completed >= self.passages_total


@dataclass(slots=True)
class CurriculumOverview:
    progress: Overview
    days_on_journey: int
    current_phase: CurriculumPhase | None
    phases: list[PhaseProgress] = field(default_factory=list)


@dataclass(slots=True)
class TextPassage:
    id: str
    reference: str | None
    order_index: int
    completed: bool


def apply_unlock_rule(phases: list[PhaseProgress]) -> None:
    """Unlock every phase up to the first incomplete one, plus any phase with
    a completed passage."""
    first_incomplete = next((i for i, p in enumerate(phases) if not p.is_complete), len(phases))
    for index, p in enumerate(phases):
        p.is_unlocked = index == 0 or p.passages_completed > 0 or index <= first_incomplete


class CurriculumEngine:
    """Engine for curriculum queries and schedule settings."""

    __slots__ = ("session", "today_fn", "tracker")

    def __init__(self, session: AsyncSession, today: Callable[[], date] = date.today):
        self.session = session
        self.today_fn = today
        self.tracker = ProgressTracker(session, today=today)

    async def _context(self, passage: CurriculumPassage) -> PassageContext:
        text = await self.session.get(CurriculumText, passage.text_id)
        phase = await self.session.get(CurriculumPhase, text.phase_id) if text else None
        guide = await self.session.scalar(
            select(StudyGuide).where(StudyGuide.passage_id == passage.id)
        )
        return PassageContext(
            passage=passage,
            text=text,
            phase=phase,
            study_guide=guide,
            progress=await self.tracker.get(passage.id),
        )

    async def today(self) -> TodayReading:
        overview = await self.tracker.overview()
        passage = await self.tracker.next_unread()
        if passage is None:
            return TodayReading(
                current_reading=None,
                day_number=overview.completed_count,
                total_completed=overview.completed_count,
                total_passages=overview.total_passages,
                message=ALL_COMPLETE_MESSAGE,
            )
        return TodayReading(
            current_reading=await self._context(passage),
            day_number=overview.day_number,
            total_completed=overview.completed_count,
            total_passages=overview.total_passages,
        )

    async def passage_detail(self, passage_id: str) -> Result[PassageContext, AppError]:
        match await fetch_one(self.session, CurriculumPassage, passage_id, "Passage"):
            case Err(e):
                return Err(e.with_context(origin="engine.curriculum"))
            case Ok(passage):
                return Ok(await self._context(passage))

    async def text_passages(self, text_id: str) -> Result[list[TextPassage], AppError]:
        match await fetch_one(self.session, CurriculumText, text_id, "Text"):
            case Err(e):
                return Err(e.with_context(origin="engine.curriculum"))

        completed = await self.tracker.completed_ids()
        result = await self.session.execute(
            select(CurriculumPassage.id, CurriculumPassage.reference, CurriculumPassage.order_index)
            .where(CurriculumPassage.text_id == text_id)
            .order_by(CurriculumPassage.order_index)
        )
        return Ok([
            TextPassage(id=row.id, reference=row.reference, order_index=row.order_index,
                        completed=row.id in completed)
            for row in result.all()
        ])

    async def phases(self) -> list[CurriculumPhase]:
        result = await self.session.execute(
            select(CurriculumPhase)
            .options(selectinload(CurriculumPhase.texts))
            .order_by(CurriculumPhase.order_index)
        )
        return list(result.scalars().all())

    async def overview(self) -> CurriculumOverview:
        phases = await self.phases()

        totals = dict((await self.session.execute(
            select(CurriculumText.phase_id, func.count(CurriculumPassage.id))
            .join(CurriculumPassage, CurriculumPassage.text_id == CurriculumText.id)
            .group_by(CurriculumText.phase_id)
        )).all())
        done = dict((await self.session.execute(
            select(CurriculumText.phase_id, func.count(CurriculumProgress.id))
            .join(CurriculumPassage, CurriculumPassage.text_id == CurriculumText.id)
            .join(CurriculumProgress, CurriculumProgress.passage_id == CurriculumPassage.id)
            .where(CurriculumProgress.status == ProgressStatus.COMPLETED.value)
            .group_by(CurriculumText.phase_id)
        )).all())

        phase_progress = [
            PhaseProgress(
                phase=phase,
                texts=list(phase.texts),
                passages_completed=done.get(phase.id, 0),
                passages_total=totals.get(phase.id, 0),
            )
            for phase in phases
        ]
        apply_unlock_rule(phase_progress)

        current = next((p.phase for p in phase_progress if not p.is_complete), None)
        if current is None and phase_progress:
            current = phase_progress[0].phase

        settings = await self.get_settings()
        days = 0
        if settings is not None and settings.start_date:
            days = max((self.today_fn() - settings.start_date).days, 0)

        return CurriculumOverview(
            progress=await self.tracker.overview(),
            days_on_journey=days,
            current_phase=current,
            phases=phase_progress,
        )

    async def get_settings(self) -> CurriculumSettings | None:
        return await self.session.scalar(select(CurriculumSettings).limit(1))

    async def save_settings(
        self,
        frequency: str,
        preferred_days: list[int] | None = None,
        reminder_time: str | None = None,
    ) -> Result[tuple[CurriculumSettings, bool], AppError]:
        """Create or update the single settings row. Returns ``(record, created)``.

        The start date is set once, on first save.
        """
        record = await self.get_settings()
        created = record is None
        if created:
            record = CurriculumSettings(
                frequency=frequency,
                preferred_days=preferred_days or [],
                reminder_time=reminder_time,
                start_date=self.today_fn(),
                is_active=True,
            )
            self.session.add(record)
        else:
            record.frequency = frequency
            if preferred_days is not None:
                record.preferred_days = list(preferred_days)
            if reminder_time is not None:
                record.reminder_time = reminder_time
            record.updated_at = utcnow()

        match await commit(self.session):
            case Err(e):
                return Err(e)

        log.info("settings_saved", frequency=frequency, created=created)
        return Ok((record, created))
