"""Progress Tracker

Per-passage reading state machine:

    not_started ──begin──▶ in_progress ──complete──▶ completed
         └──────────────────complete────────────────────┘

The "today's reading" pointer is never stored. ``next_unread`` recomputes it
from the completion set on every call, so completing passages out of order
through free navigation can't make it drift.
"""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable, Iterable, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import commit, fetch_one, utcnow
from core.errors import AppError, Err, Ok, Result, validation_error
from core.logging import engine_logger
from models import CurriculumPassage, CurriculumProgress

log = engine_logger()


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class _HasId(Protocol):
    id: str


@dataclass(frozen=True, slots=True)
class Overview:
    total_passages: int
    completed_count: int
    percent_complete: int
    day_number: int


def percent_complete(completed: int, total: int) -> int:
    """Integer percentage, rounded half up. 0 for an empty catalog."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def compute_overview(total: int, completed: int) -> Overview:
    return Overview(
        total_passages=total,
        completed_count=completed,
        percent_complete=percent_complete(completed, total),
        day_number=completed + 1,
    )


def next_unread(ordered_passages: Iterable[_HasId], completed_ids: set[str]) -> _HasId | None:
    """First passage, in global order, that is not completed."""
    for passage in ordered_passages:
        if passage.id not in completed_ids:
            return passage
    return None


class ProgressTracker:
    """Reads and writes ``CurriculumProgress`` records.

    ``today`` supplies the local calendar date stored as ``actual_date``;
    ``now`` supplies UTC timestamps. Both are injectable for tests.
    """

    __slots__ = ("session", "today", "now")

    def __init__(
        self,
        session: AsyncSession,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.today = today
        self.now = now

    async def get(self, passage_id: str) -> CurriculumProgress | None:
        result = await self.session.execute(
            select(CurriculumProgress).where(CurriculumProgress.passage_id == passage_id)
        )
        return result.scalar_one_or_none()

    def _start(self, record: CurriculumProgress | None, passage_id: str) -> CurriculumProgress:
        if record is None:
            record = CurriculumProgress(
                passage_id=passage_id,
                status=ProgressStatus.IN_PROGRESS.value,
                started_at=self.now(),
            )
            self.session.add(record)
        elif record.status == ProgressStatus.NOT_STARTED.value:
            record.status = ProgressStatus.IN_PROGRESS.value
            record.started_at = record.started_at or self.now()
        return record

    def _finish(
        self,
        record: CurriculumProgress | None,
        passage_id: str,
        time_spent_minutes: int | None,
    ) -> CurriculumProgress:
        record = self._start(record, passage_id)
        now = self.now()
        record.status = ProgressStatus.COMPLETED.value
        record.completed_at = now
        record.actual_date = self.today()
        if time_spent_minutes is not None:
            record.time_spent_minutes = time_spent_minutes
        return record

    async def update(
        self,
        passage_id: str,
        status: ProgressStatus | str,
        time_spent_minutes: int | None = None,
    ) -> Result[tuple[CurriculumProgress, bool], AppError]:
        """Apply a status change. Returns ``(record, created)``.

        ``in_progress`` on a completed passage leaves it completed.
        """
        try:
            status = ProgressStatus(status)
        except ValueError:
            return validation_error(f"Unknown progress status: {status!r}", field="status", value=str(status))
        if status is ProgressStatus.NOT_STARTED:
            return validation_error("Progress cannot be reset to not_started", field="status", value=status.value)

        match await fetch_one(self.session, CurriculumPassage, passage_id, "Passage"):
            case Err(e):
                return Err(e.with_context(origin="engine.progress"))

        existing = await self.get(passage_id)
        created = existing is None

        if status is ProgressStatus.COMPLETED:
            record = self._finish(existing, passage_id, time_spent_minutes)
        else:
            record = self._start(existing, passage_id)
            if time_spent_minutes is not None:
                record.time_spent_minutes = time_spent_minutes

        match await commit(self.session):
            case Err(e):
                return Err(e)

        log.info(
            "progress_updated",
            passage_id=passage_id,
            status=record.status,
            requested=status.value,
            created=created,
        )
        return Ok((record, created))

    async def begin(self, passage_id: str) -> Result[CurriculumProgress, AppError]:
        return (await self.update(passage_id, ProgressStatus.IN_PROGRESS)).map(lambda pair: pair[0])

    async def complete(
        self, passage_id: str, time_spent_minutes: int | None = None
    ) -> Result[CurriculumProgress, AppError]:
        return (await self.update(passage_id, ProgressStatus.COMPLETED, time_spent_minutes)).map(
            lambda pair: pair[0]
        )

    async def completed_ids(self) -> set[str]:
        result = await self.session.execute(
            select(CurriculumProgress.passage_id)
            .where(CurriculumProgress.status == ProgressStatus.COMPLETED.value)
        )
        return set(result.scalars().all())

    async def next_unread(self) -> CurriculumPassage | None:
        ordered = (await self.session.execute(
            select(CurriculumPassage.id).order_by(CurriculumPassage.order_index)
        )).all()
        row = next_unread(ordered, await self.completed_ids())
        if row is None:
            return None
        return await self.session.get(CurriculumPassage, row.id)

    async def overview(self) -> Overview:
        total = await self.session.scalar(select(func.count(CurriculumPassage.id)))
        completed = len(await self.completed_ids())
        return compute_overview(total or 0, completed)

    async def list_records(self) -> list[CurriculumProgress]:
        """All records, most recently completed first."""
        result = await self.session.execute(
            select(CurriculumProgress).order_by(
                CurriculumProgress.completed_at.desc().nulls_last(),
                CurriculumProgress.created_at.desc(),
            )
        )
        return list(result.scalars().all())
