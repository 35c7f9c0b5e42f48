"""Reading Journal Store

One journal record per passage, written through a partial upsert: only the
fields present in the request are touched, so successive saves from
different parts of the reading flow accumulate instead of overwriting.
"""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import commit, fetch_one, utcnow
from core.errors import AppError, Err, Ok, Result, validation_error
from core.logging import engine_logger
from models import CurriculumPassage, CurriculumProgress, ReadingJournal

log = engine_logger()

JOURNAL_FIELDS = frozenset({
    "reflection",
    "personal_connection",
    "questions_answered",
    "favorite_quote",
    "practice_commitment",
    "mood_before",
    "mood_after",
})


def _check_fields(fields: dict) -> Result[dict, AppError]:
    unknown = set(fields) - JOURNAL_FIELDS
    if unknown:
        return validation_error(
            f"Unknown journal fields: {', '.join(sorted(unknown))}",
            field=sorted(unknown)[0],
            origin="engine.journal",
        )
    return Ok(fields)


class ReadingJournalStore:
    __slots__ = ("session",)

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, passage_id: str) -> ReadingJournal | None:
        result = await self.session.execute(
            select(ReadingJournal).where(ReadingJournal.passage_id == passage_id)
        )
        return result.scalar_one_or_none()

    async def upsert(self, passage_id: str, fields: dict) -> Result[tuple[ReadingJournal, bool], AppError]:
        """Create or partially update the passage's record. Returns ``(record, created)``.

        On create the passage's current progress record, if any, is linked.
        The link is not back-filled when progress is recorded later.
        """
        match _check_fields(fields):
            case Err(e):
                return Err(e)

        match await fetch_one(self.session, CurriculumPassage, passage_id, "Passage"):
            case Err(e):
                return Err(e.with_context(origin="engine.journal"))

        record = await self.get(passage_id)
        created = record is None
        if created:
            progress_id = await self.session.scalar(
                select(CurriculumProgress.id).where(CurriculumProgress.passage_id == passage_id)
            )
            record = ReadingJournal(passage_id=passage_id, progress_id=progress_id, **fields)
            self.session.add(record)
        else:
            for key, value in fields.items():
                setattr(record, key, value)
            record.updated_at = utcnow()

        match await commit(self.session):
            case Err(e):
                return Err(e)

        log.info("journal_saved", passage_id=passage_id, created=created, fields=sorted(fields))
        return Ok((record, created))

    async def update(self, journal_id: UUID | str, fields: dict) -> Result[ReadingJournal, AppError]:
        """Partial update addressed by record id."""
        match _check_fields(fields):
            case Err(e):
                return Err(e)

        try:
            key = journal_id if isinstance(journal_id, UUID) else UUID(str(journal_id))
        except ValueError:
            return validation_error("Invalid journal id", field="id", value=str(journal_id))

        match await fetch_one(self.session, ReadingJournal, key, "JournalEntry"):
            case Err(e):
                return Err(e.with_context(origin="engine.journal"))
            case Ok(record):
                pass

        for name, value in fields.items():
            setattr(record, name, value)
        record.updated_at = utcnow()

        match await commit(self.session):
            case Err(e):
                return Err(e)
        return Ok(record)

    async def list_entries(
        self, limit: int = 50, offset: int = 0
    ) -> list[tuple[ReadingJournal, CurriculumPassage | None]]:
        """Newest first, each paired with its passage."""
        result = await self.session.execute(
            select(ReadingJournal, CurriculumPassage)
            .outerjoin(CurriculumPassage, ReadingJournal.passage_id == CurriculumPassage.id)
            .order_by(ReadingJournal.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return [(journal, passage) for journal, passage in result.all()]
