"""Reading Journal API Routes"""
from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import CamelModel, PassageResponse, SaveResponse
from core.database import get_db
from core.errors import not_found, raise_error, raise_result
from engines.journal import ReadingJournalStore

router = APIRouter()

Mood = Annotated[int, Field(ge=1, le=10)]


class QuestionAnswer(CamelModel):
    question: str
    answer: str


class JournalFields(CamelModel):
    reflection: str | None = None
    personal_connection: str | None = None
    questions_answered: list[QuestionAnswer] | None = None
    favorite_quote: str | None = None
    practice_commitment: str | None = None
    mood_before: Mood | None = None
    mood_after: Mood | None = None

    def provided(self) -> dict:
        """Only the fields present in the request body."""
        return self.model_dump(exclude_unset=True, exclude={"passage_id"})


class JournalRequest(JournalFields):
    passage_id: str


class JournalResponse(CamelModel):
    id: UUID
    passage_id: str
    progress_id: UUID | None = None
    reflection: str | None = None
    personal_connection: str | None = None
    questions_answered: list[QuestionAnswer] | None = None
    favorite_quote: str | None = None
    practice_commitment: str | None = None
    mood_before: int | None = None
    mood_after: int | None = None
    created_at: datetime
    updated_at: datetime | None = None


class JournalListItem(JournalResponse):
    passage: PassageResponse | None = None


@router.post("/journal", response_model=SaveResponse)
async def save_journal(
    request: JournalRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create the passage's journal entry, or update only the provided fields."""
    record, created = raise_result(
        await ReadingJournalStore(db).upsert(request.passage_id, request.provided())
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return SaveResponse(id=str(record.id))


@router.get("/journal", response_model=list[JournalListItem])
async def list_journal(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    entries = await ReadingJournalStore(db).list_entries(limit=limit, offset=offset)
    return [
        JournalListItem(
            **dict(JournalResponse.model_validate(journal)),
            passage=PassageResponse.model_validate(passage) if passage else None,
        )
        for journal, passage in entries
    ]


@router.get("/journal/{passage_id}", response_model=JournalResponse)
async def get_journal(passage_id: str, db: AsyncSession = Depends(get_db)):
    record = await ReadingJournalStore(db).get(passage_id)
    if record is None:
        raise_error(not_found("JournalEntry", passage_id, origin="api.journal").error)
    return JournalResponse.model_validate(record)


@router.put("/journal/{journal_id}", response_model=SaveResponse)
async def update_journal(
    journal_id: str,
    request: JournalFields,
    db: AsyncSession = Depends(get_db),
):
    record = raise_result(await ReadingJournalStore(db).update(journal_id, request.provided()))
    return SaveResponse(id=str(record.id))
