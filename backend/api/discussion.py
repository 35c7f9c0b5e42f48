"""Mentor discussion API Routes"""
from functools import lru_cache

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import CamelModel, SaveResponse
from core.database import get_db
from core.errors import raise_result
from engines.discussion import DiscussionService, Mentor, MentorClient

router = APIRouter()


@lru_cache
def get_mentor() -> Mentor:
    return MentorClient()


class DiscussRequest(CamelModel):
    passage_id: str
    message: str = Field(min_length=1)


class DiscussResponse(CamelModel):
    response: str


class Turn(CamelModel):
    role: str
    content: str
    timestamp: str | None = None


class DiscussionHistoryResponse(CamelModel):
    messages: list[Turn]


@router.post("/discuss", response_model=DiscussResponse)
async def discuss(
    request: DiscussRequest,
    db: AsyncSession = Depends(get_db),
    mentor: Mentor = Depends(get_mentor),
):
    """Ask the mentor about a passage. Nothing is stored if the call fails."""
    answer = raise_result(await DiscussionService(db, mentor).send(request.passage_id, request.message))
    return DiscussResponse(response=answer)


@router.get("/discuss/{passage_id}", response_model=DiscussionHistoryResponse)
async def get_discussion(
    passage_id: str,
    db: AsyncSession = Depends(get_db),
    mentor: Mentor = Depends(get_mentor),
):
    messages = await DiscussionService(db, mentor).history(passage_id)
    return DiscussionHistoryResponse(messages=[Turn.model_validate(m) for m in messages])


@router.delete("/discuss/{passage_id}", response_model=SaveResponse)
async def clear_discussion(
    passage_id: str,
    db: AsyncSession = Depends(get_db),
    mentor: Mentor = Depends(get_mentor),
):
    raise_result(await DiscussionService(db, mentor).clear(passage_id))
    return SaveResponse()
