"""Curriculum API Routes

Handles schedule settings, today's reading, progress tracking and catalog
browsing (phases, texts, passages, navigation).
"""
from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import (
    CamelModel,
    PassageContextResponse,
    PhaseResponse,
    PhaseWithTextsResponse,
    ProgressRecordResponse,
    SaveResponse,
    TextResponse,
)
from core.database import get_db
from core.errors import raise_result
from core.logging import api_logger
from engines.curriculum import CurriculumEngine
from engines.navigation import NavigationResolver
from engines.progress import ProgressTracker

log = api_logger()

router = APIRouter()

Frequency = Literal["daily", "every_other_day", "3x_week", "2x_week", "weekly"]


# =============================================================================
# Schemas
# =============================================================================

class SettingsRequest(CamelModel):
    frequency: Frequency
    preferred_days: list[Annotated[int, Field(ge=0, le=6)]] | None = Field(default=None, max_length=7)
    reminder_time: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

    def days(self) -> list[int] | None:
        return sorted(set(self.preferred_days)) if self.preferred_days is not None else None


class SettingsResponse(CamelModel):
    frequency: str = "daily"
    preferred_days: list[int] = []
    start_date: date | None = None
    is_active: bool = False
    reminder_time: str | None = None


class ProgressRequest(CamelModel):
    status: Literal["in_progress", "completed"]
    time_spent_minutes: int | None = Field(default=None, ge=0)


class TodayResponse(CamelModel):
    current_reading: PassageContextResponse | None = None
    day_number: int
    total_completed: int
    total_passages: int
    message: str | None = None


class OverviewStats(CamelModel):
    total_passages: int
    completed_passages: int
    percent_complete: int
    days_on_journey: int
    day_number: int


class PhaseProgressResponse(CamelModel):
    phase: PhaseResponse
    texts: list[TextResponse]
    passages_completed: int
    passages_total: int
    is_unlocked: bool


class OverviewResponse(CamelModel):
    progress: OverviewStats
    current_phase: PhaseResponse | None = None
    phases: list[PhaseProgressResponse]


class TextPassageResponse(CamelModel):
    id: str
    reference: str | None = None
    order_index: int
    completed: bool


class NavPassage(CamelModel):
    id: str
    reference: str | None = None


class NavigationResponse(CamelModel):
    prev: NavPassage | None = None
    next: NavPassage | None = None
    position: int
    total: int


class PassageDetailResponse(PassageContextResponse):
    navigation: NavigationResponse


# =============================================================================
# Settings
# =============================================================================

@router.get("/settings", response_model=SettingsResponse)
async def get_settings(db: AsyncSession = Depends(get_db)):
    """Current schedule settings, or defaults when none are saved."""
    record = await CurriculumEngine(db).get_settings()
    if record is None:
        log.debug("settings_defaults_returned")
        return SettingsResponse()
    return SettingsResponse.model_validate(record)


@router.post("/settings", response_model=SaveResponse)
async def save_settings(
    request: SettingsRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    record, created = raise_result(await CurriculumEngine(db).save_settings(
        frequency=request.frequency,
        preferred_days=request.days(),
        reminder_time=request.reminder_time,
    ))
    if created:
        response.status_code = status.HTTP_201_CREATED
        return SaveResponse(id=str(record.id))
    return SaveResponse()


# =============================================================================
# Overview & today
# =============================================================================

@router.get("/overview", response_model=OverviewResponse)
async def get_overview(db: AsyncSession = Depends(get_db)):
    overview = await CurriculumEngine(db).overview()
    return OverviewResponse(
        progress=OverviewStats(
            total_passages=overview.progress.total_passages,
            completed_passages=overview.progress.completed_count,
            percent_complete=overview.progress.percent_complete,
            days_on_journey=overview.days_on_journey,
            day_number=overview.progress.day_number,
        ),
        current_phase=PhaseResponse.model_validate(overview.current_phase) if overview.current_phase else None,
        phases=[PhaseProgressResponse.model_validate(p) for p in overview.phases],
    )


@router.get("/today", response_model=TodayResponse)
async def get_today(db: AsyncSession = Depends(get_db)):
    """Next unread passage in global reading order."""
    today = await CurriculumEngine(db).today()
    return TodayResponse.model_validate(today)


# =============================================================================
# Progress
# =============================================================================

@router.post("/progress/{passage_id}", response_model=SaveResponse)
async def update_progress(
    passage_id: str,
    request: ProgressRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    tracker = ProgressTracker(db)
    record, created = raise_result(
        await tracker.update(passage_id, request.status, request.time_spent_minutes)
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
    return SaveResponse(id=str(record.id))


@router.get("/progress", response_model=list[ProgressRecordResponse])
async def list_progress(db: AsyncSession = Depends(get_db)):
    records = await ProgressTracker(db).list_records()
    return [ProgressRecordResponse.model_validate(r) for r in records]


# =============================================================================
# Catalog
# =============================================================================

@router.get("/phases", response_model=list[PhaseWithTextsResponse])
async def list_phases(db: AsyncSession = Depends(get_db)):
    phases = await CurriculumEngine(db).phases()
    return [PhaseWithTextsResponse.model_validate(p) for p in phases]


@router.get("/texts/{text_id}/passages", response_model=list[TextPassageResponse])
async def list_text_passages(text_id: str, db: AsyncSession = Depends(get_db)):
    passages = raise_result(await CurriculumEngine(db).text_passages(text_id))
    return [TextPassageResponse.model_validate(p) for p in passages]


def _navigation(neighbors) -> NavigationResponse:
    return NavigationResponse(
        prev=NavPassage.model_validate(neighbors.prev) if neighbors.prev else None,
        next=NavPassage.model_validate(neighbors.next) if neighbors.next else None,
        position=neighbors.position,
        total=neighbors.total,
    )


@router.get("/passages/{passage_id}", response_model=PassageDetailResponse)
async def get_passage(passage_id: str, db: AsyncSession = Depends(get_db)):
    """Passage with its study guide, text, phase, progress and navigation."""
    context = raise_result(await CurriculumEngine(db).passage_detail(passage_id))
    neighbors = raise_result(await NavigationResolver(db).neighbors(passage_id))
    base = PassageContextResponse.model_validate(context)
    return PassageDetailResponse(**dict(base), navigation=_navigation(neighbors))


@router.get("/passages/{passage_id}/neighbors", response_model=NavigationResponse)
async def get_neighbors(passage_id: str, db: AsyncSession = Depends(get_db)):
    neighbors = raise_result(await NavigationResolver(db).neighbors(passage_id))
    return _navigation(neighbors)
