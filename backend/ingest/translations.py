"""Replacement translations for an already seeded text.

File format (JSON)::

    {"translation": "...", "chapters": [{"chapter": 1, "reference": "Chapter I", "content": "..."}]}

``chapter`` is the 1-based position of the passage within its text. Passage
ids and reading order are left as they are.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import commit, fetch_one
from core.errors import AppError, Err, Ok, Result
from core.logging import ingest_logger
from ingest.exceptions import SourceMissingError
from models import CurriculumPassage, CurriculumText

log = ingest_logger()


class TranslatedChapter(BaseModel):
    chapter: int = Field(ge=1)
    reference: str | None = None
    content: str = Field(min_length=1)


class TranslationFile(BaseModel):
    translation: str
    source: str | None = None
    chapters: list[TranslatedChapter]


@dataclass
class TranslationStats:
    updated: int = 0
    errors: list[str] = field(default_factory=list)


def load_translation(path: Path | str) -> TranslationFile:
    path = Path(path)
    if not path.exists():
        raise SourceMissingError(path)
    with open(path, encoding="utf-8") as f:
        return TranslationFile.model_validate(json.load(f))


async def apply_translation(
    session: AsyncSession, text_id: str, data: TranslationFile
) -> Result[TranslationStats, AppError]:
    match await fetch_one(session, CurriculumText, text_id, "Text"):
        case Err(e):
            return Err(e.with_context(origin="ingest.translations"))
        case Ok(text):
            pass

    text.description = data.translation
    passages = (await session.execute(
        select(CurriculumPassage)
        .where(CurriculumPassage.text_id == text_id)
        .order_by(CurriculumPassage.order_index)
    )).scalars().all()

    stats = TranslationStats()
    for chapter in data.chapters:
        if chapter.chapter > len(passages):
            stats.errors.append(f"chapter {chapter.chapter}: text {text_id} has {len(passages)} passages")
            log.warning("translation_chapter_missing", text_id=text_id, chapter=chapter.chapter)
            continue
        passage = passages[chapter.chapter - 1]
        passage.content = chapter.content
        passage.translation = data.translation
        stats.updated += 1

    match await commit(session):
        case Err(e):
            return Err(e)

    log.info("translation_applied", text_id=text_id, updated=stats.updated, errors=len(stats.errors))
    return Ok(stats)
