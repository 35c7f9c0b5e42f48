"""Catalog persistence.

Writes a built catalog in one transaction:
1. Pre-load existing phase/text ids so appends skip what is already stored
2. Bulk insert with add_all
3. Renumber the catalog-wide passage order when an appended text sorts earlier
4. Recompute ``total_passages`` from the stored passages
5. Advance the persisted passage sequence counter
"""
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import commit, utcnow
from core.errors import AppError, Ok, Err, Result
from core.logging import ingest_logger
from ingest.catalog import Catalog
from models import (
    CatalogCounter,
    CurriculumDiscussion,
    CurriculumPassage,
    CurriculumPhase,
    CurriculumProgress,
    CurriculumText,
    ReadingJournal,
    StudyGuide,
)

log = ingest_logger()

PASSAGE_COUNTER = "passage"


@dataclass
class CatalogState:
    """What is already stored, used to build an append-only catalog.

    ``text_ids`` holds texts that have passages. Texts stored with none (their
    source was missing or failed to segment) are in ``empty_text_ids`` and get
    rebuilt on the next append.
    """
    phase_ids: set[str] = field(default_factory=set)
    text_ids: set[str] = field(default_factory=set)
    empty_text_ids: set[str] = field(default_factory=set)
    next_sequence: int = 1


@dataclass
class WriteStats:
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    phases_created: int = 0
    texts_created: int = 0
    texts_filled: int = 0
    passages_created: int = 0
    study_guides_created: int = 0
    passages_renumbered: int = 0
    next_sequence: int = 1

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "phases_created": self.phases_created,
            "texts_created": self.texts_created,
            "texts_filled": self.texts_filled,
            "passages_created": self.passages_created,
            "study_guides_created": self.study_guides_created,
            "passages_renumbered": self.passages_renumbered,
            "next_sequence": self.next_sequence,
        }


async def load_state(session: AsyncSession) -> CatalogState:
    phase_ids = set((await session.execute(select(CurriculumPhase.id))).scalars().all())
    counts = (await session.execute(
        select(CurriculumText.id, func.count(CurriculumPassage.id))
        .outerjoin(CurriculumPassage, CurriculumPassage.text_id == CurriculumText.id)
        .group_by(CurriculumText.id)
    )).all()
    text_ids = {text_id for text_id, n in counts if n}
    empty_text_ids = {text_id for text_id, n in counts if not n}
    counter = await session.get(CatalogCounter, PASSAGE_COUNTER)
    if counter is not None:
        next_sequence = counter.value
    else:
        # Catalogs stored without a counter: continue after the highest issued id
        ids = (await session.execute(select(CurriculumPassage.id))).scalars().all()
        next_sequence = max((int(i.rsplit("-", 1)[1]) for i in ids), default=0) + 1
    return CatalogState(
        phase_ids=phase_ids,
        text_ids=text_ids,
        empty_text_ids=empty_text_ids,
        next_sequence=next_sequence,
    )


class CatalogWriter:
    """Persists catalogs built by ``CatalogBuilder``."""

    __slots__ = ()

    async def write(self, session: AsyncSession, catalog: Catalog) -> Result[WriteStats, AppError]:
        stats = WriteStats()
        state = await load_state(session)

        new_phases = [p for p in catalog.phases if p.id not in state.phase_ids]
        session.add_all([
            CurriculumPhase(
                id=p.id,
                name=p.name,
                title=p.title,
                description=p.description,
                order_index=p.order_index,
                estimated_weeks=p.estimated_weeks,
                is_ongoing=p.is_ongoing,
            )
            for p in new_phases
        ])
        stats.phases_created = len(new_phases)

        rows = []
        for text in catalog.texts:
            if text.id in state.text_ids:
                log.info("text_exists_skipped", text_id=text.id)
                continue
            spec = text.spec
            if text.id in state.empty_text_ids:
                # Row kept from an earlier failed build; only passages are added
                if not text.passages:
                    log.info("text_still_empty", text_id=text.id)
                    continue
                stats.texts_filled += 1
                log.info("text_filled", text_id=text.id, passages=text.total_passages)
            else:
                rows.append(CurriculumText(
                    id=spec.id,
                    phase_id=spec.phase_id,
                    title=spec.title,
                    author=spec.author,
                    description=spec.description,
                    order_index=spec.order_index,
                    total_passages=text.total_passages,
                ))
                stats.texts_created += 1
            for p in text.passages:
                rows.append(CurriculumPassage(
                    id=p.id,
                    text_id=p.text_id,
                    session_number=p.session_number,
                    passage_number=p.passage_number,
                    reference=p.reference,
                    content=p.content,
                    translation=p.translation,
                    order_index=p.order_index,
                ))
                stats.passages_created += 1
                if p.study_guide:
                    rows.append(StudyGuide(passage_id=p.id, **p.study_guide))
                    stats.study_guides_created += 1
        session.add_all(rows)
        await session.flush()

        stats.passages_renumbered = await self.renumber(session)
        await self.refresh_totals(session)

        stats.next_sequence = max(state.next_sequence, catalog.next_sequence)
        counter = await session.get(CatalogCounter, PASSAGE_COUNTER)
        if counter is None:
            session.add(CatalogCounter(name=PASSAGE_COUNTER, value=stats.next_sequence))
        else:
            counter.value = stats.next_sequence

        match await commit(session):
            case Err(e):
                log.error("catalog_write_failed", code=e.code.name, error=e.message)
                return Err(e.with_context(origin="ingest.pipeline"))

        stats.completed_at = utcnow()
        log.info("catalog_written", **stats.to_dict())
        return Ok(stats)

    async def renumber(self, session: AsyncSession) -> int:
        """Restore the reading-order invariant across all stored passages.

        Identifiers never change; only ``order_index`` is rewritten.
        """
        result = await session.execute(
            select(CurriculumPassage.id, CurriculumPassage.order_index)
            .join(CurriculumText, CurriculumPassage.text_id == CurriculumText.id)
            .join(CurriculumPhase, CurriculumText.phase_id == CurriculumPhase.id)
            .order_by(
                CurriculumPhase.order_index,
                CurriculumText.order_index,
                CurriculumPassage.order_index,
                CurriculumPassage.id,
            )
        )
        changed = 0
        for position, (pid, current) in enumerate(result.all(), start=1):
            if current != position:
                await session.execute(
                    update(CurriculumPassage)
                    .where(CurriculumPassage.id == pid)
                    .values(order_index=position)
                )
                changed += 1
        if changed:
            log.info("passages_renumbered", count=changed)
        return changed

    async def refresh_totals(self, session: AsyncSession) -> None:
        counts = dict((await session.execute(
            select(CurriculumPassage.text_id, func.count(CurriculumPassage.id))
            .group_by(CurriculumPassage.text_id)
        )).all())
        text_ids = (await session.execute(select(CurriculumText.id))).scalars().all()
        for text_id in text_ids:
            await session.execute(
                update(CurriculumText)
                .where(CurriculumText.id == text_id)
                .values(total_passages=counts.get(text_id, 0))
            )

    async def clear(self, session: AsyncSession) -> Result[None, AppError]:
        """Remove the catalog and everything recorded against it."""
        for model in (
            CurriculumDiscussion,
            ReadingJournal,
            CurriculumProgress,
            StudyGuide,
            CurriculumPassage,
            CurriculumText,
            CurriculumPhase,
            CatalogCounter,
        ):
            await session.execute(delete(model))
        result = await commit(session)
        if result.is_ok():
            log.info("catalog_cleared")
        return result
