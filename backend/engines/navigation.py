"""Navigation Resolver

Previous/next passage within the current passage's text. Navigation is
text-scoped, unlike the catalog-wide "today" pointer, and ignores completion
status. Nothing here mutates state.
"""
from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import fetch_one
from core.errors import AppError, Err, Ok, Result, not_found
from models import CurriculumPassage


@dataclass(frozen=True, slots=True)
class Neighbors:
    prev: CurriculumPassage | None
    next: CurriculumPassage | None
    position: int  # 1-based within the text
    total: int


def neighbors(ordered_passages: Sequence, passage_id: str) -> Result[Neighbors, AppError]:
    """Adjacent entries of ``passage_id`` in an already ordered list."""
    ids = [p.id for p in ordered_passages]
    try:
        index = ids.index(passage_id)
    except ValueError:
        return not_found("Passage", passage_id, origin="engine.navigation")
    return Ok(Neighbors(
        prev=ordered_passages[index - 1] if index > 0 else None,
        next=ordered_passages[index + 1] if index + 1 < len(ordered_passages) else None,
        position=index + 1,
        total=len(ordered_passages),
    ))


class NavigationResolver:
    __slots__ = ("session",)

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _text_passages(self, text_id: str) -> list[CurriculumPassage]:
        result = await self.session.execute(
            select(CurriculumPassage)
            .where(CurriculumPassage.text_id == text_id)
            .order_by(CurriculumPassage.order_index)
        )
        return list(result.scalars().all())

    async def neighbors(self, passage_id: str) -> Result[Neighbors, AppError]:
        match await fetch_one(self.session, CurriculumPassage, passage_id, "Passage"):
            case Err(e):
                return Err(e.with_context(origin="engine.navigation"))
            case Ok(passage):
                ordered = await self._text_passages(passage.text_id)
                return neighbors(ordered, passage_id)

    async def position(self, passage_id: str) -> Result[tuple[int, int], AppError]:
        """(position, total) of the passage within its text."""
        return (await self.neighbors(passage_id)).map(lambda n: (n.position, n.total))
