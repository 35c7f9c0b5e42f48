"""Curriculum Catalog Builder

Turns segmented source documents into the Phase → Text → Passage catalog.

Ordering invariant: passages are numbered in (phase order, text order,
position in text) order, so a catalog-wide ``order_index`` sort is the
reading order. Passage identifiers come from a running sequence
(``passage-001``...) that continues from ``start_sequence`` when appending.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from core.errors import AppError, SourceErrorMapper
from core.logging import ingest_logger
from ingest.exceptions import CatalogBuildError, SegmentationError, SourceMissingError
from ingest.segmenter import SegmentationStrategy, Unit, segment
from ingest.sources import CurriculumManifest, load_study_guides, read_source

log = ingest_logger()

_mapper = SourceErrorMapper("ingest.catalog")


def passage_id(sequence: int) -> str:
    return f"passage-{sequence:03d}"


@dataclass(frozen=True, slots=True)
class PhaseSpec:
    id: str
    name: str
    title: str
    order_index: int
    description: str | None = None
    estimated_weeks: int | None = None
    is_ongoing: bool = False


@dataclass(frozen=True, slots=True)
class TextSpec:
    id: str
    phase_id: str
    title: str
    author: str
    order_index: int
    description: str | None = None
    translation: str | None = None


@dataclass(slots=True)
class SourceDocument:
    """A text plus its raw content. ``content`` is None when the source is missing."""
    text: TextSpec
    content: str | list[str] | None
    strategy: SegmentationStrategy
    path: str | None = None
    study_guides: dict[str, dict] = field(default_factory=dict)


@dataclass(slots=True)
class PassageRecord:
    id: str
    text_id: str
    sequence: int
    session_number: int
    passage_number: int
    reference: str
    content: str
    translation: str | None
    order_index: int
    study_guide: dict | None = None


@dataclass(slots=True)
class TextRecord:
    spec: TextSpec
    passages: list[PassageRecord] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.spec.id

    @property
    def total_passages(self) -> int:
        return len(self.passages)


@dataclass(slots=True)
class BuildIssue:
    """A text that could not be segmented; it is kept with zero passages."""
    text_id: str
    error: AppError

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def code(self) -> str:
        return self.error.code.name


@dataclass(slots=True)
class Catalog:
    phases: list[PhaseSpec]
    texts: list[TextRecord]
    issues: list[BuildIssue]
    next_sequence: int

    @property
    def passages(self) -> list[PassageRecord]:
        return [p for t in self.texts for p in t.passages]

    def ordered_passages(self) -> list[PassageRecord]:
        return sorted(self.passages, key=lambda p: p.order_index)

    def text(self, text_id: str) -> TextRecord | None:
        return next((t for t in self.texts if t.id == text_id), None)


def _numbering(unit: Unit) -> tuple[int, int]:
    """(session_number, passage_number) for a unit."""
    if unit.group is not None:
        return unit.group, unit.sequence
    return unit.sequence, 1


class CatalogBuilder:
    """Builds a catalog from source documents in reading order."""

    __slots__ = ("phases", "start_sequence", "strict")

    def __init__(self, phases: Iterable[PhaseSpec], start_sequence: int = 1, strict: bool = False):
        if start_sequence < 1:
            raise ValueError("start_sequence must be >= 1")
        self.phases = {p.id: p for p in phases}
        self.start_sequence = start_sequence
        self.strict = strict

    def _sort_key(self, doc: SourceDocument) -> tuple[int, int, str]:
        phase = self.phases.get(doc.text.phase_id)
        if phase is None:
            raise ValueError(f"Text {doc.text.id!r} references unknown phase {doc.text.phase_id!r}")
        return phase.order_index, doc.text.order_index, doc.text.id

    def build(self, documents: Mapping[str, SourceDocument]) -> Catalog:
        ordered = sorted(documents.values(), key=self._sort_key)
        sequence = self.start_sequence
        texts: list[TextRecord] = []
        issues: list[BuildIssue] = []

        for doc in ordered:
            record = TextRecord(spec=doc.text)
            texts.append(record)

            if doc.content is None:
                error = _mapper.map_exception(SourceMissingError(doc.path or doc.text.id), text_id=doc.text.id)
                issues.append(BuildIssue(text_id=doc.text.id, error=error))
                continue

            try:
                units = segment(doc.content, doc.strategy)
            except SegmentationError as e:
                error = _mapper.map_exception(e, text_id=doc.text.id)
                issues.append(BuildIssue(text_id=doc.text.id, error=error))
                log.warning("segmentation_failed", text_id=doc.text.id, code=error.code.name, reason=str(e))
                continue

            for unit in units:
                session_number, passage_number = _numbering(unit)
                record.passages.append(PassageRecord(
                    id=passage_id(sequence),
                    text_id=doc.text.id,
                    sequence=sequence,
                    session_number=session_number,
                    passage_number=passage_number,
                    reference=unit.label,
                    content=unit.content,
                    translation=doc.text.translation,
                    order_index=sequence,
                    study_guide=doc.study_guides.get(unit.label),
                ))
                sequence += 1

            log.info("text_segmented", text_id=doc.text.id, passages=record.total_passages,
                     strategy=doc.strategy.name)

        if issues and self.strict:
            raise CatalogBuildError(issues)

        return Catalog(
            phases=sorted(self.phases.values(), key=lambda p: p.order_index),
            texts=texts,
            issues=issues,
            next_sequence=sequence,
        )


def catalog_from_manifest(
    manifest: CurriculumManifest,
    sources_dir: Path | str,
    *,
    skip_text_ids: Iterable[str] = (),
    start_sequence: int = 1,
    strict: bool = False,
) -> Catalog:
    """Read every manifest text (except ``skip_text_ids``) and build the catalog."""
    sources_dir = Path(sources_dir)
    guides_dir = manifest.path.parent if manifest.path else sources_dir
    skip = set(skip_text_ids)

    phases = [
        PhaseSpec(
            id=p.id,
            name=p.name,
            title=p.title,
            order_index=p.order_index,
            description=p.description,
            estimated_weeks=p.estimated_weeks,
            is_ongoing=p.is_ongoing,
        )
        for p in manifest.phases
    ]

    documents: dict[str, SourceDocument] = {}
    for phase, text in manifest.texts():
        if text.id in skip:
            continue
        path = sources_dir / text.source
        documents[text.id] = SourceDocument(
            text=TextSpec(
                id=text.id,
                phase_id=phase.id,
                title=text.title,
                author=text.author,
                order_index=text.order_index,
                description=text.description,
                translation=text.translation,
            ),
            content=read_source(path, text.strategy),
            strategy=text.strategy,
            path=str(path),
            study_guides=load_study_guides(guides_dir / text.study_guides) if text.study_guides else {},
        )

    return CatalogBuilder(phases, start_sequence=start_sequence, strict=strict).build(documents)
