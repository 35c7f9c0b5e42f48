"""Source document loading.

The curriculum manifest (YAML) lists phases and their texts, and points each
text at a source document plus the segmentation strategy that reads it.
"""
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from core.logging import ingest_logger
from ingest.exceptions import SourceMissingError
from ingest.segmenter import SegmentationStrategy, get_strategy

log = ingest_logger()

_PAGE_RE = re.compile(r"^page_(\d+)\.html$")


@dataclass(slots=True)
class ManifestText:
    id: str
    title: str
    author: str
    order_index: int
    source: str
    strategy: SegmentationStrategy
    description: str | None = None
    translation: str | None = None
    study_guides: str | None = None


@dataclass(slots=True)
class ManifestPhase:
    id: str
    name: str
    title: str
    order_index: int
    description: str | None = None
    estimated_weeks: int | None = None
    is_ongoing: bool = False
    texts: list[ManifestText] = field(default_factory=list)


@dataclass(slots=True)
class CurriculumManifest:
    phases: list[ManifestPhase]
    path: Path | None = None

    def texts(self) -> list[tuple[ManifestPhase, ManifestText]]:
        return [(phase, text) for phase in self.phases for text in phase.texts]


def _parse_strategy(value) -> SegmentationStrategy:
    if isinstance(value, str):
        return get_strategy(value)
    if isinstance(value, dict):
        return SegmentationStrategy.from_dict(value)
    raise ValueError(f"Invalid strategy entry: {value!r}")


def parse_manifest(data: dict, path: Path | None = None) -> CurriculumManifest:
    phases = []
    for raw_phase in data.get("phases") or []:
        texts = [
            ManifestText(
                id=t["id"],
                title=t["title"],
                author=t["author"],
                order_index=int(t["order_index"]),
                source=t["source"],
                strategy=_parse_strategy(t["strategy"]),
                description=t.get("description"),
                translation=t.get("translation"),
                study_guides=t.get("study_guides"),
            )
            for t in raw_phase.get("texts") or []
        ]
        phases.append(ManifestPhase(
            id=raw_phase["id"],
            name=raw_phase["name"],
            title=raw_phase["title"],
            order_index=int(raw_phase["order_index"]),
            description=raw_phase.get("description"),
            estimated_weeks=raw_phase.get("estimated_weeks"),
            is_ongoing=bool(raw_phase.get("is_ongoing", False)),
            texts=texts,
        ))
    return CurriculumManifest(phases=phases, path=path)


def load_manifest(path: Path | str) -> CurriculumManifest:
    path = Path(path)
    if not path.exists():
        raise SourceMissingError(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    manifest = parse_manifest(data, path)
    log.debug("manifest_loaded", path=str(path), phases=len(manifest.phases))
    return manifest


def _page_number(path: Path) -> int:
    return int(_PAGE_RE.match(path.name).group(1))


def read_source(path: Path | str, strategy: SegmentationStrategy) -> str | list[str] | None:
    """Read a source in the shape ``strategy`` expects.

    Lines mode reads one UTF-8 file. Pages mode reads every ``page_<n>.html``
    in a directory, ordered by page number. Missing sources return ``None``.
    """
    path = Path(path)
    if not path.exists():
        log.warning("source_missing", path=str(path), strategy=strategy.name)
        return None

    if strategy.mode == "pages":
        if not path.is_dir():
            log.warning("source_missing", path=str(path), strategy=strategy.name, reason="not a directory")
            return None
        pages = sorted((p for p in path.iterdir() if _PAGE_RE.match(p.name)), key=_page_number)
        log.debug("pages_found", path=str(path), count=len(pages))
        return [p.read_text(encoding="utf-8") for p in pages]

    return path.read_text(encoding="utf-8")


def load_study_guides(path: Path | str | None) -> dict[str, dict]:
    """Study guides keyed by passage reference label (e.g. 'Chapter I')."""
    if path is None:
        return {}
    path = Path(path)
    if not path.exists():
        log.warning("study_guides_missing", path=str(path))
        return {}
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    guides = {}
    for reference, guide in data.items():
        guides[str(reference)] = {
            "key_points": list(guide.get("key_points") or []),
            "vocabulary": list(guide.get("vocabulary") or []),
            "reflection_questions": list(guide.get("reflection_questions") or []),
            "practical_exercise": guide.get("practical_exercise"),
            "related_passages": list(guide.get("related_passages") or []),
            "stoic_concepts": list(guide.get("stoic_concepts") or []),
        }
    return guides
