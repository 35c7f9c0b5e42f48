"""Curriculum Ingestion Package

Reads the curriculum manifest and source documents, segments them into
passages and writes the catalog:
- numerals: Roman numeral codec for structural headings
- segmenter: strategy-driven unit segmentation (lines or HTML pages)
- catalog: ordered Phase → Text → Passage catalog with stable ids
- pipeline: transactional catalog writer
"""
from ingest.exceptions import (
    IngestError, SegmentationError, MalformedNumeralError,
    SectionNotFoundError, EmptySegmentationError, SourceMissingError, CatalogBuildError,
)
from ingest.numerals import to_arabic, from_arabic, is_numeral
from ingest.segmenter import SegmentationStrategy, Unit, segment, get_strategy, strip_html
from ingest.sources import CurriculumManifest, load_manifest, read_source, load_study_guides
from ingest.catalog import (
    PhaseSpec, TextSpec, SourceDocument, CatalogBuilder, Catalog, BuildIssue,
    catalog_from_manifest,
)
from ingest.pipeline import CatalogWriter, load_state

__all__ = [
    "IngestError", "SegmentationError", "MalformedNumeralError",
    "SectionNotFoundError", "EmptySegmentationError", "SourceMissingError", "CatalogBuildError",
    "to_arabic", "from_arabic", "is_numeral",
    "SegmentationStrategy", "Unit", "segment", "get_strategy", "strip_html",
    "CurriculumManifest", "load_manifest", "read_source", "load_study_guides",
    "PhaseSpec", "TextSpec", "SourceDocument", "CatalogBuilder", "Catalog", "BuildIssue",
    "catalog_from_manifest",
    "CatalogWriter", "load_state",
]
