"""Exceptions raised while reading and segmenting source documents.

Each class carries the ``ErrorCode`` it maps to, which is what
``SourceErrorMapper`` reports when a build issue crosses into the API/CLI.
"""
from core.errors import ErrorCode


class IngestError(Exception):
    code = ErrorCode.E6000_SOURCE_GENERIC


class SegmentationError(IngestError):
    """Base for failures of a single segmentation call."""


class MalformedNumeralError(SegmentationError, ValueError):
    """Input is not a canonical Roman numeral."""
    code = ErrorCode.E2030_MALFORMED_NUMERAL

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        msg = f"Malformed Roman numeral: {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class SectionNotFoundError(SegmentationError):
    """The strategy's section-start marker never appeared in the document."""
    code = ErrorCode.E6020_SECTION_NOT_FOUND

    def __init__(self, strategy: str, marker: str):
        self.strategy = strategy
        self.marker = marker
        super().__init__(f"Section start marker {marker!r} not found ({strategy} strategy)")


class EmptySegmentationError(SegmentationError):
    """The section was found but produced no units."""
    code = ErrorCode.E6021_EMPTY_SEGMENTATION

    def __init__(self, strategy: str):
        self.strategy = strategy
        super().__init__(f"Segmentation produced no units ({strategy} strategy)")


class SourceMissingError(IngestError):
    code = ErrorCode.E6001_SOURCE_NOT_FOUND

    def __init__(self, path):
        self.path = path
        super().__init__(f"Source document not found: {path}")


class CatalogBuildError(IngestError):
    """Raised by a strict build when any text could not be segmented."""
    code = ErrorCode.E6022_CATALOG_BUILD_FAILED

    def __init__(self, issues: list):
        self.issues = issues
        summary = "; ".join(f"{i.text_id}: {i.message}" for i in issues)
        super().__init__(f"Catalog build failed with {len(issues)} issue(s): {summary}")
