"""Text Segmenter

Splits a source document into numbered reading units using a declarative
strategy. Strategies are plain data (regexes plus a few switches), so adding
a new source format means adding a preset or a manifest entry, not code.

Two input shapes are supported:
- ``lines``: one string, scanned line by line (Enchiridion, Meditations)
- ``pages``: an ordered sequence of page strings (multi-page HTML exports)

Segmentation is pure: the same input and strategy always give the same units.
"""
import html
import re
from dataclasses import dataclass, field, fields
from typing import Sequence

from ingest.exceptions import EmptySegmentationError, SectionNotFoundError
from ingest.numerals import to_arabic

_ORDINALS = {
    "FIRST": 1, "SECOND": 2, "THIRD": 3, "FOURTH": 4, "FIFTH": 5, "SIXTH": 6,
    "SEVENTH": 7, "EIGHTH": 8, "NINTH": 9, "TENTH": 10, "ELEVENTH": 11, "TWELFTH": 12,
}

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def strip_html(markup: str) -> str:
    """Drop tags, unescape entities and collapse whitespace to single spaces."""
    text = _TAG_RE.sub(" ", markup)
    text = html.unescape(text).replace("\xa0", " ")
    return _WS_RE.sub(" ", text).strip()


@dataclass(frozen=True, slots=True)
class SegmentationStrategy:
    """How to find the section, its unit headings and its end."""
    name: str
    start_marker: str
    heading_pattern: str  # must define a ``numeral`` group; optional ``rest``
    mode: str = "lines"  # lines | pages
    end_markers: tuple[str, ...] = ()
    group_pattern: str | None = None  # must define an ``ordinal`` group
    line_cleanup: tuple[str, ...] = ()
    fragment_cleanup: tuple[str, ...] = ()
    content_cleanup: tuple[str, ...] = ()  # may reference {numeral}
    noise_fragment: str | None = None
    heading_in_content: bool = False
    merge_repeated: bool = False
    sort_by_number: bool = False
    strip_html: bool = False
    label_template: str = "{numeral}"

    @classmethod
    def from_dict(cls, data: dict) -> "SegmentationStrategy":
        """Build from manifest data. A ``preset`` key starts from a built-in."""
        data = dict(data)
        preset = data.pop("preset", None)
        base = {}
        if preset:
            base = {f.name: getattr(get_strategy(preset), f.name) for f in fields(cls)}
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown strategy fields: {', '.join(sorted(unknown))}")
        for key, value in data.items():
            if isinstance(value, list):
                value = tuple(value)
            base[key] = value
        if base.get("mode", "lines") not in ("lines", "pages"):
            raise ValueError(f"Unknown segmentation mode: {base['mode']!r}")
        return cls(**base)


@dataclass(frozen=True, slots=True)
class Unit:
    """One segmented reading unit."""
    sequence: int  # 1-based position within its group (or the whole text)
    number: int
    numeral: str
    group: int | None
    label: str
    content: str


@dataclass(slots=True)
class _Draft:
    numeral: str
    number: int
    group: int | None
    parts: list[str] = field(default_factory=list)


PRESETS: dict[str, SegmentationStrategy] = {
    "enchiridion": SegmentationStrategy(
        name="enchiridion",
        start_marker=r"^THE ENCHIRIDION$",
        end_markers=(r"^Footnotes$",),
        heading_pattern=r"^(?P<numeral>[IVXLCDM]+)$",
        line_cleanup=(r"\[\d+\]",),
        label_template="Chapter {numeral}",
    ),
    "meditations": SegmentationStrategy(
        name="meditations",
        start_marker=r"^THE (?:" + "|".join(_ORDINALS) + r") BOOK$",
        end_markers=(r"^APPENDIX$", r"^GLOSSARY$", r"\*\*\* END OF"),
        group_pattern=r"^THE (?P<ordinal>" + "|".join(_ORDINALS) + r") BOOK$",
        heading_pattern=r"^(?P<numeral>[IVXLC]+)\.\s+(?P<rest>.*)$",
        heading_in_content=True,
        label_template="Book {group}, Passage {numeral}",
    ),
    "letters": SegmentationStrategy(
        name="letters",
        mode="pages",
        start_marker=r"^LETTERS$",
        end_markers=(r"^NOTES", r"^APPENDIX"),
        heading_pattern=r"LETTER (?P<numeral>[IVXLC]+)\b",
        fragment_cleanup=(r"^Page \d+\s*",),
        content_cleanup=(r"^.*?LETTER {numeral}\s*", r"(?m)\s+\d+$"),
        noise_fragment=r"\d*",
        merge_repeated=True,
        sort_by_number=True,
        strip_html=True,
        label_template="Letter {numeral}",
    ),
}


def get_strategy(name: str) -> SegmentationStrategy:
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown segmentation strategy: {name!r}") from None


def _group_number(ordinal: str) -> int:
    value = ordinal.strip().upper()
    if value in _ORDINALS:
        return _ORDINALS[value]
    if value.isdigit():
        return int(value)
    return to_arabic(value)


class _Scanner:
    """Shared state machine for both input shapes."""

    __slots__ = ("strategy", "started", "drafts", "current", "group", "_by_numeral",
                 "_start", "_ends", "_heading", "_group", "_cleanup")

    def __init__(self, strategy: SegmentationStrategy):
        self.strategy = strategy
        self.started = False
        self.drafts: list[_Draft] = []
        self.current: _Draft | None = None
        self.group: int | None = None
        self._by_numeral: dict[tuple[int | None, str], _Draft] = {}
        self._start = re.compile(strategy.start_marker)
        self._ends = [re.compile(p) for p in strategy.end_markers]
        self._heading = re.compile(strategy.heading_pattern)
        self._group = re.compile(strategy.group_pattern) if strategy.group_pattern else None
        self._cleanup = [re.compile(p) for p in strategy.line_cleanup]

    def is_end(self, text: str) -> bool:
        return self.started and any(p.search(text) for p in self._ends)

    def try_group(self, text: str) -> bool:
        if self._group is None:
            return False
        m = self._group.search(text)
        if not m:
            return False
        self.current = None
        self.group = _group_number(m.group("ordinal"))
        return True

    def try_start(self, text: str) -> bool:
        """Returns True when ``text`` is consumed as the start marker."""
        if self.started or not self._start.search(text):
            return False
        self.started = True
        # A start marker that is also a group heading opens the first group
        self.try_group(text)
        return True

    def heading(self, text: str):
        cleaned = text
        for p in self._cleanup:
            cleaned = p.sub("", cleaned)
        return self._heading.search(cleaned.strip())

    def open_unit(self, numeral: str) -> _Draft:
        number = to_arabic(numeral)
        key = (self.group, numeral)
        if self.strategy.merge_repeated and key in self._by_numeral:
            self.current = self._by_numeral[key]
            return self.current
        self.current = _Draft(numeral=numeral, number=number, group=self.group)
        self.drafts.append(self.current)
        self._by_numeral[key] = self.current
        return self.current


def _scan_lines(raw: str, scanner: _Scanner) -> None:
    heading_in_content = scanner.strategy.heading_in_content
    for raw_line in raw.splitlines():
        line = raw_line.strip()

        if scanner.try_start(line):
            continue
        if not scanner.started:
            continue
        if scanner.is_end(line):
            break
        if scanner.try_group(line):
            continue

        m = scanner.heading(line)
        if m:
            draft = scanner.open_unit(m.group("numeral"))
            rest = m.groupdict().get("rest")
            if heading_in_content and rest:
                draft.parts.append(rest)
            continue

        if scanner.current is not None:
            scanner.current.parts.append(raw_line)


def _scan_pages(pages: Sequence[str], scanner: _Scanner) -> None:
    strategy = scanner.strategy
    fragment_cleanup = [re.compile(p) for p in strategy.fragment_cleanup]
    noise = re.compile(strategy.noise_fragment) if strategy.noise_fragment else None

    for page in pages:
        text = strip_html(page) if strategy.strip_html else page.strip()
        for p in fragment_cleanup:
            text = p.sub("", text)
        text = text.strip()

        if scanner.try_start(text):
            continue
        if not scanner.started:
            continue
        if scanner.is_end(text):
            break
        if scanner.try_group(text):
            continue

        m = scanner.heading(text)
        if m:
            scanner.open_unit(m.group("numeral"))

        if scanner.current is None or (noise is not None and noise.fullmatch(text)):
            continue
        scanner.current.parts.append(text)


def segment(raw: str | Sequence[str], strategy: SegmentationStrategy) -> list[Unit]:
    """Split ``raw`` into ordered units.

    Raises:
        SectionNotFoundError: the start marker never appears
        EmptySegmentationError: the section yields no non-empty unit
        MalformedNumeralError: a heading carries a non-canonical numeral
    """
    scanner = _Scanner(strategy)
    if strategy.mode == "pages":
        pages = [raw] if isinstance(raw, str) else list(raw)
        _scan_pages(pages, scanner)
        joiner = "\n\n"
    else:
        text = raw if isinstance(raw, str) else "\n".join(raw)
        _scan_lines(text, scanner)
        joiner = "\n"

    if not scanner.started:
        raise SectionNotFoundError(strategy.name, strategy.start_marker)

    drafts = []
    for draft in scanner.drafts:
        content = joiner.join(draft.parts).strip()
        for pattern in strategy.content_cleanup:
            content = re.sub(pattern.replace("{numeral}", re.escape(draft.numeral)), "", content).strip()
        if content:
            drafts.append((draft, content))

    if strategy.sort_by_number:
        drafts.sort(key=lambda item: (item[0].group or 0, item[0].number))

    units = []
    positions: dict[int | None, int] = {}
    for draft, content in drafts:
        sequence = positions.get(draft.group, 0) + 1
        positions[draft.group] = sequence
        label = strategy.label_template.format(
            numeral=draft.numeral,
            number=draft.number,
            group=draft.group if draft.group is not None else "",
            sequence=sequence,
        )
        units.append(Unit(
            sequence=sequence,
            number=draft.number,
            numeral=draft.numeral,
            group=draft.group,
            label=label,
            content=content,
        ))

    if not units:
        raise EmptySegmentationError(strategy.name)
    return units
