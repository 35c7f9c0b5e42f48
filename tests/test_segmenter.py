import pytest

from ingest.exceptions import EmptySegmentationError, MalformedNumeralError, SectionNotFoundError
from ingest.segmenter import SegmentationStrategy, get_strategy, segment, strip_html

from conftest import ENCHIRIDION, MEDITATIONS, letter_pages


class TestEnchiridion:
    def test_chapters_between_start_and_footnotes(self):
        units = segment(ENCHIRIDION, get_strategy("enchiridion"))

        assert [u.label for u in units] == ["Chapter I", "Chapter II", "Chapter III"]
        assert [u.number for u in units] == [1, 2, 3]
        assert [u.sequence for u in units] == [1, 2, 3]
        assert units[0].content == (
            "There are things which are within our power,\n"
            "and there are things which are beyond our power."
        )

    def test_front_matter_is_discarded(self):
        units = segment(ENCHIRIDION, get_strategy("enchiridion"))
        assert all("Gutenberg" not in u.content for u in units)
        assert all("Contents" not in u.content for u in units)

    def test_terminal_marker_stops_segmentation(self):
        units = segment(ENCHIRIDION, get_strategy("enchiridion"))
        assert len(units) == 3
        assert "Not a chapter" not in units[-1].content
        assert "Footnotes" not in units[-1].content

    def test_footnote_reference_stripped_from_heading(self):
        units = segment(ENCHIRIDION, get_strategy("enchiridion"))
        assert units[1].numeral == "II"
        assert units[1].content.startswith("Remember that desire")

    def test_deterministic(self):
        strategy = get_strategy("enchiridion")
        assert segment(ENCHIRIDION, strategy) == segment(ENCHIRIDION, strategy)

    def test_heading_followed_by_heading_emits_no_empty_unit(self):
        raw = "THE ENCHIRIDION\nI\nII\nSecond chapter text.\nFootnotes\n"
        units = segment(raw, get_strategy("enchiridion"))
        assert [u.label for u in units] == ["Chapter II"]
        assert units[0].sequence == 1

    def test_missing_start_marker(self):
        with pytest.raises(SectionNotFoundError):
            segment("I\nSome text\n", get_strategy("enchiridion"))

    def test_section_without_units(self):
        with pytest.raises(EmptySegmentationError):
            segment("THE ENCHIRIDION\nJust prose.\nFootnotes\n", get_strategy("enchiridion"))

    def test_malformed_heading_numeral(self):
        with pytest.raises(MalformedNumeralError):
            segment("THE ENCHIRIDION\nI\nText\nIIII\nMore\n", get_strategy("enchiridion"))


class TestMeditations:
    def test_books_reset_passage_numbering(self):
        units = segment(MEDITATIONS, get_strategy("meditations"))

        assert [u.label for u in units] == [
            "Book 1, Passage I",
            "Book 1, Passage II",
            "Book 2, Passage I",
        ]
        assert [(u.group, u.sequence) for u in units] == [(1, 1), (1, 2), (2, 1)]

    def test_rest_of_heading_line_is_content(self):
        units = segment(MEDITATIONS, get_strategy("meditations"))
        assert units[0].content == "Of my grandfather Verus I have learned to be gentle and meek."
        assert units[1].content == "Of him that brought me up, not to be fondly addicted.\nMore of the second passage."
        assert units[2].content.endswith("I shall meet with the busy-body.")

    def test_stops_at_appendix(self):
        units = segment(MEDITATIONS, get_strategy("meditations"))
        assert all("Not a passage" not in u.content for u in units)


class TestLetters:
    def test_pages_reassembled_and_sorted(self):
        units = segment(letter_pages(), get_strategy("letters"))

        assert [u.label for u in units] == ["Letter I", "Letter II"]
        assert units[0].content == "Continue to act thus, my dear Lucilius & friend."

    def test_repeated_letter_continues_same_unit(self):
        units = segment(letter_pages(), get_strategy("letters"))
        second = units[1].content
        assert second.startswith("Second letter opening text here.")
        assert "continued on a later page" in second

    def test_notes_page_ends_section(self):
        units = segment(letter_pages(), get_strategy("letters"))
        assert all(u.numeral != "III" for u in units)

    def test_short_fragments_dropped(self):
        units = segment(letter_pages(), get_strategy("letters"))
        assert "12" not in units[0].content


def test_strip_html():
    assert strip_html("<p>A &amp; B</p>\n<p>C&nbsp;D</p>") == "A & B C D"


class TestStrategyFromDict:
    def test_inline_strategy(self):
        strategy = SegmentationStrategy.from_dict({
            "name": "discourses",
            "start_marker": "^BOOK ONE$",
            "end_markers": ["^THE END$"],
            "heading_pattern": r"^CHAPTER (?P<numeral>[IVXLC]+)$",
            "label_template": "Discourse {numeral}",
        })
        units = segment("BOOK ONE\nCHAPTER I\nOn things in our power.\nTHE END\n", strategy)

        assert strategy.end_markers == ("^THE END$",)
        assert [u.label for u in units] == ["Discourse I"]

    def test_preset_override(self):
        strategy = SegmentationStrategy.from_dict({"preset": "enchiridion", "end_markers": ["^Notes$"]})
        assert strategy.name == "enchiridion"
        assert strategy.end_markers == ("^Notes$",)
        assert strategy.label_template == "Chapter {numeral}"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            SegmentationStrategy.from_dict({"preset": "letters", "colour": "red"})

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            get_strategy("nope")


def test_short_closing_page_is_kept():
    pages = [
        "<p>LETTERS</p>",
        "<p>Page 2 LETTER I</p><p>Hold every hour in your grasp.</p>",
        "<p>Page 3</p><p>Farewell.</p>",
        "<p>Page 4</p><p>7</p>",
    ]
    units = segment(pages, get_strategy("letters"))

    assert units[0].content == "Hold every hour in your grasp.\n\nFarewell."
