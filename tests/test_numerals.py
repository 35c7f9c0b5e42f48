import pytest

from ingest.exceptions import MalformedNumeralError, SegmentationError
from ingest.numerals import from_arabic, is_numeral, to_arabic


def test_round_trip_first_hundred():
    for n in range(1, 101):
        assert to_arabic(from_arabic(n)) == n


@pytest.mark.parametrize("roman,value", [
    ("I", 1), ("IV", 4), ("IX", 9), ("XIV", 14), ("XL", 40), ("LI", 51),
    ("XC", 90), ("CXXIV", 124), ("MCMXCIV", 1994), ("MMMCMXCIX", 3999),
])
def test_known_values(roman, value):
    assert to_arabic(roman) == value
    assert from_arabic(value) == roman


@pytest.mark.parametrize("bad", ["IIII", "ZZ", "IL", "VX", "IC", "XM", "VV", "", "iv", "I V"])
def test_malformed_numerals_rejected(bad):
    with pytest.raises(MalformedNumeralError):
        to_arabic(bad)


def test_malformed_numeral_is_a_segmentation_error():
    with pytest.raises(SegmentationError):
        to_arabic("IIII")


@pytest.mark.parametrize("n", [0, -1, 4000])
def test_from_arabic_out_of_range(n):
    with pytest.raises(ValueError):
        from_arabic(n)


def test_is_numeral():
    assert is_numeral("XII")
    assert not is_numeral("XIIII")
    assert not is_numeral("Footnotes")
