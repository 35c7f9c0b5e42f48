"""Roman numeral codec used to detect and order structural headings."""
from ingest.exceptions import MalformedNumeralError

_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}

_ENCODE_TABLE = (
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
)

MAX_VALUE = 3999


def from_arabic(n: int) -> str:
    """Canonical Roman numeral for 1..3999."""
    if not isinstance(n, int) or isinstance(n, bool) or not 1 <= n <= MAX_VALUE:
        raise ValueError(f"Cannot encode {n!r} as a Roman numeral (1..{MAX_VALUE})")
    parts = []
    for value, symbol in _ENCODE_TABLE:
        count, n = divmod(n, value)
        parts.append(symbol * count)
    return "".join(parts)


def to_arabic(roman: str) -> int:
    """Parse a canonical Roman numeral.

    Scans left to right adding each digit; when a digit is larger than the one
    before it, the previous digit was subtractive, so twice its value is taken
    back. Non-canonical spellings ("IIII", "IL", "VX") are rejected by
    re-encoding the total and comparing.
    """
    if not roman:
        raise MalformedNumeralError(roman, "empty")

    total = 0
    prev = 0
    for ch in roman:
        value = _VALUES.get(ch)
        if value is None:
            raise MalformedNumeralError(roman, f"invalid character {ch!r}")
        total += value
        if prev and value > prev:
            total -= 2 * prev
        prev = value

    if not 1 <= total <= MAX_VALUE or from_arabic(total) != roman:
        raise MalformedNumeralError(roman, "not in canonical subtractive form")
    return total


def is_numeral(text: str) -> bool:
    try:
        to_arabic(text)
    except MalformedNumeralError:
        return False
    return True
