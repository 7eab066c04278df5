"""
Delivery date directives embedded in order notes.

A directive looks like "(Delivery Date: 26/08/2025)" or "(Delivery Date: 2025-08-26)".
The label is matched case-insensitively and tolerates extra whitespace; dates use
"/" or "-" separators in day-month-year or year-month-day order.
"""

import re
from typing import List, Optional, Tuple

from .schema import DeliveryDate

_LABEL = r"\(\s*delivery\s*date\s*:\s*"
_SEP = r"\s*[/-]\s*"
_CLOSE = r"\s*\)"

_DAY_FIRST = re.compile(
    _LABEL + r"(?P<day>\d{1,2})" + _SEP + r"(?P<month>\d{1,2})" + _SEP + r"(?P<year>\d{4}|\d{2})" + _CLOSE,
    re.IGNORECASE,
)
_YEAR_FIRST = re.compile(
    _LABEL + r"(?P<year>\d{4})" + _SEP + r"(?P<month>\d{1,2})" + _SEP + r"(?P<day>\d{1,2})" + _CLOSE,
    re.IGNORECASE,
)

_BLOCK_BODY = (
    _LABEL
    + r"(?:\d{1,2}" + _SEP + r"\d{1,2}" + _SEP + r"(?:\d{4}|\d{2})"
    + r"|\d{4}" + _SEP + r"\d{1,2}" + _SEP + r"\d{1,2})"
    + _CLOSE
)
# A run of adjacent blocks, with the spaces hugging them, collapses to one space
_BLOCK_RUN = re.compile(r"(?:[ \t]*" + _BLOCK_BODY + r")+[ \t]*", re.IGNORECASE)

_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")

# Two-digit years expand into exactly this range; four-digit years must fall in it too
MIN_YEAR = 1970
MAX_YEAR = 2069


def expand_year(raw: str) -> int:
    """Expand a 2-digit year: 70-99 -> 19xx, 00-69 -> 20xx."""
    year = int(raw)
    if len(raw) == 2:
        return 1900 + year if year >= 70 else 2000 + year
    return year


def _to_date(match: re.Match) -> Optional[DeliveryDate]:
    year = expand_year(match.group("year"))
    month = int(match.group("month"))
    day = int(match.group("day"))
    if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
        return None
    return DeliveryDate(year=year, month=month, day=day)


def find_delivery_dates(text: Optional[str]) -> List[DeliveryDate]:
    """All well-shaped directive dates in order of appearance."""
    if not text:
        return []

    matches = list(_DAY_FIRST.finditer(text)) + list(_YEAR_FIRST.finditer(text))
    matches.sort(key=lambda m: m.start())

    dates = []
    for match in matches:
        date = _to_date(match)
        if date is not None:
            dates.append(date)
    return dates


def extract_delivery_date(text: Optional[str]) -> Optional[DeliveryDate]:
    """Return the date of the first directive in text, or None."""
    dates = find_delivery_dates(text)
    return dates[0] if dates else None


def strip_directives(text: Optional[str]) -> Tuple[str, bool]:
    """
    Remove every directive block from text.

    Each run of blocks is replaced with a single space, trailing spaces before
    line breaks are dropped, 3+ line breaks collapse to 2 and the result is
    trimmed. Returns (cleaned, changed) where changed compares trimmed input
    with the cleaned output.
    """
    if not text:
        return "", False

    original = str(text)
    cleaned = original
    # Removing a block can join its neighbours into a new one
    while _BLOCK_RUN.search(cleaned):
        cleaned = _BLOCK_RUN.sub(" ", cleaned)
    cleaned = _TRAILING_SPACE.sub("\n", cleaned)
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    cleaned = cleaned.strip()

    return cleaned, cleaned != original.strip()


def has_directive(text: Optional[str]) -> bool:
    """True if text contains at least one directive block, well-shaped or not."""
    return bool(text) and _BLOCK_RUN.search(text) is not None
