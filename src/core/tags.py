"""
Tag set normalization for delivery dates.

Order tags travel as one comma-delimited string. The store does not enforce
uniqueness, so date-like tags are deduplicated here and each delivery date is
kept in exactly one canonical rendering.
"""

import re
from typing import Iterable, List, Optional

from .schema import DeliveryDate, TagFormat

DATE_TAG_PATTERNS = {
    TagFormat.DAY_FIRST: re.compile(r"^\d{2}-\d{2}-\d{4}$"),
    TagFormat.ISO: re.compile(r"^\d{4}-\d{2}-\d{2}$"),
}


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split a comma-delimited tag string, trimming entries and dropping empties."""
    if not raw:
        return []
    return [tag.strip() for tag in str(raw).split(",") if tag.strip()]


def serialize_tags(tags: Iterable[str]) -> str:
    return ", ".join(tags)


def is_date_tag(tag: str) -> bool:
    """True if tag has the shape of either canonical date format."""
    return any(pattern.match(tag) for pattern in DATE_TAG_PATTERNS.values())


def normalize_tags(existing: Iterable[str], target: DeliveryDate, preferred_format: TagFormat) -> List[str]:
    """
    Return tags carrying exactly one canonical rendering of target.

    Non-date tags pass through untouched and in order. Date tags for other
    dates survive once each. Renderings of target in the non-preferred format
    are dropped; the first preferred rendering keeps its position, otherwise
    it is appended at the end.
    """
    preferred = target.render(preferred_format)
    equivalents = target.renderings()

    result = []
    seen_dates = set()
    for tag in existing:
        if not is_date_tag(tag):
            result.append(tag)
            continue
        if tag in seen_dates:
            continue
        if tag in equivalents and tag != preferred:
            continue
        seen_dates.add(tag)
        result.append(tag)

    if preferred not in seen_dates:
        result.append(preferred)

    return result
