"""
Eligibility gate for automated note rewrites.

Creation events are always eligible. Update events are only eligible within a
short window after the order was created, so later manual edits are left alone.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


class EventKind(str, Enum):
    CREATE = "orders/create"
    UPDATE = "orders/updated"
    OTHER = "other"

    @classmethod
    def from_topic(cls, topic: Optional[str]) -> "EventKind":
        """Map a webhook topic header onto an event kind."""
        normalized = (topic or "").strip().lower()
        if normalized == cls.CREATE.value:
            return cls.CREATE
        if normalized == cls.UPDATE.value:
            return cls.UPDATE
        return cls.OTHER


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime. Naive values are UTC."""
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_eligible(event_kind: EventKind, created_at: Union[str, datetime, None], now: datetime, window_seconds: int) -> bool:
    """Decide whether an event may trigger an automated rewrite."""
    if event_kind == EventKind.CREATE:
        return True

    if event_kind != EventKind.UPDATE:
        return False

    created = parse_timestamp(created_at)
    if created is None:
        # Fail closed: without a creation time the window cannot be checked
        return False

    current = parse_timestamp(now)
    elapsed = (current - created).total_seconds()
    return 0 <= elapsed <= window_seconds
