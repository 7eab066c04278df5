"""
Order note reconciliation.

Turns a "(Delivery Date: ...)" directive left in an order note into a canonical
date tag, then removes the directive from the note. The webhook body only
triggers the work: tags and note are always recomputed from a fresh read of the
order, and written back in a single update only when something changed.

There is no compare-and-swap at the store. Two passes racing on the same order
both compute the same result because stripping and tag normalization are
idempotent, so the second write is redundant rather than harmful.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from .auth import verify_signature
from .config import ReconcileSettings
from .directives import extract_delivery_date, has_directive, strip_directives
from .eligibility import EventKind, is_eligible
from .schema import DeliveryDate, OrderEvent
from .store import IOrderStore
from .tags import normalize_tags, parse_tags, serialize_tags
from util.logging import logger


class PayloadError(Exception):
    """Raised when an authenticated webhook body cannot be parsed as an order."""
    pass


class Outcome(str, Enum):
    REJECTED = "rejected"
    SKIPPED_INELIGIBLE = "skipped_ineligible"
    SKIPPED_NO_DIRECTIVE = "skipped_no_directive"
    UNCHANGED = "unchanged"
    PROPOSED = "proposed"
    UPDATED = "updated"


@dataclass
class ReconcileResult:
    """Terminal state of one reconciliation pass."""
    outcome: Outcome
    topic: Optional[str] = None
    order_id: Optional[Union[int, str]] = None
    delivery_date: Optional[DeliveryDate] = None
    note_changed: bool = False
    tags_changed: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def accepted(self) -> bool:
        return self.outcome != Outcome.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "outcome": self.outcome.value,
            "topic": self.topic,
            "order_id": self.order_id,
            "note_changed": self.note_changed,
            "tags_changed": self.tags_changed,
        }
        if self.delivery_date:
            data["delivery_date"] = self.delivery_date.isoformat()
        if self.details:
            data.update(self.details)
        return data


def parse_event(raw_body: bytes) -> OrderEvent:
    """Parse a webhook body into an OrderEvent."""
    try:
        return OrderEvent.model_validate_json(raw_body)
    except ValidationError as e:
        raise PayloadError(f"Webhook body is not a valid order: {e.error_count()} error(s)") from e


class NoteReconciler:
    """
    Runs one webhook through authentication, the eligibility gate, directive
    extraction and the fetch/compute/write cycle against the order store.
    """

    def __init__(self, store: IOrderStore, secret: str, settings: Optional[ReconcileSettings] = None):
        self.store = store
        self.secret = secret
        self.settings = settings or ReconcileSettings()

    def handle(self, raw_body: bytes, signature: Optional[str], topic: Optional[str],
               now: Optional[datetime] = None) -> ReconcileResult:
        """Authenticate and reconcile one webhook delivery."""
        if not verify_signature(raw_body, signature, self.secret):
            reason = "missing signature" if not signature else "signature mismatch"
            logger.log_webhook_rejected(topic, reason)
            return ReconcileResult(outcome=Outcome.REJECTED, topic=topic)

        event = parse_event(raw_body)
        return self.reconcile(event, topic, now=now)

    def reconcile(self, event: OrderEvent, topic: Optional[str], now: Optional[datetime] = None) -> ReconcileResult:
        """Reconcile an already authenticated order event."""
        now = now or datetime.now(timezone.utc)
        kind = EventKind.from_topic(topic)

        if not is_eligible(kind, event.created_at, now, self.settings.window_seconds):
            return self._finish(ReconcileResult(
                outcome=Outcome.SKIPPED_INELIGIBLE, topic=topic, order_id=event.id,
                details={"event_kind": kind.value},
            ))

        delivery_date = extract_delivery_date(event.note)
        if delivery_date is None:
            details = {}
            if has_directive(event.note):
                details["reason"] = "directive date out of range"
            return self._finish(ReconcileResult(
                outcome=Outcome.SKIPPED_NO_DIRECTIVE, topic=topic, order_id=event.id, details=details,
            ))

        # The event body may be stale; always work from the order as it is now
        current = self.store.fetch_order(event.id)

        cleaned_note, note_changed = strip_directives(current.note)
        current_tags = parse_tags(current.tags)
        next_tags = normalize_tags(current_tags, delivery_date, self.settings.tag_format)
        serialized = serialize_tags(next_tags)
        tags_changed = serialized != serialize_tags(current_tags)

        result = ReconcileResult(
            outcome=Outcome.UNCHANGED,
            topic=topic,
            order_id=event.id,
            delivery_date=delivery_date,
            note_changed=note_changed,
            tags_changed=tags_changed,
        )

        if not (note_changed or tags_changed):
            return self._finish(result)

        if self.settings.dry_run:
            result.outcome = Outcome.PROPOSED
            result.details["proposed_tags"] = serialized
            return self._finish(result)

        self.store.update_order(event.id, tags=serialized, note=cleaned_note)
        result.outcome = Outcome.UPDATED
        return self._finish(result)

    def _finish(self, result: ReconcileResult) -> ReconcileResult:
        outcome = result.to_dict()
        logger.log_reconcile_outcome(
            outcome.pop("order_id"), outcome.pop("topic"), outcome.pop("outcome"), outcome
        )
        return result
