"""
Structured logging for the delivery note sync service.
Webhook intake, reconciliation outcomes and order store calls all log through here.
"""

import logging
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['secret', 'token', 'signature', 'hmac', 'access_token', 'password']


class StructuredLogger:
    """Structured logger for webhook handling and order reconciliation."""

    def __init__(self, name: str = "delivery_note_sync"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_webhook_received(self, topic: str, body_size: int):
        """Log an inbound webhook before it is authenticated."""
        self.log_operation("webhook.received", "accepted", {"topic": topic, "body_size": body_size})

    def log_webhook_rejected(self, topic: str, reason: str):
        """Log a webhook that failed authentication. Never include signature material."""
        self.log_operation(
            "webhook.rejected", "unauthenticated",
            {"topic": topic, "reason": reason},
            level=logging.WARNING
        )

    def log_reconcile_outcome(self, order_id: Any, topic: str, outcome: str, details: Dict[str, Any] = None):
        """Log the terminal outcome of one reconciliation pass."""
        log_details = {"order_id": order_id, "topic": topic}
        if details:
            log_details.update(details)

        self.log_operation("reconcile", outcome, log_details)

    def log_reconcile_failure(self, order_id: Any, topic: str, error: Exception):
        """Log a reconciliation that failed with an exception."""
        log_details = {
            "order_id": order_id,
            "topic": topic,
            "error_type": type(error).__name__,
            "error": str(error)[:200]
        }
        self.log_operation("reconcile", "failed", log_details, level=logging.ERROR)

    def log_store_call(self, method: str, order_id: Any, status_code: int = None, status: str = "success"):
        """Log an outbound order store request."""
        log_details = {"method": method, "order_id": order_id}
        if status_code is not None:
            log_details["status_code"] = status_code

        level = logging.INFO if status == "success" else logging.ERROR
        self.log_operation(f"store.{method.lower()}", status, log_details, level=level)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)

# Global logger instance
logger = StructuredLogger()


def audit_event(event_type: str, identifiers: Dict[str, Any], payload: Dict[str, Any] = None, sensitive_fields: List[str] = None):
    """General audit event logging with payload redaction."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    log_details = identifiers.copy() if identifiers else {}

    if payload:
        log_details["payload"] = sanitize_payload(payload, sensitive_fields=sensitive_fields)

    logger.log_operation(event_type.replace(".", "_"), "audit", log_details)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k.lower() not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
