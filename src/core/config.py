"""
Environment configuration for the delivery note sync service.
Values come from the process environment, optionally seeded from a .env file.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .schema import TagFormat
from util.logging import logger

load_dotenv()

# Webhook authentication
SHOPIFY_WEBHOOK_SECRET = os.getenv("SHOPIFY_WEBHOOK_SECRET", "")

# Order store (Shopify Admin REST API)
SHOPIFY_STORE = os.getenv("SHOPIFY_STORE", "")
SHOPIFY_ADMIN_API_TOKEN = os.getenv("SHOPIFY_ADMIN_API_TOKEN", "")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2025-07")
STORE_TIMEOUT_SEC = 10.0  # overridden by STORE_TIMEOUT_SEC at call time

# Reconciliation behaviour
CLEAN_WINDOW_SECONDS = 60  # overridden by CLEAN_WINDOW_SECONDS at call time
DELIVERY_TAG_FORMAT = os.getenv("DELIVERY_TAG_FORMAT", TagFormat.DAY_FIRST.value)
NOTE_SYNC_MODE = os.getenv("NOTE_SYNC_MODE", "apply")  # apply|propose

DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Version string
VERSION = "1.0.0"

SYNC_MODES = ["apply", "propose"]


@dataclass(frozen=True)
class ReconcileSettings:
    """Settings threaded into the reconciliation engine."""
    window_seconds: int = 60
    tag_format: TagFormat = TagFormat.DAY_FIRST
    mode: str = "apply"

    @property
    def dry_run(self) -> bool:
        return self.mode == "propose"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_webhook_secret() -> str:
    """Shared secret for webhook signatures, read at call time."""
    return os.getenv("SHOPIFY_WEBHOOK_SECRET", SHOPIFY_WEBHOOK_SECRET)


def normalize_sync_mode(value: str) -> str:
    """Lower-cased, trimmed NOTE_SYNC_MODE value."""
    return (value or "").strip().lower()


def get_reconcile_settings() -> ReconcileSettings:
    """
    Build reconcile settings from the current environment.

    Never raises. Any invalid value falls back to its default and switches the
    engine to propose mode, so a misconfigured deployment logs instead of writing.
    """
    fail_closed = False

    try:
        window_seconds = int(os.getenv("CLEAN_WINDOW_SECONDS", str(CLEAN_WINDOW_SECONDS)))
        if window_seconds < 0:
            raise ValueError(window_seconds)
    except ValueError:
        window_seconds = ReconcileSettings.window_seconds
        fail_closed = True

    try:
        tag_format = TagFormat.parse(os.getenv("DELIVERY_TAG_FORMAT", DELIVERY_TAG_FORMAT))
    except ValueError:
        tag_format = ReconcileSettings.tag_format
        fail_closed = True

    mode = normalize_sync_mode(os.getenv("NOTE_SYNC_MODE", NOTE_SYNC_MODE))
    if mode not in SYNC_MODES:
        fail_closed = True

    if fail_closed:
        logger.warning(f"Invalid reconcile configuration {validate_config()}; running in propose mode")
        mode = "propose"

    return ReconcileSettings(window_seconds=window_seconds, tag_format=tag_format, mode=mode)


def validate_config():
    """Validate service configuration and return any issues."""
    issues = []

    if not get_webhook_secret():
        issues.append("SHOPIFY_WEBHOOK_SECRET is not set; every webhook will be rejected")

    if not os.getenv("SHOPIFY_STORE", SHOPIFY_STORE):
        issues.append("SHOPIFY_STORE is not set")

    if not os.getenv("SHOPIFY_ADMIN_API_TOKEN", SHOPIFY_ADMIN_API_TOKEN):
        issues.append("SHOPIFY_ADMIN_API_TOKEN is not set")

    try:
        window = int(os.getenv("CLEAN_WINDOW_SECONDS", str(CLEAN_WINDOW_SECONDS)))
        if window < 0:
            issues.append("CLEAN_WINDOW_SECONDS must be >= 0")
    except ValueError:
        issues.append(f"Invalid CLEAN_WINDOW_SECONDS: {os.getenv('CLEAN_WINDOW_SECONDS')}")

    try:
        TagFormat.parse(os.getenv("DELIVERY_TAG_FORMAT", DELIVERY_TAG_FORMAT))
    except ValueError:
        issues.append(f"Invalid DELIVERY_TAG_FORMAT: {os.getenv('DELIVERY_TAG_FORMAT')}")

    mode = os.getenv("NOTE_SYNC_MODE", NOTE_SYNC_MODE)
    if normalize_sync_mode(mode) not in SYNC_MODES:
        issues.append(f"Invalid NOTE_SYNC_MODE: {mode}")

    return issues
