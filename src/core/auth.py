"""
Webhook signature verification.

Signatures are base64-encoded HMAC-SHA256 digests of the raw request body.
Verification must run on the bytes exactly as received, before any JSON parsing.
"""

import base64
import hashlib
import hmac
from typing import Optional, Union


def compute_signature(raw_body: bytes, secret: Union[str, bytes]) -> str:
    """Return the base64 HMAC-SHA256 digest of raw_body under secret."""
    key = secret.encode("utf-8") if isinstance(secret, str) else secret
    digest = hmac.new(key, raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(raw_body: bytes, provided_signature: Optional[str], secret: Optional[Union[str, bytes]]) -> bool:
    """
    Check a webhook signature in constant time.

    Returns False for a missing secret, a missing or non-ASCII signature, or any
    mismatch. Never raises on bad input.
    """
    if not secret or not provided_signature or raw_body is None:
        return False

    try:
        provided = provided_signature.strip().encode("ascii")
    except (AttributeError, UnicodeEncodeError):
        return False

    expected = compute_signature(raw_body, secret).encode("ascii")
    return hmac.compare_digest(expected, provided)
