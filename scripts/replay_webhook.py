#!/usr/bin/env python3
"""
Replay an order webhook against a running delivery note sync instance.

Signs a JSON payload file with the shared webhook secret and posts it with the
same headers Shopify sends. Useful for checking a deployment end to end.
"""

import argparse
import os
import sys
from pathlib import Path

import requests
from dotenv import load_dotenv

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.auth import compute_signature
from util.logging import audit_event


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Sign and replay an order webhook payload")
    parser.add_argument("payload", help="Path to a JSON order payload")
    parser.add_argument(
        "--url",
        default="http://localhost:8000/webhooks/orders",
        help="Webhook endpoint (default: http://localhost:8000/webhooks/orders)"
    )
    parser.add_argument(
        "--topic",
        default="orders/create",
        choices=["orders/create", "orders/updated"],
        help="Value for the X-Shopify-Topic header"
    )
    parser.add_argument(
        "--secret",
        default=None,
        help="Webhook secret (default: SHOPIFY_WEBHOOK_SECRET)"
    )
    parser.add_argument(
        "--print-signature",
        action="store_true",
        help="Only print the signature for the payload, do not send it"
    )

    args = parser.parse_args()

    secret = args.secret or os.getenv("SHOPIFY_WEBHOOK_SECRET")
    if not secret:
        print("ERROR: no webhook secret given; pass --secret or set SHOPIFY_WEBHOOK_SECRET")
        sys.exit(1)

    payload_path = Path(args.payload)
    if not payload_path.is_file():
        print(f"ERROR: payload file not found: {payload_path}")
        sys.exit(1)

    # Sign the file bytes exactly as they will be sent
    raw_body = payload_path.read_bytes()
    signature = compute_signature(raw_body, secret)

    if args.print_signature:
        print(signature)
        return

    try:
        response = requests.post(
            args.url,
            data=raw_body,
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Topic": args.topic,
                "X-Shopify-Hmac-Sha256": signature,
            },
            timeout=30,
        )
    except requests.RequestException as e:
        print(f"ERROR: request failed: {e}")
        sys.exit(1)

    audit_event(
        "webhook.replayed",
        {"url": args.url, "topic": args.topic, "status_code": response.status_code},
        {"payload_file": str(payload_path), "signature": signature},
    )
    print(f"{response.status_code} {response.text}")
    sys.exit(0 if response.ok else 1)


if __name__ == "__main__":
    main()
