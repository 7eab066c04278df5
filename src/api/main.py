"""
Delivery note sync HTTP service.
Receives Shopify order webhooks and hands them to the note reconciler.
"""

import os
from functools import lru_cache
from typing import Optional

from fastapi import FastAPI, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from .schemas import HealthResponse, ErrorResponse
from ..core import config
from ..core.config import VERSION, debug_enabled, get_reconcile_settings, get_webhook_secret, validate_config
from ..core.reconcile import NoteReconciler, PayloadError
from ..core.store import IOrderStore, OrderStoreError, ShopifyOrderStore
from util.logging import logger

# Initialize the FastAPI application
app = FastAPI(
    title="Delivery Note Sync",
    version=VERSION,
    description="Turns delivery date directives in order notes into canonical order tags",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)


@lru_cache(maxsize=1)
def get_order_store() -> IOrderStore:
    """Shared Shopify client; holds a pooled requests session."""
    return ShopifyOrderStore(
        store=os.getenv("SHOPIFY_STORE", config.SHOPIFY_STORE),
        token=os.getenv("SHOPIFY_ADMIN_API_TOKEN", config.SHOPIFY_ADMIN_API_TOKEN),
        api_version=os.getenv("SHOPIFY_API_VERSION", config.SHOPIFY_API_VERSION),
        timeout=float(os.getenv("STORE_TIMEOUT_SEC", str(config.STORE_TIMEOUT_SEC))),
    )


def get_reconciler(store: IOrderStore = Depends(get_order_store)) -> NoteReconciler:
    return NoteReconciler(store=store, secret=get_webhook_secret(), settings=get_reconcile_settings())


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Report version and configuration problems."""
    issues = validate_config()
    return HealthResponse(
        status="healthy" if not issues else "degraded",
        version=VERSION,
        config_issues=issues
    )


@app.post("/webhooks/orders", response_class=PlainTextResponse)
async def order_webhook(
    request: Request,
    x_shopify_topic: Optional[str] = Header(None),
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    reconciler: NoteReconciler = Depends(get_reconciler),
):
    """
    Order create/update webhook.

    Answers 200 "ok" for every processed delivery, including no-ops, so the
    sender does not retry work that was deliberately skipped.
    """
    # Signatures cover the raw bytes, so the body is read before any parsing
    raw_body = await request.body()
    logger.log_webhook_received(x_shopify_topic, len(raw_body))

    try:
        result = await run_in_threadpool(reconciler.handle, raw_body, x_shopify_hmac_sha256, x_shopify_topic)
    except (PayloadError, OrderStoreError) as e:
        logger.log_reconcile_failure(getattr(e, "order_id", None), x_shopify_topic, e)
        return PlainTextResponse("error", status_code=500)

    if not result.accepted:
        return PlainTextResponse("Invalid HMAC", status_code=401)

    return PlainTextResponse("ok")


# Path used by earlier serverless deployments of the webhook
app.add_api_route("/api/clean-note", order_webhook, methods=["POST"], response_class=PlainTextResponse)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception on {request.url.path}: {type(exc).__name__}")
    error = ErrorResponse(error_type="INTERNAL_ERROR", message="Internal server error")
    content = error.model_dump(mode="json")
    if debug_enabled():
        content["details"] = {"debug": str(exc)}
    return JSONResponse(
        status_code=500,
        content=content,
    )
