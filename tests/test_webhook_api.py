"""
Webhook API tests - status codes and end-to-end handling through FastAPI.
"""

import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from src.api.main import app, get_order_store, get_reconciler
from src.core.auth import compute_signature
from src.core.config import ReconcileSettings
from src.core.reconcile import NoteReconciler
from src.core.schema import OrderRecord
from src.core.store import InMemoryOrderStore

SECRET = "shpss_test_secret"
NOTE = "Leave at the door (Delivery Date: 26/08/2025)"


def _body(order_id=1001, note=NOTE, created_at=None) -> bytes:
    return json.dumps({
        "id": order_id,
        "note": note,
        "tags": "urgent",
        "created_at": created_at or datetime.now(timezone.utc).isoformat(),
    }).encode()


def _headers(body: bytes, topic="orders/create", signature=None):
    return {
        "Content-Type": "application/json",
        "X-Shopify-Topic": topic,
        "X-Shopify-Hmac-Sha256": signature or compute_signature(body, SECRET),
    }


@pytest.fixture
def store():
    return InMemoryOrderStore([OrderRecord(id=1001, tags="urgent", note=NOTE)])


@pytest.fixture
def client(store):
    app.dependency_overrides[get_reconciler] = lambda: NoteReconciler(
        store=store, secret=SECRET, settings=ReconcileSettings(window_seconds=60)
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestOrderWebhook:
    """Test status codes returned to the webhook sender."""

    def test_directive_is_reconciled(self, client, store):
        body = _body()
        response = client.post("/webhooks/orders", content=body, headers=_headers(body))

        assert response.status_code == 200
        assert response.text == "ok"
        assert store.updates == [{"id": 1001, "tags": "urgent, 26-08-2025", "note": "Leave at the door"}]

    def test_bad_signature_is_401(self, client, store):
        body = _body()
        response = client.post("/webhooks/orders", content=body, headers=_headers(body, signature="AAAA"))

        assert response.status_code == 401
        assert store.fetch_count == 0

    def test_missing_signature_is_401(self, client):
        body = _body()
        response = client.post(
            "/webhooks/orders", content=body,
            headers={"Content-Type": "application/json", "X-Shopify-Topic": "orders/create"},
        )
        assert response.status_code == 401

    def test_non_post_is_405(self, client):
        assert client.get("/webhooks/orders").status_code == 405
        assert client.put("/webhooks/orders", content=b"{}").status_code == 405

    def test_no_op_is_200(self, client, store):
        body = _body(note="Ring the bell twice")
        response = client.post("/webhooks/orders", content=body, headers=_headers(body))

        assert response.status_code == 200
        assert response.text == "ok"
        assert store.fetch_count == 0

    def test_stale_update_is_200_without_write(self, client, store):
        body = _body(created_at="2020-01-01T00:00:00Z")
        response = client.post("/webhooks/orders", content=body, headers=_headers(body, topic="orders/updated"))

        assert response.status_code == 200
        assert store.updates == []

    def test_malformed_payload_is_500(self, client):
        body = b'{"note": "missing id"}'
        response = client.post("/webhooks/orders", content=body, headers=_headers(body))

        assert response.status_code == 500
        assert response.text == "error"

    def test_store_failure_is_500(self, client):
        body = _body(order_id=4040)
        response = client.post("/webhooks/orders", content=body, headers=_headers(body))

        assert response.status_code == 500

    def test_legacy_path(self, client, store):
        body = _body()
        response = client.post("/api/clean-note", content=body, headers=_headers(body))

        assert response.status_code == 200
        assert len(store.updates) == 1

class TestEnvironmentConfiguredReconciler:
    """Test the reconciler dependency built from the process environment."""

    @pytest.fixture
    def env_client(self, store, monkeypatch):
        monkeypatch.setenv("SHOPIFY_WEBHOOK_SECRET", SECRET)
        monkeypatch.setenv("CLEAN_WINDOW_SECONDS", "60")
        monkeypatch.setenv("NOTE_SYNC_MODE", "apply")
        app.dependency_overrides[get_order_store] = lambda: store
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_bad_signature_is_401_despite_invalid_tag_format(self, env_client, store, monkeypatch):
        monkeypatch.setenv("DELIVERY_TAG_FORMAT", "DD/MM/YYYY")
        body = _body()

        response = env_client.post("/webhooks/orders", content=body, headers=_headers(body, signature="AAAA"))

        assert response.status_code == 401
        assert store.fetch_count == 0

    def test_invalid_configuration_does_not_write(self, env_client, store, monkeypatch):
        monkeypatch.setenv("DELIVERY_TAG_FORMAT", "DD/MM/YYYY")
        body = _body()

        response = env_client.post("/webhooks/orders", content=body, headers=_headers(body))

        assert response.status_code == 200
        assert store.fetch_count == 1
        assert store.updates == []

    def test_valid_configuration_writes(self, env_client, store, monkeypatch):
        monkeypatch.setenv("DELIVERY_TAG_FORMAT", "YYYY-MM-DD")
        body = _body()

        response = env_client.post("/webhooks/orders", content=body, headers=_headers(body))

        assert response.status_code == 200
        assert store.updates == [{"id": 1001, "tags": "urgent, 2025-08-26", "note": "Leave at the door"}]



class TestHealth:

    def test_healthy_when_configured(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_WEBHOOK_SECRET", SECRET)
        monkeypatch.setenv("SHOPIFY_STORE", "demo-shop")
        monkeypatch.setenv("SHOPIFY_ADMIN_API_TOKEN", "shpat_token")
        monkeypatch.setenv("NOTE_SYNC_MODE", "apply")
        monkeypatch.setenv("DELIVERY_TAG_FORMAT", "DD-MM-YYYY")
        monkeypatch.setenv("CLEAN_WINDOW_SECONDS", "60")

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["config_issues"] == []
        assert "version" in data

    def test_degraded_without_secret(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_WEBHOOK_SECRET", "")

        data = TestClient(app).get("/health").json()

        assert data["status"] == "degraded"
        assert any("SHOPIFY_WEBHOOK_SECRET" in issue for issue in data["config_issues"])
