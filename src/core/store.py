"""
Order store collaborators.

The reconciler only needs two operations: read the current tags/note of an order
and write them back. ShopifyOrderStore talks to the Shopify Admin REST API;
InMemoryOrderStore backs tests and local replays.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union

import requests

from .schema import OrderRecord
from util.logging import logger

OrderId = Union[int, str]


class OrderStoreError(Exception):
    """Raised when the order store answers with a non-success status or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None, order_id: Optional[OrderId] = None):
        super().__init__(message)
        self.status_code = status_code
        self.order_id = order_id


class IOrderStore(ABC):
    """Abstract interface for order storage operations."""

    @abstractmethod
    def fetch_order(self, order_id: OrderId) -> OrderRecord:
        """Return the current tags and note of an order. Never cached."""
        pass

    @abstractmethod
    def update_order(self, order_id: OrderId, tags: Optional[str] = None, note: Optional[str] = None) -> None:
        """Partially update an order. Fields left as None are not sent."""
        pass


class ShopifyOrderStore(IOrderStore):
    """Order store backed by the Shopify Admin REST API."""

    FETCH_FIELDS = "id,tags,note,created_at"

    def __init__(self, store: str, token: str, api_version: str = "2025-07",
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = f"https://{store}.myshopify.com/admin/api/{api_version}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": token or "",
        })

    def _order_url(self, order_id: OrderId) -> str:
        return f"{self.base_url}/orders/{order_id}.json"

    def _request(self, method: str, order_id: OrderId, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, self._order_url(order_id), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.log_store_call(method, order_id, status="failed")
            raise OrderStoreError(f"{method} /orders/{order_id} failed: {e}", order_id=order_id) from e

        if not response.ok:
            logger.log_store_call(method, order_id, response.status_code, status="failed")
            body = (response.text or "")[:200]
            raise OrderStoreError(
                f"{method} /orders/{order_id} failed: {response.status_code} {body}",
                status_code=response.status_code,
                order_id=order_id,
            )

        logger.log_store_call(method, order_id, response.status_code)
        return response

    def fetch_order(self, order_id: OrderId) -> OrderRecord:
        response = self._request("GET", order_id, params={"fields": self.FETCH_FIELDS})
        try:
            order = response.json()["order"]
        except (ValueError, KeyError, TypeError) as e:
            raise OrderStoreError(f"GET /orders/{order_id} returned an unexpected body", order_id=order_id) from e

        if not isinstance(order, dict):
            raise OrderStoreError(f"GET /orders/{order_id} returned no order", order_id=order_id)

        return OrderRecord(
            id=order.get("id", order_id),
            tags=order.get("tags") or "",
            note=order.get("note"),
            created_at=order.get("created_at"),
        )

    def update_order(self, order_id: OrderId, tags: Optional[str] = None, note: Optional[str] = None) -> None:
        order = {"id": order_id}
        if tags is not None:
            order["tags"] = tags
        if note is not None:
            order["note"] = note
        self._request("PUT", order_id, json={"order": order})


class InMemoryOrderStore(IOrderStore):
    """Dictionary-backed order store that records every update it receives."""

    def __init__(self, orders: Optional[List[OrderRecord]] = None):
        self._orders: Dict[str, OrderRecord] = {}
        self.updates: List[Dict] = []
        self.fetch_count = 0
        for order in orders or []:
            self.add(order)

    def add(self, order: OrderRecord) -> None:
        self._orders[str(order.id)] = order

    def fetch_order(self, order_id: OrderId) -> OrderRecord:
        self.fetch_count += 1
        order = self._orders.get(str(order_id))
        if order is None:
            raise OrderStoreError(f"Order {order_id} not found", status_code=404, order_id=order_id)
        return OrderRecord(id=order.id, tags=order.tags, note=order.note, created_at=order.created_at)

    def update_order(self, order_id: OrderId, tags: Optional[str] = None, note: Optional[str] = None) -> None:
        order = self._orders.get(str(order_id))
        if order is None:
            raise OrderStoreError(f"Order {order_id} not found", status_code=404, order_id=order_id)

        self.updates.append({"id": order_id, "tags": tags, "note": note})
        if tags is not None:
            order.tags = tags
        if note is not None:
            order.note = note
