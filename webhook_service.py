# webhook_service.py
import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from config import Settings, settings as default_settings
from errors import LogicalFailure, MalformedResponse, TransportError, TransportTimeout
import schemas

logger = logging.getLogger("webhooks")


class WebhookService:
    """
    Client for the automation webhooks that back the dashboard. One request per
    call, a fixed timeout and no automatic retry; retrying is up to the operator.
    """
    def __init__(self, config: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.config = config or default_settings
        self.timeout = self.config.request_timeout_seconds
        self.http = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}

    # -------------------- internal helpers --------------------
    def _send(self, method: str, path: str, operation: str, **kwargs) -> requests.Response:
        url = self.config.url_for(path)
        started = time.monotonic()
        try:
            resp = self.http.request(method, url, headers=self.headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.warning("%s %s timed out after %.1fs", method, url, self.timeout)
            raise TransportTimeout(f"{operation} timed out", operation=operation) from e
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(str(e), operation=operation) from e

        elapsed = time.monotonic() - started
        logger.info("%s %s -> %s (%.2fs)", method, url, resp.status_code, elapsed)
        if not resp.ok:
            raise TransportError(resp.reason or "request failed", status_code=resp.status_code, operation=operation)
        return resp

    def _decode_json(self, resp: requests.Response, operation: str, allow_empty: bool = False) -> Any:
        """
        Strict body decoding. Returns None for a blank body only when allow_empty is set.
        """
        content_type = resp.headers.get("content-type") or ""
        if "application/json" not in content_type:
            raise MalformedResponse("non_json", operation=operation)
        text = resp.text
        if not text or not text.strip():
            if allow_empty:
                return None
            raise MalformedResponse("empty", operation=operation)
        try:
            return json.loads(text)
        except ValueError as e:
            logger.error("JSON parse error for %s: %s; body=%r", operation, e, text[:500])
            raise MalformedResponse("invalid_json", operation=operation) from e

    # -------------------- reads --------------------
    def get_orders(self, date_range: Optional[schemas.DateRange] = None) -> Any:
        params = date_range.as_query() if date_range else {}
        resp = self._send("GET", self.config.orders_list_path, "orders", params=params)
        return self._decode_json(resp, "orders")

    def get_order_details(self, order_id: str) -> Any:
        resp = self._send("POST", self.config.order_details_path, "order details", json={"orderId": order_id})
        return self._decode_json(resp, "order details")

    def get_orders_summary(self, date_range: Optional[schemas.DateRange] = None) -> Any:
        params = date_range.as_query() if date_range else {}
        resp = self._send("GET", self.config.orders_summary_path, "summary", params=params)
        return self._decode_json(resp, "summary")

    def get_products(self) -> Any:
        # A blank products body means the catalogue is empty, not a failure.
        resp = self._send("GET", self.config.products_list_path, "products")
        return self._decode_json(resp, "products", allow_empty=True)

    # -------------------- mutations --------------------
    def fulfill_order(self, order_id: str) -> None:
        # Any 2xx is a confirmed fulfillment; the body is not inspected.
        self._send("POST", self.config.fulfill_order_path, "fulfill", json={"order_id": order_id})

    def cancel_order(self, order_id: str) -> Dict[str, Any]:
        resp = self._send("POST", self.config.cancel_order_path, "cancel", json={"orderId": order_id})
        data = self._decode_json(resp, "cancel")
        if not isinstance(data, dict) or data.get("success") is not True:
            message = data.get("message") if isinstance(data, dict) else None
            raise LogicalFailure(message or "cancel was not confirmed", operation="cancel")
        return data

    def update_product(self, update: schemas.ProductUpdate) -> Any:
        resp = self._send("POST", self.config.update_product_path, "product update", json=update.model_dump())
        return self._decode_json(resp, "product update")
