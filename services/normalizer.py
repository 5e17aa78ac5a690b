# services/normalizer.py
"""
Turns webhook payloads into canonical records.

The webhooks answer in several shapes (bare array, an object wrapping the
array under a known key, or a single bare record) and with either camelCase or
snake_case field names. extract_records() accepts exactly those shapes and
reports anything else as a schema mismatch instead of guessing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from errors import MalformedRecord, MalformedResponse
import schemas
from schemas import FulfillmentStatus

logger = logging.getLogger("normalizer")

ORDER_ID_FIELDS = ("orderNumber", "order_number", "order_id", "orderId")
PRODUCT_ID_FIELDS = ("variantId", "variant_id", "productId", "product_id")

DISPLAY_DATETIME_FORMAT = "%d/%m/%Y, %H:%M:%S"

_STATUS_ALIASES = {"canceled": "cancelled"}


# ---------------------------------------------------------------------------
# Tagged extraction result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ok:
    records: List[Any]


@dataclass(frozen=True)
class Err:
    error: MalformedResponse


ExtractResult = Union[Ok, Err]


def extract_records(
    payload: Any,
    container_keys: Sequence[str],
    id_fields: Sequence[str],
    operation: str = "records",
) -> ExtractResult:
    def mismatch(detail: str) -> Err:
        return Err(MalformedResponse("schema_mismatch", f"{operation}: {detail}", operation=operation))

    if isinstance(payload, list):
        return Ok(list(payload))
    if not isinstance(payload, dict):
        return mismatch(f"expected an array or object, got {type(payload).__name__}")

    for key in container_keys:
        if key in payload:
            value = payload[key]
            if isinstance(value, list):
                return Ok(list(value))
            return mismatch(f"'{key}' is not an array")

    if _first_present(payload, id_fields) is not None:
        return Ok([payload])

    # Accept an arbitrarily named wrapper only when it is unambiguous.
    array_keys = [k for k, v in payload.items() if isinstance(v, list)]
    if len(array_keys) == 1:
        return Ok(list(payload[array_keys[0]]))
    if not array_keys:
        return mismatch("no record array and no record identifier")
    return mismatch(f"ambiguous record arrays {sorted(array_keys)}")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _first_present(raw: Dict[str, Any], fields: Sequence[str]) -> Any:
    for name in fields:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def _as_id(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _plain_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_text(value: Any, default: Optional[str] = None) -> Optional[str]:
    """Scalar payload value as display text; nested objects are not text."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return _plain_number(value)
    raise MalformedRecord(f"expected a text value, got {type(value).__name__}")


def format_price(value: Any, symbol: str, empty: str = "0") -> str:
    if value is None or value == "" or value == 0:
        return f"{symbol}{empty}"
    return f"{symbol}{_plain_number(value)}"


def format_created_at(value: Any, now: Optional[datetime] = None) -> str:
    if value is None or value == "":
        return (now or datetime.now()).strftime(DISPLAY_DATETIME_FORMAT)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    return parsed.strftime(DISPLAY_DATETIME_FORMAT)


def parse_fulfillment_status(value: Any) -> Optional[FulfillmentStatus]:
    """None when the payload did not report a status; unknown values read as unfulfilled."""
    if value is None or value == "":
        return None
    text = str(value).strip().lower()
    text = _STATUS_ALIASES.get(text, text)
    try:
        return FulfillmentStatus(text)
    except ValueError:
        logger.debug("Unknown fulfillment status %r treated as unfulfilled", value)
        return FulfillmentStatus.UNFULFILLED


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def normalize_order(raw: Any, currency_symbol: str = "₹", now: Optional[datetime] = None) -> schemas.Order:
    if not isinstance(raw, dict):
        raise MalformedRecord(f"order payload is {type(raw).__name__}, not an object")
    order_number = _first_present(raw, ORDER_ID_FIELDS)
    if order_number is None:
        raise MalformedRecord("order payload has no order number")

    status = parse_fulfillment_status(_first_present(raw, ("fulfillmentStatus", "fulfillment_status")))
    try:
        return schemas.Order(
            order_number=_as_id(order_number),
            customer=_as_text(_first_present(raw, ("customerName", "customer_name")), "Unknown Customer"),
            total_price_display=format_price(_first_present(raw, ("totalPrice", "total_price")), currency_symbol),
            payment_type=_as_text(_first_present(raw, ("paymentType", "payment_type")), "unknown"),
            payment_status=_as_text(_first_present(raw, ("status", "paymentStatus", "payment_status")), "pending"),
            fulfillment_status=status or FulfillmentStatus.UNFULFILLED,
            fulfillment_reported=status is not None,
            created_at_display=format_created_at(_first_present(raw, ("createdAt", "created_at")), now),
        )
    except ValidationError as e:
        raise MalformedRecord(f"order {order_number!r} failed validation ({e.error_count()} errors)") from e


def normalize_orders(
    raw_records: Sequence[Any],
    currency_symbol: str = "₹",
    now: Optional[datetime] = None,
) -> Tuple[List[schemas.Order], int]:
    """
    Normalizes a snapshot. Malformed entries are dropped and counted; a repeated
    order number keeps its first position and the latest payload.
    """
    by_number: Dict[str, schemas.Order] = {}
    dropped = 0
    for raw in raw_records:
        try:
            order = normalize_order(raw, currency_symbol, now)
        except MalformedRecord as e:
            dropped += 1
            logger.warning("Dropped malformed order record (%d so far): %s", dropped, e.message)
            continue
        if order.order_number in by_number:
            logger.debug("Duplicate order number %s in snapshot, keeping latest", order.order_number)
        by_number[order.order_number] = order
    return list(by_number.values()), dropped


def normalize_order_details(payload: Any, currency_symbol: str = "₹") -> List[schemas.OrderDetails]:
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        items = [payload]
    else:
        raise MalformedResponse("schema_mismatch", "order details: expected an object or array", operation="order details")

    details = []
    for raw in items:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object order details entry: %r", raw)
            continue
        try:
            details.append(_details_record(raw, currency_symbol))
        except (MalformedRecord, ValidationError) as e:
            logger.error("Order details entry rejected: %s", e)
            raise MalformedResponse("schema_mismatch", f"order details: {e}", operation="order details") from e
    return details


def _details_record(raw: Dict[str, Any], currency_symbol: str) -> schemas.OrderDetails:
    order_number = _first_present(raw, ("order_number", "orderNumber"))
    order_id = _first_present(raw, ("order_id", "orderId"))
    status = parse_fulfillment_status(_first_present(raw, ("fulfillment_status", "fulfillmentStatus")))
    created_at = _first_present(raw, ("created_at", "createdAt"))
    return schemas.OrderDetails(
        order_number=_as_id(order_number) if order_number is not None else None,
        order_id=_as_id(order_id) if order_id is not None else None,
        total_price_display=format_price(_first_present(raw, ("total_price", "totalPrice")), currency_symbol),
        product_name=_as_text(_first_present(raw, ("product_name", "productName"))),
        product_sku=_as_text(_first_present(raw, ("product_sku", "productSku"))),
        quantity=_as_int(_first_present(raw, ("quantity",)), 1),
        fulfillment_status=status or FulfillmentStatus.UNFULFILLED,
        created_at_display=format_created_at(created_at) if created_at is not None else None,
        customer_name=_as_text(_first_present(raw, ("customer_name", "customerName"))),
        contact_email=_as_text(_first_present(raw, ("contact_email", "customerEmail", "customer_email"))),
        customer_phone=_as_text(_first_present(raw, ("customer_phone", "customerPhone"))),
        customer_address=_as_text(_first_present(raw, ("customer_address", "customerAddress"))),
        city=_as_text(_first_present(raw, ("city",))),
        pincode=_as_id(raw["pincode"]) if raw.get("pincode") not in (None, "") else None,
    )


def normalize_summary(payload: Any) -> schemas.OrderSummary:
    if not isinstance(payload, dict):
        raise MalformedResponse("schema_mismatch", "summary: expected an object", operation="summary")
    return schemas.OrderSummary(
        total_orders=_as_int(payload.get("totalOrders"), 0),
        total_revenue=_as_float(payload.get("totalRevenue"), 0),
        cod_confirmed=_as_int(payload.get("codConfirmed"), 0),
        prepaid_orders=_as_int(payload.get("prepaidOrders"), 0),
        cancelled=_as_int(payload.get("cancelled"), 0),
        fulfilled_orders=_as_int(payload.get("fulfilledOrders"), 0),
    )


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def normalize_product(raw: Any, currency_symbol: str = "₹") -> schemas.Product:
    if not isinstance(raw, dict):
        raise MalformedRecord(f"product payload is {type(raw).__name__}, not an object")
    if _first_present(raw, PRODUCT_ID_FIELDS) is None:
        raise MalformedRecord("product payload has neither a variant id nor a product id")

    def id_or_na(*names: str) -> str:
        value = _first_present(raw, names)
        return _as_id(value) if value is not None else "N/A"

    try:
        return schemas.Product(
            title=_as_text(raw.get("title"), "Unknown Product"),
            product_id=id_or_na("productId", "product_id"),
            variant_id=id_or_na("variantId", "variant_id"),
            sku=_as_text(_first_present(raw, ("sku",)), "N/A"),
            price_display=format_price(_first_present(raw, ("price",)), currency_symbol, empty="0.00"),
            inventory_item_id=id_or_na("inventoryItemId", "inventory_item_id"),
            inventory_quantity=_as_int(_first_present(raw, ("inventoryQuantity", "inventory_quantity")), 0),
            vendor=_as_text(raw.get("vendor"), "Unknown Vendor"),
        )
    except ValidationError as e:
        raise MalformedRecord(f"product failed validation ({e.error_count()} errors)") from e


def normalize_products(raw_records: Sequence[Any], currency_symbol: str = "₹") -> Tuple[List[schemas.Product], int]:
    products = []
    dropped = 0
    for raw in raw_records:
        try:
            products.append(normalize_product(raw, currency_symbol))
        except MalformedRecord as e:
            dropped += 1
            logger.warning("Dropped malformed product record (%d so far): %s", dropped, e.message)
    return products, dropped
