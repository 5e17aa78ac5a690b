# schemas.py
from __future__ import annotations

from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import date
from pydantic import BaseModel, Field, ConfigDict, model_validator

# =========================
# Base model configurations
# =========================

class RecordBase(BaseModel):
    """Base for canonical records built from webhook payloads and kept in the local cache."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

# ======================================================
# Fulfillment states
# ======================================================

class FulfillmentStatus(str, Enum):
    UNFULFILLED = "unfulfilled"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"
    RESTOCKED = "restocked"

    @property
    def is_processed(self) -> bool:
        return self is not FulfillmentStatus.UNFULFILLED


PROCESSED_STATUSES = frozenset(
    {FulfillmentStatus.FULFILLED, FulfillmentStatus.CANCELLED, FulfillmentStatus.RESTOCKED}
)

# --- Orders ---

class Order(RecordBase):
    order_number: str
    customer: str = "Unknown Customer"
    total_price_display: str = "0"
    payment_type: str = "unknown"
    payment_status: str = "pending"
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED
    created_at_display: str = ""
    # False when the webhook payload carried no fulfillment field at all.
    # Never written to the cache.
    fulfillment_reported: bool = Field(True, exclude=True)


class OrderDetails(RecordBase):
    order_number: Optional[str] = None
    order_id: Optional[str] = None
    total_price_display: str = "0"
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    quantity: int = 1
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED
    created_at_display: Optional[str] = None
    customer_name: Optional[str] = None
    contact_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None


class OrderSummary(RecordBase):
    total_orders: int = 0
    total_revenue: float = 0
    cod_confirmed: int = 0
    prepaid_orders: int = 0
    cancelled: int = 0
    fulfilled_orders: int = 0

# --- Products ---

class Product(RecordBase):
    title: str = "Unknown Product"
    product_id: str = "N/A"
    variant_id: str = "N/A"
    sku: str = "N/A"
    price_display: str = "0.00"
    inventory_item_id: str = "N/A"
    inventory_quantity: int = 0
    vendor: str = "Unknown Vendor"


class ProductUpdate(BaseModel):
    """Only the fields that changed are sent; everything else goes out as null."""
    variant_id: int
    price: Optional[float] = Field(None, ge=0)
    sku: Optional[str] = None
    inventory: Optional[int] = Field(None, ge=0)

    def has_changes(self) -> bool:
        return any(v is not None for v in (self.price, self.sku, self.inventory))

# --- Filters ---

class DateRange(BaseModel):
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _check_order(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    def as_query(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.start_date:
            params["startDate"] = self.start_date.isoformat()
        if self.end_date:
            params["endDate"] = self.end_date.isoformat()
        return params


class OrderFilter(BaseModel):
    search: str = ""
    status: str = "All Statuses"

# --- Batch actions ---

class BatchAction(str, Enum):
    FULFILL = "fulfill"
    CANCEL = "cancel"

    @property
    def target_status(self) -> FulfillmentStatus:
        if self is BatchAction.FULFILL:
            return FulfillmentStatus.FULFILLED
        return FulfillmentStatus.CANCELLED


class BatchItemResult(BaseModel):
    order_number: str
    success: bool
    status: Optional[FulfillmentStatus] = None
    error_kind: Optional[str] = None
    reason: Optional[str] = None


class BatchSummary(BaseModel):
    action: BatchAction
    results: List[BatchItemResult] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failures(self) -> Dict[str, str]:
        return {r.order_number: r.reason or "" for r in self.results if not r.success}

    def as_response(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "failures": self.failures,
            "results": [r.model_dump(mode="json") for r in self.results],
        }

# --- Request bodies ---

class SelectionToggle(BaseModel):
    order_number: str


class BatchRequest(BaseModel):
    # None means "whatever is currently selected"
    order_numbers: Optional[List[str]] = None
