# services/order_sync_runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from crud.date_range import get_date_range
from crud.local_store import LocalStore
from crud.overrides import OverrideStore
from crud.record_cache import RecordListCache
from errors import DashboardError
from services import sync_tracker
from services.normalizer import Err, ORDER_ID_FIELDS, extract_records, normalize_order_details, normalize_orders
from services.order_board import OrderBoard
from services.reconciliation import reconcile
from schemas import FulfillmentStatus, Order, OrderDetails
from webhook_service import WebhookService

logger = logging.getLogger("orders")

ORDERS_NAMESPACE = "orders"


@dataclass
class RefreshOutcome:
    orders: List[Order]
    has_loaded: bool
    dropped: int = 0
    override_writes: Dict[str, FulfillmentStatus] = field(default_factory=dict)
    deselected: List[str] = field(default_factory=list)
    error: Optional[DashboardError] = None

    @property
    def from_cache(self) -> bool:
        return self.error is not None


def order_cache(store: LocalStore) -> RecordListCache[Order]:
    return RecordListCache(store, ORDERS_NAMESPACE, Order)


def load_board(db: Session, board: OrderBoard) -> bool:
    """Hydrates the board from the cached list; returns the has-loaded flag."""
    cache = order_cache(LocalStore(db))
    board.hydrate(cache.load())
    return cache.has_loaded()


def refresh_orders(
    db: Session,
    board: OrderBoard,
    service: Optional[WebhookService] = None,
    config: Optional[Settings] = None,
) -> RefreshOutcome:
    """
    Fetch -> normalize -> reconcile -> persist. On any remote failure the board
    keeps the last known list and the error is returned for display.
    """
    config = config or default_settings
    service = service or WebhookService(config)
    store = LocalStore(db)
    overrides = OverrideStore(store)
    cache = order_cache(store)

    with board.exclusive():
        board.hydrate(cache.load())
        task_id = sync_tracker.add_task("orders", "Refresh orders")
        try:
            payload = service.get_orders(get_date_range(store))
            extracted = extract_records(payload, ("orders", "data"), ORDER_ID_FIELDS, operation="orders")
            if isinstance(extracted, Err):
                raise extracted.error
        except DashboardError as e:
            logger.error("Orders refresh failed (%s): %s; showing %d cached orders",
                         e.kind, e.message, len(board.orders))
            sync_tracker.finish_task(task_id, ok=False, note=e.user_message())
            return RefreshOutcome(orders=board.orders, has_loaded=cache.has_loaded(), error=e)

        snapshot, dropped = normalize_orders(extracted.records, config.currency_symbol)
        result = reconcile(snapshot, overrides.all(), board.orders, dropped=dropped)

        overrides.set_many(result.override_writes)
        cache.save(result.orders)
        deselected = board.replace_orders(result.orders)
        if deselected:
            logger.info("Deselected orders no longer eligible: %s", deselected)

        sync_tracker.finish_task(
            task_id, ok=True,
            note=f"Loaded {len(result.orders)} orders ({dropped} malformed dropped)",
        )
        logger.info("Orders refresh: %d orders, %d override writes, %d dropped",
                    len(result.orders), len(result.override_writes), dropped)
        return RefreshOutcome(
            orders=result.orders,
            has_loaded=True,
            dropped=dropped,
            override_writes=result.override_writes,
            deselected=deselected,
        )


def fetch_order_details(
    order_id: str,
    service: Optional[WebhookService] = None,
    config: Optional[Settings] = None,
) -> List[OrderDetails]:
    config = config or default_settings
    service = service or WebhookService(config)
    return normalize_order_details(service.get_order_details(order_id), config.currency_symbol)
