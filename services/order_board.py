# services/order_board.py
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from errors import BatchInProgress
from schemas import FulfillmentStatus, Order, OrderFilter
from services.selection import SelectionSet

ALL_STATUSES = "all statuses"


def matches_filter(order: Order, order_filter: OrderFilter) -> bool:
    term = (order_filter.search or "").strip().lower()
    if term and term not in order.customer.lower() and term not in order.order_number.lower():
        return False
    status = (order_filter.status or "").strip().lower()
    if status and status != ALL_STATUSES and order.payment_status.lower() != status:
        return False
    return True


class OrderBoard:
    """
    The operator's working state: the merged order list, the active filter and
    the selection. Refresh and batch execution take the board exclusively, so a
    reader only ever sees a list that was swapped in whole.
    """
    def __init__(self):
        self.orders: List[Order] = []
        self.filter = OrderFilter()
        self.selection = SelectionSet()
        self.hydrated = False
        self._lock = threading.Lock()

    # -------------------- exclusivity --------------------
    @contextmanager
    def exclusive(self) -> Iterator["OrderBoard"]:
        if not self._lock.acquire(blocking=False):
            raise BatchInProgress()
        try:
            yield self
        finally:
            self._lock.release()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    # -------------------- list --------------------
    def hydrate(self, cached: List[Order]) -> None:
        """Seeds the board from the persisted list once per process."""
        if self.hydrated:
            return
        self.orders = list(cached)
        self.hydrated = True
        self._prune_selection()

    def replace_orders(self, orders: List[Order]) -> List[str]:
        self.orders = list(orders)
        self.hydrated = True
        return self._prune_selection()

    def get(self, order_number: str) -> Optional[Order]:
        return next((o for o in self.orders if o.order_number == order_number), None)

    def mark_status(self, order_number: str, status: FulfillmentStatus) -> bool:
        found = False
        updated = []
        for order in self.orders:
            if order.order_number == order_number:
                order = order.model_copy(update={"fulfillment_status": status})
                found = True
            updated.append(order)
        self.orders = updated
        self._prune_selection()
        return found

    # -------------------- filter & selection --------------------
    def visible_orders(self) -> List[Order]:
        return [o for o in self.orders if matches_filter(o, self.filter)]

    def selectable_ids(self) -> List[str]:
        return [o.order_number for o in self.visible_orders()
                if o.fulfillment_status == FulfillmentStatus.UNFULFILLED]

    def set_filter(self, order_filter: OrderFilter) -> List[str]:
        self.filter = order_filter
        return self._prune_selection()

    # Operator edits to the selection; a running batch settles it on its own.
    def _ensure_idle(self) -> None:
        if self.busy:
            raise BatchInProgress()

    def toggle(self, order_number: str) -> bool:
        self._ensure_idle()
        if order_number not in self.selection and order_number not in self.selectable_ids():
            raise ValueError(f"Order {order_number} is not selectable")
        return self.selection.toggle(order_number)

    def select_all(self) -> List[str]:
        self._ensure_idle()
        self.selection.select_all(self.selectable_ids())
        return self.selection.ids()

    def clear_selection(self) -> None:
        self._ensure_idle()
        self.selection.clear()

    def _prune_selection(self) -> List[str]:
        return self.selection.retain(set(self.selectable_ids()))

    def view(self, has_loaded: bool) -> Dict[str, Any]:
        visible = self.visible_orders()
        return {
            "has_loaded": has_loaded,
            "total": len(self.orders),
            "filter": self.filter.model_dump(),
            "orders": [o.model_dump(mode="json") for o in visible],
            "selected": self.selection.ids(),
            "selectable": [o.order_number for o in visible
                           if o.fulfillment_status == FulfillmentStatus.UNFULFILLED],
            "busy": self.busy,
        }


_board = OrderBoard()


def get_board() -> OrderBoard:
    """One board per process: a single operator session per persistent store."""
    return _board
