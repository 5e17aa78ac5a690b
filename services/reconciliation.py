# services/reconciliation.py
"""
Merges a freshly fetched order snapshot with the persisted override map and
the previous in-memory list.

A locally confirmed processed status is never undone by the webhook reporting
"unfulfilled" (or nothing at all); the webhook only wins when it reports a
processed status of its own, which then replaces the stored override.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from schemas import FulfillmentStatus, Order, PROCESSED_STATUSES

logger = logging.getLogger("reconciliation")


@dataclass
class ReconcileResult:
    orders: List[Order]
    override_writes: Dict[str, FulfillmentStatus] = field(default_factory=dict)
    dropped: int = 0


def _is_processed(status: Optional[FulfillmentStatus]) -> bool:
    return status is not None and status in PROCESSED_STATUSES


def resolve_status(
    api_status: Optional[FulfillmentStatus],
    local_status: Optional[FulfillmentStatus],
    prior_status: Optional[FulfillmentStatus],
) -> tuple[FulfillmentStatus, Optional[FulfillmentStatus]]:
    """
    Decides one order's status. Returns (merged status, override to write or None).
    api_status is None when the snapshot carried no fulfillment field.
    """
    if _is_processed(local_status):
        if _is_processed(api_status):
            return api_status, (api_status if api_status != local_status else None)
        return local_status, None

    if api_status is not None:
        return api_status, (api_status if _is_processed(api_status) else None)
    if _is_processed(prior_status):
        return prior_status, prior_status
    return FulfillmentStatus.UNFULFILLED, None


def reconcile(
    remote_snapshot: Sequence[Order],
    overrides: Mapping[str, FulfillmentStatus],
    previous_list: Sequence[Order],
    dropped: int = 0,
) -> ReconcileResult:
    """
    Pure merge; the caller persists result.override_writes and the list.
    Each order is decided on its own, so snapshot order only fixes output order.
    """
    prior_by_number = {o.order_number: o.fulfillment_status for o in previous_list}
    merged: List[Order] = []
    writes: Dict[str, FulfillmentStatus] = {}

    for order in remote_snapshot:
        api_status = order.fulfillment_status if order.fulfillment_reported else None
        status, write = resolve_status(
            api_status,
            overrides.get(order.order_number),
            prior_by_number.get(order.order_number),
        )
        if status != order.fulfillment_status:
            logger.debug("Order %s: remote=%s merged=%s", order.order_number, api_status, status.value)
        merged.append(order.model_copy(update={"fulfillment_status": status, "fulfillment_reported": True}))
        if write is not None:
            writes[order.order_number] = write

    if dropped:
        logger.warning("Reconciled %d orders, %d malformed records dropped", len(merged), dropped)
    return ReconcileResult(orders=merged, override_writes=writes, dropped=dropped)
