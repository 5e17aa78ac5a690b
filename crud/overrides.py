# crud/overrides.py
import logging
from typing import Dict, Mapping, Optional

from crud.local_store import LocalStore
from schemas import FulfillmentStatus, PROCESSED_STATUSES

logger = logging.getLogger("overrides")

OVERRIDES_KEY = "orders.overrides"


class OverrideStore:
    """
    Last known processed fulfillment status per order number. Entries never
    expire and only processed values are accepted.
    """
    def __init__(self, store: LocalStore):
        self.store = store

    def all(self) -> Dict[str, FulfillmentStatus]:
        raw = self.store.get_or_clear(OVERRIDES_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Override map has type %s, clearing", type(raw).__name__)
            self.store.delete(OVERRIDES_KEY)
            return {}
        out: Dict[str, FulfillmentStatus] = {}
        for order_number, value in raw.items():
            try:
                status = FulfillmentStatus(value)
            except ValueError:
                logger.warning("Dropping override %s=%r: not a fulfillment status", order_number, value)
                continue
            if status in PROCESSED_STATUSES:
                out[str(order_number)] = status
        return out

    def get(self, order_number: str) -> Optional[FulfillmentStatus]:
        return self.all().get(str(order_number))

    def set(self, order_number: str, status: FulfillmentStatus) -> None:
        self.set_many({order_number: status})

    def set_many(self, writes: Mapping[str, FulfillmentStatus]) -> None:
        if not writes:
            return
        for order_number, status in writes.items():
            if FulfillmentStatus(status) not in PROCESSED_STATUSES:
                raise ValueError(f"Override for {order_number} must be a processed status, got {status!r}")
        current = self.all()
        for order_number, status in writes.items():
            current[str(order_number)] = FulfillmentStatus(status)
        self.store.set(OVERRIDES_KEY, {k: v.value for k, v in current.items()})
        logger.info("Override store write %s", {k: FulfillmentStatus(v).value for k, v in writes.items()})
