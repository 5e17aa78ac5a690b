# services/batch_actions.py
"""
Executes one remote mutation per order, strictly one at a time.

Each confirmed item is committed (board list, override store, cached list)
before the next request goes out, so an interruption mid-batch leaves every
confirmed order durably recorded. A failed item changes nothing.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from crud.local_store import LocalStore
from crud.overrides import OverrideStore
from crud.record_cache import RecordListCache
from errors import DashboardError
from schemas import BatchAction, BatchItemResult, BatchSummary, FulfillmentStatus, Order
from services import sync_tracker
from services.order_board import OrderBoard
from services.order_sync_runner import order_cache
from webhook_service import WebhookService

logger = logging.getLogger("batch")


class BatchActionExecutor:
    def __init__(
        self,
        service: WebhookService,
        overrides: OverrideStore,
        cache: RecordListCache[Order],
        board: OrderBoard,
        keep_failed_selected: bool = False,
    ):
        self.service = service
        self.overrides = overrides
        self.cache = cache
        self.board = board
        self.keep_failed_selected = keep_failed_selected

    def execute(self, action: BatchAction, order_numbers: Sequence[str]) -> BatchSummary:
        summary = BatchSummary(action=action)
        with self.board.exclusive():
            task_id = sync_tracker.add_task("batch", f"{action.value.title()} {len(order_numbers)} orders")
            completed = False
            try:
                for order_number in order_numbers:
                    item = self._run_one(action, order_number)
                    summary.results.append(item)
                    sync_tracker.step(task_id, len(summary.results),
                                      error=None if item.success else f"{order_number}: {item.reason}")
                completed = True
            finally:
                self._settle_selection(summary)
                if completed:
                    sync_tracker.finish_task(
                        task_id, ok=summary.failure_count == 0,
                        note=f"{summary.success_count} succeeded, {summary.failure_count} failed",
                    )
                else:
                    logger.error("Batch %s interrupted after %d of %d orders",
                                 action.value, len(summary.results), len(order_numbers))
                    sync_tracker.finish_task(
                        task_id, ok=False,
                        note=f"Interrupted after {len(summary.results)} of {len(order_numbers)} orders",
                    )

        logger.info("Batch %s: %d succeeded, %d failed", action.value, summary.success_count, summary.failure_count)
        for order_number, reason in summary.failures.items():
            logger.error("Order %s: %s", order_number, reason)
        return summary

    def _run_one(self, action: BatchAction, order_number: str) -> BatchItemResult:
        try:
            if action is BatchAction.FULFILL:
                self.service.fulfill_order(order_number)
            else:
                self.service.cancel_order(order_number)
        except DashboardError as e:
            logger.warning("%s %s failed (%s): %s", action.value, order_number, e.kind, e.message)
            return BatchItemResult(order_number=order_number, success=False,
                                   error_kind=e.kind, reason=e.user_message())

        target = action.target_status
        self._commit(order_number, target)
        return BatchItemResult(order_number=order_number, success=True, status=target)

    def _commit(self, order_number: str, status: FulfillmentStatus) -> None:
        if not self.board.mark_status(order_number, status):
            logger.warning("Order %s confirmed remotely but is not on the board", order_number)
        self.overrides.set(order_number, status)
        self.cache.save(self.board.orders)

    def _settle_selection(self, summary: BatchSummary) -> None:
        if self.keep_failed_selected:
            # Successful ids are already pruned (no longer unfulfilled).
            self.board.selection.retain({r.order_number for r in summary.results if not r.success})
        else:
            self.board.selection.clear()


def run_batch(
    db: Session,
    board: OrderBoard,
    action: BatchAction,
    order_numbers: Optional[Sequence[str]] = None,
    service: Optional[WebhookService] = None,
    config: Optional[Settings] = None,
) -> BatchSummary:
    """Runs a batch over order_numbers, or over the current selection when None."""
    config = config or default_settings
    store = LocalStore(db)
    cache = order_cache(store)
    board.hydrate(cache.load())
    executor = BatchActionExecutor(
        service=service or WebhookService(config),
        overrides=OverrideStore(store),
        cache=cache,
        board=board,
        keep_failed_selected=config.keep_failed_selected,
    )
    # One remote mutation per order, even when an id is repeated.
    ids = list(dict.fromkeys(order_numbers if order_numbers is not None else board.selection.ids()))
    return executor.execute(action, ids)
