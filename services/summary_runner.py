# services/summary_runner.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from crud.date_range import get_date_range
from crud.local_store import LocalStore
from errors import DashboardError
from schemas import OrderSummary
from services import sync_tracker
from services.normalizer import normalize_summary
from webhook_service import WebhookService

logger = logging.getLogger("summary")

SUMMARY_KEY = "dashboard.summary"
SUMMARY_LOADED_KEY = "dashboard.loaded"


@dataclass
class SummaryOutcome:
    summary: Optional[OrderSummary]
    has_loaded: bool
    error: Optional[DashboardError] = None


def load_summary(store: LocalStore) -> SummaryOutcome:
    if store.get_or_clear(SUMMARY_LOADED_KEY, False) is not True:
        return SummaryOutcome(summary=None, has_loaded=False)
    raw = store.get_or_clear(SUMMARY_KEY, None, SUMMARY_LOADED_KEY)
    if raw is None:
        return SummaryOutcome(summary=None, has_loaded=False)
    try:
        return SummaryOutcome(summary=OrderSummary.model_validate(raw), has_loaded=True)
    except ValidationError as e:
        logger.warning("Cached summary is invalid, clearing: %s", e)
        store.delete(SUMMARY_KEY, SUMMARY_LOADED_KEY)
        return SummaryOutcome(summary=None, has_loaded=False)


def refresh_summary(
    db: Session,
    service: Optional[WebhookService] = None,
    config: Optional[Settings] = None,
) -> SummaryOutcome:
    """Fetches the metrics for the saved date range; failures keep the last cached summary."""
    config = config or default_settings
    service = service or WebhookService(config)
    store = LocalStore(db)
    task_id = sync_tracker.add_task("summary", "Refresh dashboard summary")
    try:
        summary = normalize_summary(service.get_orders_summary(get_date_range(store)))
    except DashboardError as e:
        cached = load_summary(store)
        logger.error("Summary refresh failed (%s): %s", e.kind, e.message)
        sync_tracker.finish_task(task_id, ok=False, note=e.user_message())
        return SummaryOutcome(summary=cached.summary, has_loaded=cached.has_loaded, error=e)

    store.set(SUMMARY_KEY, summary.model_dump(mode="json"))
    store.set(SUMMARY_LOADED_KEY, True)
    sync_tracker.finish_task(task_id, ok=True, note=f"{summary.total_orders} orders in range")
    return SummaryOutcome(summary=summary, has_loaded=True)


def refresh_summary_task(db_factory) -> None:
    """Background entrypoint used after a batch confirms at least one order."""
    db: Session = db_factory()
    try:
        refresh_summary(db)
    finally:
        db.close()
