# crud/date_range.py
import logging

from pydantic import ValidationError

from crud.local_store import LocalStore
import schemas

logger = logging.getLogger("date_range")

DATE_RANGE_KEY = "filters.date_range"


def get_date_range(store: LocalStore) -> schemas.DateRange:
    raw = store.get_or_clear(DATE_RANGE_KEY, None)
    if not raw:
        return schemas.DateRange()
    try:
        return schemas.DateRange.model_validate(raw)
    except ValidationError as e:
        logger.warning("Saved date range is invalid, clearing: %s", e)
        store.delete(DATE_RANGE_KEY)
        return schemas.DateRange()


def save_date_range(store: LocalStore, date_range: schemas.DateRange) -> schemas.DateRange:
    store.set(DATE_RANGE_KEY, date_range.model_dump(mode="json", by_alias=True))
    return date_range
