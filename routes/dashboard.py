# routes/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import schemas
from crud import date_range as crud_date_range
from crud.local_store import LocalStore
from database import get_db
from routes.base import error_payload
from services import summary_runner

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


def _summary_view(outcome: summary_runner.SummaryOutcome) -> dict:
    return {
        "has_loaded": outcome.has_loaded,
        "summary": outcome.summary.model_dump(mode="json") if outcome.summary else None,
        "error": error_payload(outcome.error),
    }


@router.get("/summary")
def get_summary(db: Session = Depends(get_db)):
    return _summary_view(summary_runner.load_summary(LocalStore(db)))


@router.post("/refresh")
def refresh_summary(db: Session = Depends(get_db)):
    return _summary_view(summary_runner.refresh_summary(db))


@router.get("/date-range")
def get_date_range(db: Session = Depends(get_db)):
    return crud_date_range.get_date_range(LocalStore(db)).model_dump(mode="json", by_alias=True)


@router.put("/date-range")
def set_date_range(date_range: schemas.DateRange, db: Session = Depends(get_db)):
    """Saves the filter used by the orders list and the summary fetch."""
    saved = crud_date_range.save_date_range(LocalStore(db), date_range)
    return saved.model_dump(mode="json", by_alias=True)
