# routes/orders.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks
from sqlalchemy.orm import Session

import schemas
from database import get_db, SessionLocal
from errors import DashboardError
from routes.base import http_error, error_payload
from services import batch_actions, order_sync_runner, summary_runner
from services.order_board import OrderBoard, get_board

router = APIRouter(
    prefix="/api/orders",
    tags=["Orders"],
    responses={404: {"description": "Not found"}},
)


def _view(db: Session, board: OrderBoard) -> dict:
    has_loaded = order_sync_runner.load_board(db, board)
    return board.view(has_loaded)


@router.get("/")
def get_orders(db: Session = Depends(get_db), board: OrderBoard = Depends(get_board)):
    """
    The last merged order list, filtered, with the current selection. Never calls the webhooks.
    """
    return _view(db, board)


@router.post("/refresh")
def refresh_orders(db: Session = Depends(get_db), board: OrderBoard = Depends(get_board)):
    """
    Fetches and reconciles a fresh snapshot. A failed fetch returns the cached
    list together with the error instead of blanking the table.
    """
    try:
        outcome = order_sync_runner.refresh_orders(db, board)
    except DashboardError as e:
        raise http_error(e)
    view = board.view(outcome.has_loaded)
    view.update({
        "error": error_payload(outcome.error),
        "from_cache": outcome.from_cache,
        "dropped": outcome.dropped,
        "deselected": outcome.deselected,
    })
    return view


@router.get("/{order_id}/details")
def get_order_details(order_id: str):
    try:
        details = order_sync_runner.fetch_order_details(order_id)
    except DashboardError as e:
        raise http_error(e)
    return {"order_id": order_id, "details": [d.model_dump(mode="json") for d in details]}


@router.put("/filter")
def set_filter(
    order_filter: schemas.OrderFilter,
    db: Session = Depends(get_db),
    board: OrderBoard = Depends(get_board),
):
    order_sync_runner.load_board(db, board)
    deselected = board.set_filter(order_filter)
    view = _view(db, board)
    view["deselected"] = deselected
    return view


@router.post("/selection/toggle")
def toggle_selection(
    payload: schemas.SelectionToggle,
    db: Session = Depends(get_db),
    board: OrderBoard = Depends(get_board),
):
    order_sync_runner.load_board(db, board)
    try:
        selected = board.toggle(payload.order_number)
    except DashboardError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"order_number": payload.order_number, "selected": selected, "selection": board.selection.ids()}


@router.post("/selection/all")
def select_all(db: Session = Depends(get_db), board: OrderBoard = Depends(get_board)):
    order_sync_runner.load_board(db, board)
    try:
        return {"selection": board.select_all()}
    except DashboardError as e:
        raise http_error(e)


@router.delete("/selection")
def clear_selection(board: OrderBoard = Depends(get_board)):
    try:
        board.clear_selection()
    except DashboardError as e:
        raise http_error(e)
    return {"selection": []}


def _run_batch(
    action: schemas.BatchAction,
    payload: schemas.BatchRequest,
    background_tasks: BackgroundTasks,
    db: Session,
    board: OrderBoard,
) -> dict:
    order_sync_runner.load_board(db, board)
    if payload.order_numbers is not None:
        selectable = set(board.selectable_ids())
        ineligible = [n for n in payload.order_numbers if n not in selectable]
        if ineligible:
            raise HTTPException(status_code=422, detail={"not_selectable": ineligible})
    try:
        summary = batch_actions.run_batch(db, board, action, payload.order_numbers)
    except DashboardError as e:
        raise http_error(e)
    if summary.success_count > 0:
        # Metrics depend on fulfillment counts.
        background_tasks.add_task(summary_runner.refresh_summary_task, SessionLocal)
    return summary.as_response()


@router.post("/batch/fulfill")
def fulfill_orders(
    background_tasks: BackgroundTasks,
    payload: Optional[schemas.BatchRequest] = None,
    db: Session = Depends(get_db),
    board: OrderBoard = Depends(get_board),
):
    return _run_batch(schemas.BatchAction.FULFILL, payload or schemas.BatchRequest(), background_tasks, db, board)


@router.post("/batch/cancel")
def cancel_orders(
    background_tasks: BackgroundTasks,
    payload: Optional[schemas.BatchRequest] = None,
    db: Session = Depends(get_db),
    board: OrderBoard = Depends(get_board),
):
    return _run_batch(schemas.BatchAction.CANCEL, payload or schemas.BatchRequest(), background_tasks, db, board)
