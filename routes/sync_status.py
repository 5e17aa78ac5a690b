# routes/sync_status.py

from typing import Optional

from fastapi import APIRouter, HTTPException
from services import sync_tracker

router = APIRouter(
    prefix="/api/sync-status",
    tags=["Sync Status"],
    responses={404: {"description": "Not found"}},
)

@router.get("/")
def list_status(kind: Optional[str] = None):
    sync_tracker.clear_finished(older_than_seconds=3600)
    return {"tasks": sync_tracker.list_tasks(kind)}

@router.get("/{task_id}")
def get_status(task_id: str):
    """
    Pollable endpoint for a refresh or batch task.
    """
    task = sync_tracker.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
