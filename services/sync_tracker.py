# services/sync_tracker.py
from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Dict, Optional, List
import threading
import uuid
import time

@dataclass
class _Task:
    id: str
    kind: str
    title: str
    processed: int = 0
    failed: int = 0
    done: bool = False
    ok: Optional[bool] = None
    note: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    created_at: float = 0.0
    updated_at: float = 0.0

# In-memory, per process
_TASKS: Dict[str, _Task] = {}
_LOCK = threading.Lock()

def _now() -> float:
    return time.time()

def add_task(kind: str, title: str) -> str:
    t = _Task(id=str(uuid.uuid4()), kind=kind, title=title, created_at=_now(), updated_at=_now())
    with _LOCK:
        _TASKS[t.id] = t
    return t.id

def step(task_id: str, processed: int, note: Optional[str] = None, error: Optional[str] = None):
    with _LOCK:
        t = _TASKS.get(task_id)
        if not t: return
        t.processed = processed
        if error is not None:
            t.failed += 1
            t.errors.append(error)
        if note is not None: t.note = note
        t.updated_at = _now()

def finish_task(task_id: str, ok: bool, note: Optional[str] = None):
    with _LOCK:
        t = _TASKS.get(task_id)
        if not t: return
        t.done = True
        t.ok = ok
        if note is not None: t.note = note
        t.updated_at = _now()

def get_task(task_id: str) -> Optional[Dict]:
    with _LOCK:
        t = _TASKS.get(task_id)
        return asdict(t) if t else None

def list_tasks(kind: Optional[str] = None) -> List[Dict]:
    with _LOCK:
        items = [t for t in _TASKS.values() if kind is None or t.kind == kind]
        items.sort(key=lambda x: x.updated_at, reverse=True)
        return [asdict(t) for t in items]

def clear_finished(older_than_seconds: int = 3600):
    now = _now()
    with _LOCK:
        to_delete = [k for k, t in _TASKS.items() if t.done and (now - t.updated_at) >= older_than_seconds]
        for k in to_delete:
            _TASKS.pop(k, None)
