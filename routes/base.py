# routes/base.py
from fastapi import HTTPException

from errors import BatchInProgress, DashboardError, NoChangesError, TransportTimeout

_STATUS_BY_KIND = {
    TransportTimeout.kind: 504,
    BatchInProgress.kind: 409,
    NoChangesError.kind: 422,
}


def http_error(err: DashboardError) -> HTTPException:
    """Remote failures surface as 502 unless the kind maps to something more specific."""
    return HTTPException(status_code=_STATUS_BY_KIND.get(err.kind, 502), detail=err.as_dict())


def error_payload(err: DashboardError | None) -> dict | None:
    return err.as_dict() if err else None
