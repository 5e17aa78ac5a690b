# errors.py
"""
Error taxonomy for the dashboard backend.

Remote failures (timeouts, non-2xx, bad bodies, logical rejections) are raised
by the webhook client and either surfaced to the operator or attached to a
single batch item. Record and cache corruption are recovered where they are
found and only show up in the logs.
"""
from typing import Optional


class DashboardError(Exception):
    kind = "dashboard_error"

    def __init__(self, message: str, *, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation

    def user_message(self) -> str:
        return self.message

    def as_dict(self) -> dict:
        return {"kind": self.kind, "message": self.user_message(), "operation": self.operation}


class TransportTimeout(DashboardError):
    kind = "timeout"

    def user_message(self) -> str:
        return "Request timed out"


class TransportError(DashboardError):
    kind = "transport_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None, operation: Optional[str] = None):
        super().__init__(message, operation=operation)
        self.status_code = status_code

    def user_message(self) -> str:
        if self.status_code == 404:
            return "Webhook not found - please activate it first"
        if self.status_code is not None:
            return f"API Error: API returned {self.status_code}: {self.message}"
        return f"API Error: {self.message}"


class MalformedResponse(DashboardError):
    kind = "malformed_response"

    _MESSAGES = {
        "non_json": "API returned non-JSON response - Check webhook content-type header",
        "empty": "API returned empty response - Webhook may not be configured correctly",
        "invalid_json": "API returned invalid data format - Check webhook response format",
        "schema_mismatch": "API returned an unexpected response shape - Check webhook response format",
    }

    def __init__(self, reason: str, message: Optional[str] = None, *, operation: Optional[str] = None):
        if reason not in self._MESSAGES:
            raise ValueError(f"Unknown malformed-response reason: {reason}")
        super().__init__(message or self._MESSAGES[reason], operation=operation)
        self.reason = reason

    def user_message(self) -> str:
        return self._MESSAGES[self.reason]

    def as_dict(self) -> dict:
        out = super().as_dict()
        out["reason"] = self.reason
        return out


class MalformedRecord(DashboardError):
    kind = "malformed_record"


class LogicalFailure(DashboardError):
    """The remote answered 2xx but said the operation did not happen."""
    kind = "logical_failure"

    def user_message(self) -> str:
        return f"Rejected by remote: {self.message}"


class CorruptedCache(DashboardError):
    kind = "corrupted_cache"

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key


class NoChangesError(DashboardError):
    kind = "no_changes"

    def __init__(self):
        super().__init__("No changes detected. Please modify at least one field.")


class BatchInProgress(DashboardError):
    kind = "busy"

    def __init__(self):
        super().__init__("A batch action is in progress - refresh again once it finishes")
