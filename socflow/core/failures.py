"""
Failure taxonomy for the orchestration workflows.

Transport errors raised by the SDK are converted here into a ``Failure`` so
that callers above the workflows never handle raw exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from socflow.core.types import ErrorKind
from socflow.sdk.errors import AnalyticsAPIError, AnalyticsError, AnalyticsTimeoutError

_GENERIC_MESSAGES = {
    ErrorKind.NO_FILE_SELECTED: "No file selected",
    ErrorKind.FILE_TOO_LARGE: "File exceeds the 10 MB upload limit",
    ErrorKind.TIMEOUT: "The request timed out",
    ErrorKind.PAYLOAD_TOO_LARGE: "The server rejected the file as too large",
    ErrorKind.SERVER_REJECTED: "The server rejected the request",
    ErrorKind.NOT_READY: "Please upload all required data files before running detection",
    ErrorKind.ALREADY_RUNNING: "Detection is already running",
    ErrorKind.UNKNOWN: "An unexpected error occurred",
}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    detail: Optional[str] = None

    @property
    def message(self) -> str:
        """Operator-facing text. Only backend rejections carry their own wording."""
        if self.kind == ErrorKind.SERVER_REJECTED and self.detail:
            return self.detail
        return _GENERIC_MESSAGES[self.kind]

    def as_dict(self) -> dict:
        return {"kind": self.kind.value, "detail": self.detail, "message": self.message}


class WorkflowError(RuntimeError):
    """Base class for orchestration policy errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    @property
    def failure(self) -> Failure:
        return Failure(self.kind)


class FileTooLargeError(WorkflowError):
    """Raised when a selected file exceeds the upload size limit."""

    kind = ErrorKind.FILE_TOO_LARGE

    def __init__(self, name: str, size: int, limit: int) -> None:
        self.name = name
        self.size = size
        self.limit = limit
        super().__init__(f"File {name!r} is {size} bytes; the limit is {limit} bytes")


class InvalidTransitionError(WorkflowError):
    """Raised when a state machine is driven out of order."""

    def __init__(self, component: str, current: str, operation: str) -> None:
        self.component = component
        self.current = current
        self.operation = operation
        super().__init__(f"{component}: cannot {operation} while {current}")


def classify_exception(exc: BaseException) -> Failure:
    """Map an SDK exception onto the failure taxonomy."""
    if isinstance(exc, AnalyticsTimeoutError):
        return Failure(ErrorKind.TIMEOUT, str(exc))
    if isinstance(exc, AnalyticsAPIError):
        if exc.status_code == 413:
            return Failure(ErrorKind.PAYLOAD_TOO_LARGE, exc.detail)
        if exc.has_detail:
            return Failure(ErrorKind.SERVER_REJECTED, exc.detail)
        return Failure(ErrorKind.UNKNOWN, str(exc))
    if isinstance(exc, AnalyticsError):
        return Failure(ErrorKind.UNKNOWN, str(exc))
    return Failure(ErrorKind.UNKNOWN, f"{type(exc).__name__}: {exc}")
