"""
SocFlow SDK exceptions.
"""

from __future__ import annotations

from typing import Any, Optional


class AnalyticsError(RuntimeError):
    """Base class for SDK errors."""


class AnalyticsConnectionError(AnalyticsError):
    """Raised when the SDK cannot reach the Analytics Backend."""


class AnalyticsTimeoutError(AnalyticsConnectionError):
    """Raised when a request exceeds its timeout budget."""

    def __init__(self, message: str, *, timeout: Optional[float] = None) -> None:
        self.timeout = timeout
        super().__init__(message)


class AnalyticsAPIError(AnalyticsError):
    """Raised when the backend returns an HTTP or API-level error."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: Optional[int] = None,
        path: Optional[str] = None,
        payload: Optional[Any] = None,
        has_detail: bool = False,
    ) -> None:
        self.detail = detail
        self.status_code = status_code
        self.path = path
        self.payload = payload
        # True when ``detail`` came from the backend body rather than a fallback.
        self.has_detail = has_detail
        status_hint = f" (status={status_code})" if status_code is not None else ""
        path_hint = f" [{path}]" if path else ""
        super().__init__(f"{detail}{status_hint}{path_hint}")
