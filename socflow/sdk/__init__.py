"""
SocFlow SDK public exports.
"""

from socflow.sdk.client import AnalyticsClient, AsyncAnalyticsClient
from socflow.sdk.errors import (
    AnalyticsAPIError,
    AnalyticsConnectionError,
    AnalyticsError,
    AnalyticsTimeoutError,
)

__all__ = [
    "AnalyticsClient",
    "AsyncAnalyticsClient",
    "AnalyticsError",
    "AnalyticsConnectionError",
    "AnalyticsTimeoutError",
    "AnalyticsAPIError",
]
