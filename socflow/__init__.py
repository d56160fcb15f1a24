"""
SocFlow: ingestion and detection orchestration for the SOC Analytics Backend
"""

from socflow.sdk import (
    AnalyticsAPIError,
    AnalyticsClient,
    AnalyticsConnectionError,
    AnalyticsError,
    AnalyticsTimeoutError,
    AsyncAnalyticsClient,
)
from socflow.version import __version__

__all__ = [
    "__version__",
    "AnalyticsClient",
    "AsyncAnalyticsClient",
    "AnalyticsError",
    "AnalyticsConnectionError",
    "AnalyticsTimeoutError",
    "AnalyticsAPIError",
]
