"""
Multi-source upload package.
"""

from socflow.ingestion.coordinator import UploadCoordinator
from socflow.ingestion.models import SourceUploadResult, UploadSummary
from socflow.ingestion.slot import UploadSlot

__all__ = [
    "UploadSlot",
    "UploadCoordinator",
    "SourceUploadResult",
    "UploadSummary",
]
