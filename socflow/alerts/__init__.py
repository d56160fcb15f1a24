"""
Alert cache and bulk status mutation.
"""

from socflow.alerts.bulk import BulkMutationReport, BulkMutationRunner, MutationOutcome
from socflow.alerts.cache import AlertCache

__all__ = [
    "AlertCache",
    "BulkMutationRunner",
    "BulkMutationReport",
    "MutationOutcome",
]
