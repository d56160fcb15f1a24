"""
Data models for multi-source upload reporting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from socflow.core.failures import Failure
from socflow.core.types import SourceType, UploadStatus


@dataclass
class SourceUploadResult:
    source_type: SourceType
    status: UploadStatus
    record_count: Optional[int] = None
    error: Optional[Failure] = None

    @property
    def succeeded(self) -> bool:
        return self.status == UploadStatus.SUCCEEDED


@dataclass
class UploadSummary:
    results: List[SourceUploadResult] = field(default_factory=list)
    skipped: List[SourceType] = field(default_factory=list)

    @property
    def record_counts(self) -> Dict[SourceType, int]:
        return {r.source_type: r.record_count or 0 for r in self.results if r.succeeded}

    @property
    def failures(self) -> Dict[SourceType, Failure]:
        return {r.source_type: r.error for r in self.results if r.error is not None}

    @property
    def total_records(self) -> int:
        return sum(self.record_counts.values())

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return len(self.record_counts)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "total_records": self.total_records,
            "record_counts": {k.value: v for k, v in self.record_counts.items()},
            "failures": {k.value: v.as_dict() for k, v in self.failures.items()},
            "skipped": [s.value for s in self.skipped],
        }
