"""
Upload slot: the life cycle of one data-source upload.

The slot never performs I/O. The coordinator drives the transfer and feeds
each outcome back through ``begin_upload``/``report_progress``/``complete``/
``fail``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from socflow.core.failures import Failure, FileTooLargeError, InvalidTransitionError
from socflow.core.types import MAX_UPLOAD_BYTES, ErrorKind, SelectedFile, SourceType, UploadStatus

logger = logging.getLogger("SocFlow.Upload")


class UploadSlot:
    """State for a single source type; one instance per SourceType per session."""

    def __init__(self, source_type: SourceType, *, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
        self._source_type = SourceType(source_type)
        self._max_bytes = max_bytes
        self.selected_file: Optional[SelectedFile] = None
        self.status = UploadStatus.EMPTY
        self.progress_percent: Optional[int] = None
        self.record_count: Optional[int] = None
        self.error: Optional[Failure] = None

    @property
    def source_type(self) -> SourceType:
        return self._source_type

    def __repr__(self) -> str:
        return f"UploadSlot({self._source_type.value}, status={self.status.value})"

    def select_file(self, file: SelectedFile) -> None:
        if file.size > self._max_bytes:
            logger.warning(
                "Rejected %s file %r: %d bytes exceeds limit %d",
                self._source_type.value,
                file.name,
                file.size,
                self._max_bytes,
            )
            raise FileTooLargeError(file.name, file.size, self._max_bytes)
        if self.status == UploadStatus.UPLOADING:
            raise InvalidTransitionError(self._name, self.status.value, "select a file")
        self.selected_file = file
        self._reset_results()
        self.status = UploadStatus.EMPTY

    def clear(self) -> None:
        if self.status == UploadStatus.UPLOADING:
            raise InvalidTransitionError(self._name, self.status.value, "clear")
        self.selected_file = None
        self._reset_results()
        self.status = UploadStatus.EMPTY

    def begin_upload(self) -> bool:
        """Enter UPLOADING. Returns False when the guard fails the slot instead."""
        if self.status == UploadStatus.UPLOADING:
            raise InvalidTransitionError(self._name, self.status.value, "begin upload")
        self._reset_results()
        if self.selected_file is None:
            self.status = UploadStatus.FAILED
            self.error = Failure(ErrorKind.NO_FILE_SELECTED)
            return False
        self.status = UploadStatus.UPLOADING
        self.progress_percent = 0
        return True

    def report_progress(self, percent: int) -> None:
        if self.status != UploadStatus.UPLOADING:
            logger.debug("Ignoring progress for %s slot in state %s", self._source_type.value, self.status.value)
            return
        clamped = max(0, min(100, int(percent)))
        # progress only moves forward
        if self.progress_percent is None or clamped > self.progress_percent:
            self.progress_percent = clamped

    def complete(self, record_count: int) -> None:
        self._require_uploading("complete")
        self.progress_percent = None
        self.record_count = int(record_count)
        self.status = UploadStatus.SUCCEEDED

    def fail(self, failure: Failure) -> None:
        self._require_uploading("fail")
        self.progress_percent = None
        self.error = failure
        self.status = UploadStatus.FAILED

    def snapshot(self) -> Dict[str, Any]:
        return {
            "source_type": self._source_type.value,
            "status": self.status.value,
            "file_name": self.selected_file.name if self.selected_file else None,
            "file_size": self.selected_file.size if self.selected_file else None,
            "progress_percent": self.progress_percent,
            "record_count": self.record_count,
            "error": self.error.as_dict() if self.error else None,
        }

    @property
    def _name(self) -> str:
        return f"UploadSlot[{self._source_type.value}]"

    def _require_uploading(self, operation: str) -> None:
        if self.status != UploadStatus.UPLOADING:
            raise InvalidTransitionError(self._name, self.status.value, operation)

    def _reset_results(self) -> None:
        self.progress_percent = None
        self.record_count = None
        self.error = None
