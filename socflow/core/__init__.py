from socflow.core.types import (
    SOURCE_ORDER,
    AlertStatus,
    ErrorKind,
    JobStatus,
    SelectedFile,
    SourceType,
    UploadStatus,
)

__all__ = [
    "SOURCE_ORDER",
    "AlertStatus",
    "ErrorKind",
    "JobStatus",
    "SelectedFile",
    "SourceType",
    "UploadStatus",
]
