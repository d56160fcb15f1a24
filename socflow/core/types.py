"""
SocFlow Core Types
------------------
Pydantic models and enums shared by the SDK and the orchestration workflows.
"""

from pathlib import Path
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field


# Policy constants owned by the orchestration core.
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
UPLOAD_TIMEOUT_SECONDS = 60.0
DETECTION_TIMEOUT_SECONDS = 120.0
DETECTION_HOURS_BACK = 24
NAVIGATION_DELAY_SECONDS = 3.0


class SourceType(str, Enum):
    ASSETS = "assets"
    THREAT_INTEL = "threat_intel"
    AUTH_LOGS = "auth_logs"
    NETWORK_LOGS = "network_logs"


# Fixed transfer order used by UploadCoordinator.trigger_all().
SOURCE_ORDER: Tuple[SourceType, ...] = (
    SourceType.ASSETS,
    SourceType.THREAT_INTEL,
    SourceType.AUTH_LOGS,
    SourceType.NETWORK_LOGS,
)


class UploadStatus(str, Enum):
    EMPTY = "empty"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class JobStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AlertStatus(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    FALSE_POSITIVE = "FALSE_POSITIVE"


class AlertSeverity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ErrorKind(str, Enum):
    NO_FILE_SELECTED = "no_file_selected"
    FILE_TOO_LARGE = "file_too_large"
    TIMEOUT = "timeout"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SERVER_REJECTED = "server_rejected"
    NOT_READY = "not_ready"
    ALREADY_RUNNING = "already_running"
    UNKNOWN = "unknown"


class SelectedFile(BaseModel):
    """A file picked by the operator, held in memory until transferred."""
    model_config = ConfigDict(frozen=True)

    name: str
    content: bytes
    content_type: str = "text/csv"

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SelectedFile":
        source = Path(path)
        return cls(name=source.name, content=source.read_bytes())


class UploadReceipt(BaseModel):
    source_type: SourceType
    record_count: int = 0
    payload: Dict[str, Any] = Field(default_factory=dict)


class DetectionResults(BaseModel):
    """Response body of a detection run."""
    message: Optional[str] = None
    timestamp: Optional[str] = None
    auth_alerts: int = 0
    network_alerts: int = 0
    threat_intel_alerts: int = 0
    total_alerts: int = 0
    execution_time_ms: Optional[float] = None


class AlertEntity(BaseModel):
    type: str
    value: str


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    title: str = ""
    description: str = ""
    severity: AlertSeverity = AlertSeverity.LOW
    status: AlertStatus = AlertStatus.NEW
    timestamp: Optional[str] = None
    log_type: Optional[str] = None
    tactic: Optional[str] = None
    technique: Optional[str] = None
    entities: List[AlertEntity] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
