"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OperationStatus(Enum):
    """Operation status"""
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"
    SKIPPED = "skipped"
    IN_PROGRESS = "in_progress"


class InstallState(Enum):
    """Installer state machine"""
    IDLE = "idle"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    MERGING = "merging"
    MANIFEST_UPDATE = "manifest_update"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class ErrorDetail:
    """Detailed error information"""

    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class Result:
    """Base result class"""

    status: OperationStatus
    message: str = ""
    errors: List[ErrorDetail] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        """Check if operation was successful"""
        return self.status == OperationStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        """Check if operation failed"""
        return self.status == OperationStatus.FAILED

    @property
    def error(self) -> Optional[str]:
        """First error message, used as the failure reason"""
        return self.errors[0].message if self.errors else None

    @property
    def error_code(self) -> Optional[str]:
        """First error code"""
        return self.errors[0].code if self.errors else None

    @property
    def duration(self) -> Optional[float]:
        """Get operation duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def add_error(self, code: str, message: str, **context) -> None:
        """Add an error"""
        self.errors.append(ErrorDetail(code=code, message=message, context=context))

    def add_warning(self, message: str) -> None:
        """Add a warning"""
        self.warnings.append(message)

    def complete(self, status: Optional[OperationStatus] = None) -> None:
        """Mark operation as complete"""
        self.end_time = _utcnow()
        if status:
            self.status = status

    def fail(self, code: str, message: str, **context) -> 'Result':
        """Record an error and complete as failed"""
        self.add_error(code, message, **context)
        self.complete(OperationStatus.FAILED)
        return self

    def __bool__(self) -> bool:
        return self.is_success


@dataclass
class InstallResult(Result):
    """Result of an install operation"""

    package_id: Optional[str] = None
    version: Optional[str] = None
    state: InstallState = InstallState.IDLE
    failed_state: Optional[InstallState] = None
    install_path: Optional[str] = None
    base_installed: Optional[str] = None  # "id@version" of a base installed on the way
    files_written: int = 0
    files_removed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "message": self.message,
            "package_id": self.package_id,
            "version": self.version,
            "state": self.state.value,
            "failed_state": self.failed_state.value if self.failed_state else None,
            "install_path": self.install_path,
            "base_installed": self.base_installed,
            "files_written": self.files_written,
            "files_removed": self.files_removed,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": self.warnings,
            "duration": self.duration
        }


@dataclass
class RemoveResult(Result):
    """Result of a remove operation"""

    package_id: Optional[str] = None
    blocking_dependents: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "message": self.message,
            "package_id": self.package_id,
            "blocking_dependents": self.blocking_dependents,
            "errors": [e.to_dict() for e in self.errors],
            "duration": self.duration
        }


@dataclass
class RefreshResult(Result):
    """Result of refreshing repositories from their URLs"""

    refreshed: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)  # cached copy kept after a failure
    skipped: List[str] = field(default_factory=list)  # no URL

    @property
    def refreshed_count(self) -> int:
        """Number of repositories re-downloaded"""
        return len(self.refreshed)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "message": self.message,
            "refreshed": self.refreshed,
            "kept": self.kept,
            "skipped": self.skipped,
            "warnings": self.warnings,
            "duration": self.duration
        }
