"""Installation history"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import HISTORY_MAX_ENTRIES
from ..utils.file_utils import read_json, write_json

logger = logging.getLogger(__name__)


@dataclass
class HistoryEntry:
    """One install or remove attempt"""
    package: str
    version: Optional[str]
    success: bool
    action: str = "install"
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "version": self.version,
            "action": self.action,
            "success": self.success,
            "error": self.error,
            "timestamp": self.timestamp.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEntry':
        return cls(
            package=data["package"],
            version=data.get("version"),
            action=data.get("action", "install"),
            success=bool(data.get("success", False)),
            error=data.get("error"),
            timestamp=datetime.fromisoformat(data["timestamp"])
        )


class InstallationHistory:
    """Bounded JSON log of install/remove attempts, oldest first on disk"""

    def __init__(self, path: Path, max_entries: int = HISTORY_MAX_ENTRIES):
        self.path = Path(path)
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def _load(self) -> List[HistoryEntry]:
        if not self.path.exists():
            return []
        try:
            return [HistoryEntry.from_dict(item) for item in read_json(self.path)]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable history file {self.path}: {e}")
            return []

    def record(self, package: str, version: Optional[str], success: bool,
               error: Optional[str] = None, action: str = "install") -> HistoryEntry:
        """Append an entry, dropping the oldest beyond the limit"""
        entry = HistoryEntry(package=package, version=version, success=success, action=action, error=error)
        with self._lock:
            entries = self._load()
            entries.append(entry)
            entries = entries[-self.max_entries:]
            try:
                write_json(self.path, [item.to_dict() for item in entries])
            except OSError as e:
                logger.warning(f"Failed to write history file {self.path}: {e}")
        return entry

    def entries(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """Entries newest first"""
        with self._lock:
            entries = list(reversed(self._load()))
        return entries[:limit] if limit else entries

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()
