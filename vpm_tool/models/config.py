"""Configuration data models"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Any, Tuple

from ..constants import (
    DEFAULT_PACKAGES_DIR,
    DEFAULT_REPOSITORIES_DIR,
    DEFAULT_HISTORY_FILE,
    DEFAULT_TEMP_DIR_NAME,
    MANIFEST_FILE,
    MANIFEST_CACHE_LIFETIME_SECONDS,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_TIMEOUT,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_DELAY,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_PROTECTED_PACKAGES,
    DEFAULT_MUTUALLY_EXCLUSIVE,
    DEFAULT_BASE_PACKAGES,
)


@dataclass
class DownloadConfig:
    """HTTP download settings with retry/backoff"""

    timeout: float = DEFAULT_TIMEOUT
    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER
    max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def get_retry_delay(self, attempt: int) -> float:
        """Calculate retry delay for given attempt with exponential backoff"""
        delay = self.retry_delay * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_retry_delay)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "timeout": self.timeout,
            "retry_count": self.retry_count,
            "retry_delay": self.retry_delay,
            "backoff_multiplier": self.backoff_multiplier,
            "max_retry_delay": self.max_retry_delay,
            "chunk_size": self.chunk_size
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DownloadConfig':
        """Create from dictionary"""
        return cls(**data)


@dataclass
class ConstraintConfig:
    """Package rules: mutual exclusion, base packages and protected ids"""

    mutually_exclusive: List[Tuple[str, str]] = field(
        default_factory=lambda: list(DEFAULT_MUTUALLY_EXCLUSIVE)
    )
    base_packages: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_BASE_PACKAGES))
    protected: List[str] = field(default_factory=lambda: list(DEFAULT_PROTECTED_PACKAGES))

    def __post_init__(self):
        """Validate rule shapes"""
        pairs = []
        for pair in self.mutually_exclusive:
            if len(pair) != 2:
                raise ValueError(f"Mutual exclusion rule must name two packages: {pair}")
            pairs.append((str(pair[0]), str(pair[1])))
        self.mutually_exclusive = pairs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "mutually_exclusive": [list(pair) for pair in self.mutually_exclusive],
            "base_packages": dict(self.base_packages),
            "protected": list(self.protected)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConstraintConfig':
        """Create from dictionary"""
        defaults = cls()
        return cls(
            mutually_exclusive=[tuple(p) for p in data.get("mutually_exclusive", defaults.mutually_exclusive)],
            base_packages=data.get("base_packages", defaults.base_packages),
            protected=data.get("protected", defaults.protected)
        )


@dataclass
class ToolConfig:
    """Project-level vpm-tool configuration"""

    packages_dir: str = DEFAULT_PACKAGES_DIR
    repositories_dir: str = DEFAULT_REPOSITORIES_DIR
    temp_dir: Optional[str] = None
    manifest_file: str = MANIFEST_FILE
    history_file: str = DEFAULT_HISTORY_FILE
    include_unstable: bool = False
    manifest_cache_ttl: float = MANIFEST_CACHE_LIFETIME_SECONDS
    verify_checksums: bool = True
    repository_priority: List[str] = field(default_factory=list)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    constraints: ConstraintConfig = field(default_factory=ConstraintConfig)

    def get_temp_dir(self) -> Path:
        """Temporary directory for downloads and extraction"""
        if self.temp_dir:
            return Path(self.temp_dir)
        return Path(tempfile.gettempdir()) / DEFAULT_TEMP_DIR_NAME

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "packages_dir": self.packages_dir,
            "repositories_dir": self.repositories_dir,
            "manifest_file": self.manifest_file,
            "history_file": self.history_file,
            "include_unstable": self.include_unstable,
            "manifest_cache_ttl": self.manifest_cache_ttl,
            "verify_checksums": self.verify_checksums,
            "repository_priority": list(self.repository_priority),
            "download": self.download.to_dict(),
            "constraints": self.constraints.to_dict()
        }
        if self.temp_dir:
            data["temp_dir"] = self.temp_dir
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ToolConfig':
        """Create from dictionary, filling defaults for missing keys"""
        data = dict(data or {})
        download = DownloadConfig.from_dict(data.pop("download", None) or {})
        constraints = ConstraintConfig.from_dict(data.pop("constraints", None) or {})

        known = set(cls.__dataclass_fields__) - {"download", "constraints"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        return cls(download=download, constraints=constraints, **data)
