"""Public API for vpm-tool"""

from .manager import PackageManager, OutdatedPackage
from .exceptions import (
    VPMToolError,
    RepositoryParseError,
    NetworkError,
    FileSystemError,
    ConstraintViolation,
    CorruptionError,
    ConfigError,
    PackageNotFoundError,
    PackageNotInstalledError,
    ChecksumMismatchError,
    InvalidPackageError,
    OperationCancelledError,
)

__all__ = [
    "PackageManager",
    "OutdatedPackage",
    "VPMToolError",
    "RepositoryParseError",
    "NetworkError",
    "FileSystemError",
    "ConstraintViolation",
    "CorruptionError",
    "ConfigError",
    "PackageNotFoundError",
    "PackageNotInstalledError",
    "ChecksumMismatchError",
    "InvalidPackageError",
    "OperationCancelledError",
]
