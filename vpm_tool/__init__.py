"""VPM Tool - package repository and installation engine for VPM packages.

Aggregates package catalogs published by VPM repositories, resolves which
version to install, and installs or removes packages against a project's
vpm-manifest.json.
"""

from .__version__ import __version__, __version_info__, __author__, __email__, __license__

# Core API
from .api.manager import PackageManager, OutdatedPackage

# Data models
from .models.repository import Repository, Package, PackageVersion
from .models.manifest import Manifest, LockedPackage
from .models.result import InstallResult, RemoveResult, RefreshResult, InstallState
from .models.config import ToolConfig

# Exceptions
from .api.exceptions import (
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

# Utility functions
from .utils import (
    compare_versions,
    is_stable,
    get_latest_version,
    get_latest_newer_version,
    CancellationToken,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__email__",
    "__license__",

    # Main classes
    "PackageManager",
    "OutdatedPackage",

    # Models
    "Repository",
    "Package",
    "PackageVersion",
    "Manifest",
    "LockedPackage",
    "InstallResult",
    "RemoveResult",
    "RefreshResult",
    "InstallState",
    "ToolConfig",

    # Exceptions
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

    # Utilities
    "compare_versions",
    "is_stable",
    "get_latest_version",
    "get_latest_newer_version",
    "CancellationToken",
]
