# vpm_tool/models/__init__.py
"""Data models for vpm-tool"""

from .repository import Repository, Package, PackageVersion
from .manifest import Manifest, LockedPackage, InstalledPackageInfo
from .result import (
    OperationStatus,
    InstallState,
    ErrorDetail,
    Result,
    InstallResult,
    RemoveResult,
    RefreshResult,
)
from .config import ToolConfig, DownloadConfig, ConstraintConfig

__all__ = [
    # Repository models
    "Repository",
    "Package",
    "PackageVersion",

    # Manifest models
    "Manifest",
    "LockedPackage",
    "InstalledPackageInfo",

    # Result models
    "OperationStatus",
    "InstallState",
    "ErrorDetail",
    "Result",
    "InstallResult",
    "RemoveResult",
    "RefreshResult",

    # Config models
    "ToolConfig",
    "DownloadConfig",
    "ConstraintConfig",
]
