"""Exception definitions for vpm-tool API"""

from typing import List, Optional

from ..constants import ErrorCode


class VPMToolError(Exception):
    """Base exception for vpm-tool"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class RepositoryParseError(VPMToolError):
    """Malformed or incomplete repository descriptor"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, ErrorCode.REPOSITORY_PARSE_ERROR)
        self.source = source


class NetworkError(VPMToolError):
    """Download or descriptor fetch failure"""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR)
        self.url = url


class FileSystemError(VPMToolError):
    """Permission or lock problem while installing or removing"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, ErrorCode.FILESYSTEM_ERROR)
        self.path = path


class ConstraintViolation(VPMToolError):
    """A package rule rejected the operation"""

    def __init__(self, message: str, package_id: str, blocking: Optional[List[str]] = None):
        super().__init__(message, ErrorCode.CONSTRAINT_VIOLATION)
        self.package_id = package_id
        self.blocking = list(blocking or [])


class CorruptionError(VPMToolError):
    """On-disk file could not be parsed"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, ErrorCode.CORRUPTION)
        self.path = path


class ConfigError(VPMToolError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class PackageNotFoundError(VPMToolError):
    """Package or version not present in any repository"""

    def __init__(self, package_id: str, version: Optional[str] = None):
        if version:
            message = f"Package not found: {package_id}@{version}"
        else:
            message = f"Package not found: {package_id}"
        super().__init__(message, ErrorCode.PACKAGE_NOT_FOUND)
        self.package_id = package_id
        self.version = version


class PackageNotInstalledError(VPMToolError):
    """Package is neither on disk nor in the manifest"""

    def __init__(self, package_id: str):
        super().__init__(f"Package is not installed: {package_id}", ErrorCode.PACKAGE_NOT_INSTALLED)
        self.package_id = package_id


class ChecksumMismatchError(VPMToolError):
    """Downloaded archive does not match the published hash"""

    def __init__(self, expected: str, actual: str):
        message = f"Checksum mismatch: expected {expected}, got {actual}"
        super().__init__(message, ErrorCode.CHECKSUM_MISMATCH)
        self.expected = expected
        self.actual = actual


class InvalidPackageError(VPMToolError):
    """Archive does not contain a package descriptor"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.INVALID_PACKAGE)


class OperationCancelledError(VPMToolError):
    """The operation was cancelled through its cancellation token"""

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message, ErrorCode.OPERATION_CANCELLED)
