# vpm_tool/utils/__init__.py
"""Utility functions for vpm-tool"""

from .version_utils import (
    parse_version,
    compare_versions,
    compare_base_versions,
    base_version,
    is_stable,
    sort_versions,
    get_latest_version,
    get_latest_newer_version,
)

from .file_utils import (
    atomic_write,
    atomic_copy,
    read_json,
    write_json,
    sanitize_filename,
    list_relative_files,
    remove_with_meta,
    prune_empty_dirs,
    find_file,
    safe_remove,
)

from .hash_utils import (
    calculate_sha256,
    calculate_sha256_async,
    checksums_match,
    verify_checksum,
)

from .async_utils import (
    run_async,
    retry_async,
    scale_progress,
    CancellationToken,
)

__all__ = [
    # Version utilities
    "parse_version",
    "compare_versions",
    "compare_base_versions",
    "base_version",
    "is_stable",
    "sort_versions",
    "get_latest_version",
    "get_latest_newer_version",

    # File utilities
    "atomic_write",
    "atomic_copy",
    "read_json",
    "write_json",
    "sanitize_filename",
    "list_relative_files",
    "remove_with_meta",
    "prune_empty_dirs",
    "find_file",
    "safe_remove",

    # Hash utilities
    "calculate_sha256",
    "calculate_sha256_async",
    "checksums_match",
    "verify_checksum",

    # Async utilities
    "run_async",
    "retry_async",
    "scale_progress",
    "CancellationToken",
]
