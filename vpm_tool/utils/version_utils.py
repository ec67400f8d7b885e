"""Version ordering and stability classification"""

import functools
from typing import Optional, List, Tuple, TYPE_CHECKING

from packaging.version import parse, Version, InvalidVersion

from ..constants import UNSTABLE_MARKERS

if TYPE_CHECKING:
    from ..models.repository import Package, PackageVersion


def parse_version(version_str: str) -> Optional[Version]:
    """
    Parse version string with PEP 440 rules

    Args:
        version_str: Version string

    Returns:
        Version object or None if invalid
    """
    try:
        return parse(version_str)
    except InvalidVersion:
        return None


def _numeric_parts(version: str) -> Optional[Tuple[int, ...]]:
    """Dot-delimited numeric components, or None if any component is not a number"""
    if not version:
        return None

    parts = []
    for component in version.strip().split('.'):
        if not component.isdigit():
            return None
        parts.append(int(component))
    return tuple(parts)


def _cmp(left, right) -> int:
    return (left > right) - (left < right)


def compare_versions(version1: str, version2: str) -> int:
    """
    Compare two versions component by component

    Components are compared numerically from left to right and the shorter
    sequence is padded with zeros. A string with a non-numeric component
    sorts below every parsable version; two unparsable strings compare as
    plain strings.

    Args:
        version1: First version
        version2: Second version

    Returns:
        -1 if version1 < version2
        0 if version1 == version2
        1 if version1 > version2
    """
    parts1 = _numeric_parts(version1)
    parts2 = _numeric_parts(version2)

    if parts1 is None and parts2 is None:
        return _cmp(version1 or "", version2 or "")
    if parts1 is None:
        return -1
    if parts2 is None:
        return 1

    length = max(len(parts1), len(parts2))
    padded1 = parts1 + (0,) * (length - len(parts1))
    padded2 = parts2 + (0,) * (length - len(parts2))
    return _cmp(padded1, padded2)


def base_version(version: str) -> str:
    """Version without its pre-release suffix ("1.2.3-beta.1" -> "1.2.3")"""
    return (version or "").split('-', 1)[0]


def compare_base_versions(version1: str, version2: str) -> int:
    """Compare two versions ignoring pre-release suffixes"""
    return compare_versions(base_version(version1), base_version(version2))


def is_stable(version: str) -> bool:
    """
    Check if a version string is a stable release

    Args:
        version: Version string

    Returns:
        True if the version has no '-' suffix, no pre-release marker and
        only numeric components
    """
    if not version or '-' in version:
        return False
    if UNSTABLE_MARKERS.search(version):
        return False
    return _numeric_parts(version) is not None


def _compare_release_order(version1: str, version2: str) -> int:
    """Full release ordering used to rank candidates"""
    result = compare_base_versions(version1, version2)
    if result:
        return result

    # Same base: the stable release outranks its pre-releases
    stable1 = is_stable(version1)
    stable2 = is_stable(version2)
    if stable1 != stable2:
        return 1 if stable1 else -1

    parsed1 = parse_version(version1)
    parsed2 = parse_version(version2)
    if parsed1 is not None and parsed2 is not None:
        return _cmp(parsed1, parsed2)
    return _cmp(version1, version2)


release_order_key = functools.cmp_to_key(_compare_release_order)


def sort_versions(versions: List[str], reverse: bool = True) -> List[str]:
    """
    Sort version strings by release order

    Args:
        versions: List of version strings
        reverse: Sort in descending order

    Returns:
        Sorted list
    """
    return sorted(versions, key=release_order_key, reverse=reverse)


def _candidates(package: 'Package', include_unstable: bool) -> List['PackageVersion']:
    versions = list(package.versions.values()) if package else []
    if not include_unstable:
        versions = [v for v in versions if is_stable(v.version)]
    return versions


def get_latest_version(package: 'Package',
                       include_unstable: bool = True) -> Optional['PackageVersion']:
    """
    Get the latest version of a package

    Args:
        package: Package to inspect
        include_unstable: Consider pre-release versions

    Returns:
        Latest version or None
    """
    candidates = _candidates(package, include_unstable)
    if not candidates:
        return None
    return max(candidates, key=lambda v: release_order_key(v.version))


def get_latest_newer_version(package: 'Package',
                             current_version: str,
                             include_unstable: bool = True) -> Optional['PackageVersion']:
    """
    Get the latest version whose base strictly exceeds the current one

    Args:
        package: Package to inspect
        current_version: Installed version
        include_unstable: Consider pre-release versions

    Returns:
        Newer version or None when nothing qualifies
    """
    if not current_version:
        return None

    candidates = [
        v for v in _candidates(package, include_unstable)
        if compare_base_versions(v.version, current_version) > 0
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda v: release_order_key(v.version))
