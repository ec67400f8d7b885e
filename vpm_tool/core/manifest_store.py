"""Manifest store: cached reads, atomic writes and drift reconciliation"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from ..api.exceptions import FileSystemError
from ..constants import MANIFEST_CACHE_LIFETIME_SECONDS, PACKAGE_DESCRIPTOR_FILE
from ..models.manifest import Manifest, LockedPackage, InstalledPackageInfo
from ..utils.file_utils import read_json, write_json

if TYPE_CHECKING:
    from .catalog import PackageCatalog

logger = logging.getLogger(__name__)

# Directories Unity manages itself
BUILTIN_PACKAGE_PREFIX = "com.unity."


class ManifestStore:
    """Durable record of installed packages (vpm-manifest.json)"""

    def __init__(self,
                 path: Path,
                 cache_ttl: float = MANIFEST_CACHE_LIFETIME_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize manifest store

        Args:
            path: Manifest file
            cache_ttl: Seconds a read stays valid
            clock: Monotonic time source
        """
        self.path = Path(path)
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cached: Optional[Manifest] = None
        self._cached_at = 0.0
        self._lock = threading.RLock()

    def invalidate(self) -> None:
        """Drop the cached manifest"""
        with self._lock:
            self._cached = None

    def read(self) -> Manifest:
        """Current manifest

        A read within the cache lifetime of the previous disk read is served
        from memory. A missing or unreadable file yields an empty manifest.

        Returns:
            A copy the caller may modify freely
        """
        with self._lock:
            now = self._clock()
            if self._cached is not None and now - self._cached_at < self.cache_ttl:
                return self._cached.copy()

            self._cached = self._load()
            self._cached_at = now
            return self._cached.copy()

    def _load(self) -> Manifest:
        if not self.path.exists():
            return Manifest()

        try:
            return Manifest.from_dict(read_json(self.path))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {self.path.name}: {e}")
            return Manifest()

    def write(self, manifest: Manifest) -> None:
        """Replace the manifest file atomically and refresh the cache

        Raises:
            FileSystemError: The file could not be written
        """
        with self._lock:
            try:
                write_json(self.path, manifest.to_dict())
            except OSError as e:
                self._cached = None
                raise FileSystemError(f"Failed to write {self.path.name}: {e}", path=str(self.path)) from e

            self._cached = manifest.copy()
            self._cached_at = self._clock()

    def add_or_update(self, package_id: str, version: str,
                      dependencies: Optional[Dict[str, str]] = None) -> Manifest:
        """Record a package as installed

        Args:
            package_id: Package identifier
            version: Installed version
            dependencies: Dependency id -> version captured at install time

        Returns:
            The written manifest
        """
        with self._lock:
            manifest = self.read()
            manifest.dependencies[package_id] = version
            manifest.locked[package_id] = LockedPackage(version=version, dependencies=dict(dependencies or {}))
            self.write(manifest)
            logger.debug(f"Manifest: {package_id} -> {version}")
            return manifest

    def remove(self, package_id: str) -> bool:
        """Delete a package from both sections; dependents are left alone

        Returns:
            True if an entry was removed
        """
        with self._lock:
            manifest = self.read()
            removed = manifest.dependencies.pop(package_id, None) is not None
            removed = manifest.locked.pop(package_id, None) is not None or removed
            if removed:
                self.write(manifest)
            return removed

    def installed_version(self, package_id: str) -> Optional[str]:
        return self.read().get_version(package_id)

    def installed_packages(self) -> Dict[str, str]:
        """Package id -> installed version"""
        manifest = self.read()
        return {package_id: manifest.get_version(package_id) for package_id in manifest.package_ids()}

    def dependents_of(self, package_id: str) -> List[str]:
        """Installed packages whose locked dependencies reference ``package_id``"""
        return self.read().dependents_of(package_id)

    def reconcile_from_disk(self, packages_dir: Path,
                            catalog: Optional['PackageCatalog'] = None) -> int:
        """Bring the manifest in line with the packages present on disk

        Every package directory with a descriptor is read; when its version
        differs from the recorded one the manifest is updated. Packages the
        catalog does not know are skipped when a catalog is given.

        Args:
            packages_dir: Directory of installed packages
            catalog: Package catalog used to filter unknown ids

        Returns:
            Number of manifest entries updated
        """
        packages_dir = Path(packages_dir)
        if not packages_dir.is_dir():
            return 0

        updated = 0
        with self._lock:
            manifest = self.read()

            for package_dir in sorted(p for p in packages_dir.iterdir() if p.is_dir()):
                if package_dir.name.startswith(BUILTIN_PACKAGE_PREFIX):
                    continue

                descriptor = package_dir / PACKAGE_DESCRIPTOR_FILE
                if not descriptor.is_file():
                    continue

                try:
                    info = InstalledPackageInfo.from_dict(read_json(descriptor))
                except (OSError, ValueError, AttributeError) as e:
                    logger.error(f"Error processing package {package_dir.name}: {e}")
                    continue

                if not info.name or not info.version:
                    continue

                if catalog is not None and info.name not in catalog:
                    logger.info(f"Package {info.name} not found in any repository, skipping manifest update")
                    continue

                current = manifest.get_version(info.name)
                if current == info.version:
                    continue

                manifest.dependencies[info.name] = info.version
                manifest.locked[info.name] = LockedPackage(version=info.version, dependencies=info.dependencies)
                updated += 1
                logger.info(f"Updated manifest for {info.name} from {current} to {info.version}")

            if updated:
                self.write(manifest)

        return updated
