"""Package installer: download, extract, merge, manifest update"""

import asyncio
import logging
import tempfile
import weakref
import zipfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Optional, Set, Tuple

from ..api.exceptions import (
    VPMToolError,
    FileSystemError,
    InvalidPackageError,
    PackageNotFoundError,
    PackageNotInstalledError,
    ConstraintViolation,
    ChecksumMismatchError,
)
from ..constants import (
    BASE_INSTALL_PROGRESS_SHARE,
    META_SUFFIX,
    MSG_INSTALL_SUCCESS,
    MSG_REMOVE_SUCCESS,
    PACKAGE_DESCRIPTOR_FILE,
    ErrorCode,
)
from ..models.manifest import InstalledPackageInfo
from ..models.repository import PackageVersion
from ..models.result import InstallResult, InstallState, OperationStatus, RemoveResult
from ..services.download_service import DownloadService
from ..utils.async_utils import CancellationToken, scale_progress
from ..utils.file_utils import (
    atomic_copy,
    find_file,
    list_relative_files,
    prune_empty_dirs,
    read_json,
    remove_with_meta,
    safe_remove,
)
from ..utils.hash_utils import calculate_sha256_async, checksums_match
from .catalog import PackageCatalog
from .constraints import ConstraintRules
from .history import InstallationHistory
from .manifest_store import ManifestStore
from .path_resolver import PathResolver

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
CompleteCallback = Callable[[bool], None]


class PackageLocks:
    """Per package id asyncio locks, kept separately for every event loop"""

    def __init__(self):
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = \
            weakref.WeakKeyDictionary()

    def get(self, package_id: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.setdefault(loop, {})
        if package_id not in locks:
            locks[package_id] = asyncio.Lock()
        return locks[package_id]

    @asynccontextmanager
    async def hold(self, package_ids):
        """Acquire the locks of several ids in a stable order"""
        acquired = []
        try:
            for package_id in sorted(set(package_ids)):
                lock = self.get(package_id)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def merge_package(source_root: Path, target_dir: Path) -> Tuple[int, int]:
    """Upgrade a package directory in place

    Installed files missing from the new payload are deleted together with
    their ``.meta`` companions, then every payload file is copied over.
    A ``.meta`` file is kept when the file it describes is still shipped.

    Args:
        source_root: Extracted package root
        target_dir: Installed package directory

    Returns:
        (files written, files removed)
    """
    new_files = list_relative_files(source_root)
    old_files = list_relative_files(target_dir)
    new_entries = _with_parent_dirs(new_files)

    removed = 0
    for relative in sorted(old_files - new_files):
        if relative.endswith(META_SUFFIX) and relative[:-len(META_SUFFIX)] in new_entries:
            continue
        path = target_dir / relative
        if path.exists():
            removed += remove_with_meta(path)

    target_dir.mkdir(parents=True, exist_ok=True)
    for relative in sorted(new_files):
        atomic_copy(source_root / relative, target_dir / relative)

    prune_empty_dirs(target_dir)
    return len(new_files), removed


def _with_parent_dirs(files: Set[str]) -> Set[str]:
    entries = set(files)
    for relative in files:
        parts = relative.split('/')
        for depth in range(1, len(parts)):
            entries.add('/'.join(parts[:depth]))
    return entries


class Installer:
    """Installs and removes packages

    Each install moves through Idle, Downloading, Extracting, Merging and
    ManifestUpdate to Complete, or ends in Failed. The manifest is written
    last, so a failed install never leaves an entry behind.
    """

    def __init__(self,
                 paths: PathResolver,
                 manifest_store: ManifestStore,
                 catalog: PackageCatalog,
                 constraints: Optional[ConstraintRules] = None,
                 download_service: Optional[DownloadService] = None,
                 history: Optional[InstallationHistory] = None,
                 verify_checksums: bool = True):
        self.paths = paths
        self.manifest_store = manifest_store
        self.catalog = catalog
        self.constraints = constraints or ConstraintRules()
        self.download_service = download_service or DownloadService()
        self.history = history
        self.verify_checksums = verify_checksums
        self._locks = PackageLocks()

    # Install

    async def install(self,
                      version: PackageVersion,
                      on_progress: Optional[ProgressCallback] = None,
                      on_complete: Optional[CompleteCallback] = None,
                      cancel_token: Optional[CancellationToken] = None) -> InstallResult:
        """Install a package version

        Args:
            version: Version to install
            on_progress: Called with overall progress in [0, 1]
            on_complete: Called once with the success flag
            cancel_token: Cancels the download between chunks

        Returns:
            InstallResult; on failure ``error`` holds the reason
        """
        result = await self._install(version, on_progress, cancel_token)
        if on_complete:
            on_complete(result.is_success)
        return result

    async def _install(self,
                       version: PackageVersion,
                       on_progress: Optional[ProgressCallback],
                       cancel_token: Optional[CancellationToken],
                       held: FrozenSet[str] = frozenset()) -> InstallResult:
        package_id = version.package_id
        result = InstallResult(status=OperationStatus.IN_PROGRESS, package_id=package_id, version=version.version)

        if not package_id:
            return self._finish(result, InvalidPackageError("Package version has no package id"))

        # Locks already held by a dependent installing this package as its base are not taken twice
        lock_ids = {package_id, *self.constraints.exclusive_partners(package_id)} - held
        work_dir = None
        try:
            async with self._locks.hold(lock_ids):
                if not version.download_url:
                    raise InvalidPackageError(f"No download URL for {package_id}@{version.version}")

                manifest = self.manifest_store.read()
                self.constraints.check_install(package_id, manifest)

                base_edge = await self._ensure_base(
                    package_id, manifest, on_progress, cancel_token, result, held | lock_ids
                )

                if result.base_installed:
                    on_progress = scale_progress(on_progress, BASE_INSTALL_PROGRESS_SHARE, 1.0)

                temp_root = self.paths.get_temp_dir()
                temp_root.mkdir(parents=True, exist_ok=True)
                work_dir = Path(tempfile.mkdtemp(prefix=f"{package_id}_{version.version}_", dir=temp_root))

                archive = await self._download(version, work_dir, on_progress, cancel_token, result)
                package_root = await self._extract(archive, work_dir, result)
                descriptor = self._read_descriptor(package_root, package_id)
                await self._merge(package_root, package_id, result)

                result.state = InstallState.MANIFEST_UPDATE
                dependencies = dict(descriptor.dependencies) if descriptor else {}
                dependencies.update(base_edge)
                self.manifest_store.add_or_update(package_id, version.version, dependencies)

            result.state = InstallState.COMPLETE
            result.message = MSG_INSTALL_SUCCESS.format(package=package_id, version=version.version)
            if on_progress:
                on_progress(1.0)
            return self._finish(result)

        except VPMToolError as e:
            return self._finish(result, e)
        except OSError as e:
            return self._finish(result, FileSystemError(str(e), path=getattr(e, 'filename', None)))
        finally:
            if work_dir is not None:
                safe_remove(work_dir)

    async def _ensure_base(self, package_id, manifest, on_progress, cancel_token,
                           result: InstallResult, held: FrozenSet[str]) -> Dict[str, str]:
        """Install the required base package first if it is missing

        Returns:
            Dependency edge to record for ``package_id``
        """
        base_id = self.constraints.required_base(package_id)
        if not base_id:
            return {}

        installed = manifest.get_version(base_id)
        if installed:
            return {base_id: installed}

        entry = self.catalog.find_latest(base_id)
        if entry is None:
            raise PackageNotFoundError(base_id)

        logger.info(f"{base_id} is required by {package_id}, installing it first")
        base_result = await self._install(
            entry.version,
            scale_progress(on_progress, 0.0, BASE_INSTALL_PROGRESS_SHARE),
            cancel_token,
            held
        )
        if not base_result.is_success:
            raise VPMToolError(
                f"Failed to install required package {base_id}: {base_result.error}",
                base_result.error_code
            )

        result.base_installed = f"{base_id}@{entry.version.version}"
        return {base_id: entry.version.version}

    async def _download(self, version: PackageVersion, work_dir: Path,
                        on_progress, cancel_token, result: InstallResult) -> Path:
        result.state = InstallState.DOWNLOADING
        archive = work_dir / "package.zip"
        await self.download_service.download_file(
            version.download_url, archive, on_progress=on_progress, cancel_token=cancel_token
        )

        if self.verify_checksums and version.content_hash:
            actual = await calculate_sha256_async(archive)
            if not checksums_match(version.content_hash, actual):
                raise ChecksumMismatchError(version.content_hash, actual)
        return archive

    async def _extract(self, archive: Path, work_dir: Path, result: InstallResult) -> Path:
        result.state = InstallState.EXTRACTING
        extract_dir = work_dir / "extracted"

        def extract():
            try:
                with zipfile.ZipFile(archive) as zf:
                    zf.extractall(extract_dir)
            except zipfile.BadZipFile as e:
                raise InvalidPackageError(f"Archive is not a valid zip file: {e}") from e

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, extract)

        descriptor = find_file(extract_dir, PACKAGE_DESCRIPTOR_FILE)
        if descriptor is None:
            raise InvalidPackageError(f"Archive does not contain {PACKAGE_DESCRIPTOR_FILE}")
        return descriptor.parent

    @staticmethod
    def _read_descriptor(package_root: Path, package_id: str) -> Optional[InstalledPackageInfo]:
        try:
            info = InstalledPackageInfo.from_dict(read_json(package_root / PACKAGE_DESCRIPTOR_FILE))
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Could not read {PACKAGE_DESCRIPTOR_FILE} of {package_id}: {e}")
            return None

        if info.name and info.name != package_id:
            logger.warning(f"Archive for {package_id} declares name {info.name}")
        return info

    async def _merge(self, package_root: Path, package_id: str, result: InstallResult) -> None:
        result.state = InstallState.MERGING
        target_dir = self.paths.get_package_dir(package_id)

        loop = asyncio.get_running_loop()
        written, removed = await loop.run_in_executor(None, merge_package, package_root, target_dir)

        result.install_path = str(target_dir)
        result.files_written = written
        result.files_removed = removed
        logger.debug(f"Merged {package_id}: {written} written, {removed} removed")

    def _finish(self, result: InstallResult, error: Optional[VPMToolError] = None) -> InstallResult:
        if error is not None:
            result.failed_state = result.state
            result.state = InstallState.FAILED
            result.fail(error.error_code or ErrorCode.FILESYSTEM_ERROR, str(error))
            logger.error(f"Failed to install {result.package_id}: {error}")
        else:
            result.complete(OperationStatus.SUCCESS)
            logger.info(result.message)

        self._record(result)
        return result

    def _record(self, result: InstallResult) -> None:
        if self.history is not None and result.package_id:
            self.history.record(result.package_id, result.version, result.is_success, result.error)

    # Remove

    async def remove(self, package_id: str) -> RemoveResult:
        """Remove an installed package

        Protected packages and packages other installed packages depend on
        are refused; the result lists the blocking dependents.
        """
        result = RemoveResult(status=OperationStatus.IN_PROGRESS, package_id=package_id)

        try:
            async with self._locks.hold([package_id]):
                manifest = self.manifest_store.read()
                package_dir = self.paths.get_package_dir(package_id)

                if not manifest.contains(package_id) and not package_dir.exists():
                    raise PackageNotInstalledError(package_id)

                self.constraints.check_remove(package_id, manifest)

                loop = asyncio.get_running_loop()
                await loop.run_in_executor(None, remove_with_meta, package_dir)
                self.manifest_store.remove(package_id)

            result.message = MSG_REMOVE_SUCCESS.format(package=package_id)
            result.complete(OperationStatus.SUCCESS)
            logger.info(result.message)

        except ConstraintViolation as e:
            result.blocking_dependents = list(e.blocking)
            result.fail(e.error_code, str(e), blocking=list(e.blocking))
            logger.warning(str(e))
        except VPMToolError as e:
            result.fail(e.error_code, str(e))
            logger.error(f"Failed to remove {package_id}: {e}")
        except OSError as e:
            result.fail(ErrorCode.FILESYSTEM_ERROR, f"Failed to remove {package_id}: {e}")
            logger.error(result.error)

        if self.history is not None:
            self.history.record(package_id, None, result.is_success, result.error, action="remove")
        return result
