"""PackageManager: the entry point for callers of vpm-tool"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import httpx

from ..core import (
    PathResolver,
    RepositoryStore,
    PackageCatalog,
    CatalogEntry,
    ManifestStore,
    ConstraintRules,
    InstallationHistory,
    HistoryEntry,
    Installer,
)
from ..models import (
    ToolConfig,
    Repository,
    PackageVersion,
    InstallResult,
    RemoveResult,
    RefreshResult,
)
from ..services import DownloadService, ConfigService
from ..utils.async_utils import CancellationToken, run_async
from .exceptions import PackageNotFoundError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
CompleteCallback = Callable[[bool], None]


@dataclass
class OutdatedPackage:
    """An installed package with a newer version available"""
    package_id: str
    installed: str
    latest: PackageVersion


class PackageManager:
    """Explicit context object wiring repositories, catalog, manifest and installer

    Every collaborator is built once per project and injected, so separate
    instances never share state.
    """

    def __init__(self,
                 project_root: Union[str, Path] = ".",
                 config: Optional[ToolConfig] = None,
                 config_path: Optional[Path] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize package manager

        Args:
            project_root: Project directory (holds Packages/)
            config: Configuration; loaded from .vpm-tool.yaml when omitted
            config_path: Explicit configuration file
            transport: httpx transport for all downloads (tests use MockTransport)
        """
        self.project_root = Path(project_root).resolve()
        self.config_service = ConfigService(self.project_root, config_path)
        self.config = config or self.config_service.config

        self.path_resolver = PathResolver(self.project_root, self.config)
        self.download_service = DownloadService(self.config.download, transport)

        self.repository_store = RepositoryStore(
            self.path_resolver.get_repositories_dir(),
            self.download_service
        )
        self.catalog = PackageCatalog(
            include_unstable=self.config.include_unstable,
            repository_priority=self.config.repository_priority
        )
        self.repository_store.add_listener(self.catalog.rebuild)

        self.manifest_store = ManifestStore(
            self.path_resolver.get_manifest_path(),
            cache_ttl=self.config.manifest_cache_ttl
        )
        self.constraints = ConstraintRules(self.config.constraints)
        self.history_log = InstallationHistory(self.path_resolver.get_history_path())
        self.installer = Installer(
            self.path_resolver,
            self.manifest_store,
            self.catalog,
            constraints=self.constraints,
            download_service=self.download_service,
            history=self.history_log,
            verify_checksums=self.config.verify_checksums
        )
        self._loaded = False

    # Repositories

    def load_repositories(self, defaults_dir: Optional[Path] = None) -> List[Repository]:
        """Load cached repositories, importing bundled defaults first if given"""
        if defaults_dir:
            self.repository_store.copy_defaults(defaults_dir)
        self._loaded = True
        return self.repository_store.load_all()

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load_repositories()

    @property
    def repositories(self) -> List[Repository]:
        self._ensure_loaded()
        return self.repository_store.repositories

    async def add_repository_async(self, url: str,
                                   cancel_token: Optional[CancellationToken] = None) -> Optional[Repository]:
        """Add a repository from its URL; None if it is already known"""
        self._ensure_loaded()
        return await self.repository_store.add_from_url(url, cancel_token=cancel_token)

    def add_repository(self, url: str) -> Optional[Repository]:
        return run_async(self.add_repository_async(url))

    def remove_repository(self, key: str) -> bool:
        """Remove a repository by name, id or url"""
        self._ensure_loaded()
        repository = self.repository_store.find(key)
        if repository is None:
            return False
        return self.repository_store.remove(repository)

    async def refresh_async(self, cancel_token: Optional[CancellationToken] = None) -> RefreshResult:
        """Re-download every URL-backed repository"""
        self._ensure_loaded()
        return await self.repository_store.refresh_all(cancel_token=cancel_token)

    def refresh(self) -> int:
        """Re-download every URL-backed repository

        Returns:
            Number of repositories refreshed
        """
        return run_async(self.refresh_async()).refreshed_count

    async def import_external_async(self, directory: Optional[Path] = None,
                                    cancel_token: Optional[CancellationToken] = None) -> int:
        """Import repositories known to VCC or ALCOM

        Returns:
            Number imported (0 when no directory is found)
        """
        self._ensure_loaded()
        directory = directory or self.repository_store.find_external_repositories_dir()
        if directory is None:
            logger.warning("No VCC/ALCOM repositories directory found")
            return 0
        return await self.repository_store.import_external(directory, cancel_token=cancel_token)

    def import_external(self, directory: Optional[Path] = None) -> int:
        return run_async(self.import_external_async(directory))

    # Resolution

    def resolve(self, package_id: str, include_unstable: Optional[bool] = None) -> Optional[PackageVersion]:
        """Latest version of a package across all repositories, or None"""
        self._ensure_loaded()
        entry = self.catalog.find_latest(package_id, include_unstable)
        return entry.version if entry else None

    def get_entry(self, package_id: str, version: Optional[str] = None,
                  include_unstable: Optional[bool] = None) -> CatalogEntry:
        """Catalog entry for an exact version, or the latest one

        Raises:
            PackageNotFoundError: Package or version is unknown
        """
        self._ensure_loaded()
        if version:
            entry = self.catalog.find_version(package_id, version)
        else:
            entry = self.catalog.find_latest(package_id, include_unstable)
        if entry is None:
            raise PackageNotFoundError(package_id, version)
        return entry

    def search(self, query: str = "", author: Optional[str] = None,
               include_unstable: Optional[bool] = None) -> List[CatalogEntry]:
        self._ensure_loaded()
        return self.catalog.search(query, author=author, include_unstable=include_unstable)

    def outdated(self, include_unstable: Optional[bool] = None) -> List[OutdatedPackage]:
        """Installed packages for which a newer base version is published"""
        self._ensure_loaded()
        outdated = []
        for package_id, installed in sorted(self.manifest_store.installed_packages().items()):
            entry = self.catalog.find_newer(package_id, installed, include_unstable)
            if entry is not None:
                outdated.append(OutdatedPackage(package_id, installed, entry.version))
        return outdated

    # Install / remove

    async def install_async(self,
                            version: PackageVersion,
                            on_progress: Optional[ProgressCallback] = None,
                            on_complete: Optional[CompleteCallback] = None,
                            cancel_token: Optional[CancellationToken] = None) -> InstallResult:
        """Install a package version"""
        self._ensure_loaded()
        return await self.installer.install(version, on_progress, on_complete, cancel_token)

    def install(self,
                version: PackageVersion,
                on_progress: Optional[ProgressCallback] = None,
                on_complete: Optional[CompleteCallback] = None) -> InstallResult:
        return run_async(self.install_async(version, on_progress, on_complete))

    def install_package(self,
                        package_id: str,
                        version: Optional[str] = None,
                        on_progress: Optional[ProgressCallback] = None,
                        include_unstable: Optional[bool] = None) -> InstallResult:
        """Resolve a package id (and optional exact version) and install it

        Raises:
            PackageNotFoundError: Nothing to install
        """
        entry = self.get_entry(package_id, version, include_unstable)
        return self.install(entry.version, on_progress)

    async def remove_async(self, package_id: str) -> RemoveResult:
        return await self.installer.remove(package_id)

    def remove(self, package_id: str) -> RemoveResult:
        """Remove an installed package"""
        return run_async(self.remove_async(package_id))

    # Manifest

    def reconcile_manifest(self) -> int:
        """Sync the manifest with the packages on disk

        Returns:
            Number of manifest entries updated
        """
        self._ensure_loaded()
        return self.manifest_store.reconcile_from_disk(self.path_resolver.get_packages_dir(), self.catalog)

    def installed_packages(self) -> Dict[str, str]:
        return self.manifest_store.installed_packages()

    def history(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        return self.history_log.entries(limit)
