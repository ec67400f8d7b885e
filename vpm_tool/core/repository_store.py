"""Repository store: load, download, persist and de-duplicate repositories"""

import logging
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Mapping, Optional
from urllib.parse import urlparse

from ..api.exceptions import (
    VPMToolError,
    CorruptionError,
    RepositoryParseError,
    OperationCancelledError,
)
from ..constants import (
    DEFAULT_REPOS_MARKER,
    ENV_XDG_DATA_HOME,
    EXTERNAL_REPO_DIRS,
    MSG_REFRESH_SUCCESS,
    REPOSITORY_FILE_PATTERN,
)
from ..models.repository import Repository
from ..models.result import OperationStatus, RefreshResult
from ..services.download_service import DownloadService
from ..utils.async_utils import CancellationToken
from ..utils.file_utils import read_json, remove_with_meta, sanitize_filename, write_json
from .repository_parser import RepositoryParser

logger = logging.getLogger(__name__)

RepositoryListener = Callable[[List[Repository]], None]


def derive_repository_name(url: str) -> str:
    """Readable repository name from a URL host

    "https://vpm.example.com/index.json" becomes "Example Repo".
    """
    host = urlparse(url).hostname if url else None
    if not host:
        return f"Repository_{datetime.now().strftime('%Y%m%d%H%M%S%f')}"

    parts = host.split('.')
    if len(parts) >= 2 and parts[-2]:
        name = parts[-2]
        return name[0].upper() + name[1:] + " Repo"
    return f"{host} Repo"


class RepositoryStore:
    """Active set of repositories backed by descriptor files in one directory"""

    def __init__(self,
                 directory: Path,
                 download_service: Optional[DownloadService] = None,
                 parser: Optional[RepositoryParser] = None):
        """Initialize repository store

        Args:
            directory: Directory of cached ``*.json`` descriptors
            download_service: HTTP service used for URL-backed repositories
            parser: Descriptor parser
        """
        self.directory = Path(directory)
        self.download_service = download_service or DownloadService()
        self.parser = parser or RepositoryParser()
        self._repositories: List[Repository] = []
        self._listeners: List[RepositoryListener] = []

    @property
    def repositories(self) -> List[Repository]:
        """Snapshot of the active repositories"""
        return list(self._repositories)

    def add_listener(self, listener: RepositoryListener) -> None:
        """Register a callback invoked with the repository list after every change"""
        self._listeners.append(listener)

    def remove_listener(self, listener: RepositoryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        snapshot = self.repositories
        for listener in list(self._listeners):
            listener(snapshot)

    # Loading

    def load_all(self) -> List[Repository]:
        """Load every descriptor file in the directory

        Files that cannot be read or parsed are deleted and skipped.

        Returns:
            Loaded repositories in file name order
        """
        self.directory.mkdir(parents=True, exist_ok=True)

        repositories = []
        for path in sorted(self.directory.glob(REPOSITORY_FILE_PATTERN)):
            if not path.is_file():
                continue
            try:
                repositories.append(self.load_file(path))
            except CorruptionError as e:
                logger.warning(f"Removing corrupt repository file {path.name}: {e}")
                self._delete_file(path)

        self._repositories = repositories
        logger.info(f"Loaded {len(repositories)} repositories from {self.directory}")
        self._notify()
        return self.repositories

    def load_file(self, path: Path) -> Repository:
        """Load one descriptor

        Raises:
            CorruptionError: The file cannot be read or parsed
        """
        try:
            repository = self.parser.parse(read_json(path), source=str(path))
        except (OSError, ValueError, RepositoryParseError) as e:
            raise CorruptionError(str(e), path=str(path)) from e

        repository.local_path = path
        return repository

    # Downloading

    async def fetch_from_url(self, url: str,
                             cancel_token: Optional[CancellationToken] = None) -> Repository:
        """Download and parse a descriptor without persisting it

        A missing name is derived from the URL host and a missing url is
        filled with the fetch URL.

        Raises:
            NetworkError: Download failed
            RepositoryParseError: Response is not a valid descriptor
        """
        content = await self.download_service.fetch_bytes(url, cancel_token=cancel_token)
        repository = self.parser.parse(content, source=url)

        if not repository.name:
            repository.name = derive_repository_name(url)
            logger.info(f"Repository at {url} has no name, using '{repository.name}'")
        if not repository.url:
            repository.url = url
        return repository

    def save(self, repository: Repository, replacing: Optional[Repository] = None) -> Path:
        """Persist a repository as pretty-printed JSON named after it

        When another active repository already owns that file name the
        sanitized id (or a counter) is appended.

        Args:
            repository: Repository to write
            replacing: Active repository whose file this one may take over
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._file_for(repository, replacing)
        write_json(path, repository.to_dict())
        repository.local_path = path
        logger.debug(f"Saved repository '{repository.display_name}' to {path}")
        return path

    def _file_for(self, repository: Repository, replacing: Optional[Repository]) -> Path:
        taken = {
            existing.local_path for existing in self._repositories
            if existing.local_path and existing is not repository and existing is not replacing
        }
        stem = sanitize_filename(repository.display_name)
        path = self.directory / f"{stem}.json"
        if path not in taken:
            return path

        if repository.id:
            path = self.directory / f"{stem}_{sanitize_filename(repository.id)}.json"
        counter = 2
        while path in taken:
            path = self.directory / f"{stem}_{counter}.json"
            counter += 1
        logger.warning(f"Another repository is already named '{repository.display_name}', saving to {path.name}")
        return path

    async def download_from_url(self, url: str,
                                cancel_token: Optional[CancellationToken] = None) -> Repository:
        """Download, parse and persist a descriptor"""
        repository = await self.fetch_from_url(url, cancel_token=cancel_token)
        self.save(repository)
        return repository

    def find_duplicate(self, repository: Repository) -> Optional[Repository]:
        """Existing repository that describes the same source, if any"""
        for existing in self._repositories:
            if existing is not repository and existing.is_duplicate_of(repository):
                return existing
        return None

    async def add_from_url(self, url: str,
                           cancel_token: Optional[CancellationToken] = None) -> Optional[Repository]:
        """Download a repository and add it to the active set

        Returns:
            The new repository, or None if it duplicates an existing one

        Raises:
            NetworkError: Download failed
            RepositoryParseError: Response is not a valid descriptor
        """
        repository = await self.fetch_from_url(url, cancel_token=cancel_token)

        duplicate = self.find_duplicate(repository)
        if duplicate is not None:
            logger.warning(f"Repository '{repository.display_name}' already exists "
                           f"as '{duplicate.display_name}', not adding duplicate")
            return None

        self.save(repository)
        self._repositories.append(repository)
        self._notify()
        return repository

    async def refresh_all(self, cancel_token: Optional[CancellationToken] = None) -> RefreshResult:
        """Re-download every URL-backed repository

        A repository that fails to refresh keeps its cached copy and the
        batch continues.

        Returns:
            RefreshResult listing refreshed, kept and skipped repositories
        """
        result = RefreshResult(status=OperationStatus.IN_PROGRESS)
        refreshed_set = []

        for repository in list(self._repositories):
            if not repository.can_refresh:
                logger.warning(f"Repository {repository.display_name} has no URL for refreshing")
                result.skipped.append(repository.display_name)
                refreshed_set.append(repository)
                continue

            try:
                updated = await self.fetch_from_url(repository.url, cancel_token=cancel_token)
                self.save(updated, replacing=repository)
            except OperationCancelledError:
                raise
            except (VPMToolError, OSError) as e:
                logger.error(f"Error refreshing repository from {repository.url}: {e}")
                result.kept.append(repository.display_name)
                result.add_warning(f"{repository.display_name}: {e}")
                refreshed_set.append(repository)
                continue

            if repository.local_path and repository.local_path != updated.local_path:
                self._delete_file(repository.local_path)
            result.refreshed.append(updated.display_name)
            refreshed_set.append(updated)

        self._repositories = refreshed_set
        self._notify()

        total = len(result.refreshed) + len(result.kept)
        result.message = MSG_REFRESH_SUCCESS.format(count=result.refreshed_count, total=total)
        result.complete(OperationStatus.PARTIAL if result.kept else OperationStatus.SUCCESS)
        return result

    # Removal

    def remove(self, repository: Repository) -> bool:
        """Delete a repository's descriptor (and ``.meta``) and drop it

        Returns:
            True if the repository was part of the active set
        """
        if repository.local_path:
            remove_with_meta(repository.local_path)

        for index, existing in enumerate(self._repositories):
            if existing is repository or (
                    existing.local_path and existing.local_path == repository.local_path):
                del self._repositories[index]
                self._notify()
                return True
        return False

    def find(self, key: str) -> Optional[Repository]:
        """Find a repository by name, id or url (case-insensitive)"""
        lowered = key.lower()
        for repository in self._repositories:
            for value in (repository.name, repository.id, repository.url):
                if value and value.lower() == lowered:
                    return repository
        return None

    # Defaults and external managers

    @property
    def defaults_marker(self) -> Path:
        return self.directory / DEFAULT_REPOS_MARKER

    def have_defaults_been_imported(self) -> bool:
        return self.defaults_marker.exists()

    def copy_defaults(self, source_dir: Path, force: bool = False) -> int:
        """Copy bundled descriptors into the repositories directory once

        The marker file is only written when every copy succeeded.

        Args:
            source_dir: Directory of default ``*.json`` descriptors
            force: Copy again and overwrite existing files

        Returns:
            Number of files copied
        """
        if not force and self.have_defaults_been_imported():
            logger.debug("Default repositories have already been imported")
            return 0

        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            logger.warning(f"Default repositories path not found: {source_dir}")
            return 0

        self.directory.mkdir(parents=True, exist_ok=True)

        copied = 0
        success = True
        for source in sorted(source_dir.glob(REPOSITORY_FILE_PATTERN)):
            target = self.directory / source.name
            if target.exists() and not force:
                continue
            try:
                shutil.copyfile(source, target)
                copied += 1
                logger.info(f"Copied default repository: {source.name}")
            except OSError as e:
                logger.error(f"Failed to copy repository {source.name}: {e}")
                success = False

        if success:
            self.defaults_marker.write_text(datetime.now().isoformat(), encoding="utf-8")

        return copied

    @staticmethod
    def external_repository_candidates(environ: Optional[Mapping[str, str]] = None,
                                       home: Optional[Path] = None,
                                       platform: Optional[str] = None) -> List[Path]:
        """Directories where VCC or ALCOM may keep their repository caches"""
        environ = os.environ if environ is None else environ
        home = Path(home) if home else Path.home()
        platform = platform or sys.platform

        roots = []
        if platform.startswith("win"):
            local_app_data = environ.get("LOCALAPPDATA")
            roots.append(Path(local_app_data) if local_app_data else home / "AppData" / "Local")
        else:
            data_home = environ.get(ENV_XDG_DATA_HOME)
            if data_home:
                roots.append(Path(data_home))
            roots.append(home / ".local" / "share")

        candidates = [root / app / subdir for root in roots for app, subdir in EXTERNAL_REPO_DIRS]
        if not platform.startswith("win"):
            candidates.extend(home / app / subdir for app, subdir in EXTERNAL_REPO_DIRS if app == "ALCOM")
        return candidates

    @classmethod
    def find_external_repositories_dir(cls, **kwargs) -> Optional[Path]:
        """First existing VCC/ALCOM repositories directory, or None"""
        for candidate in cls.external_repository_candidates(**kwargs):
            logger.debug(f"Checking for external repositories in {candidate}")
            if candidate.is_dir():
                logger.info(f"Found external repositories at {candidate}")
                return candidate
        return None

    async def import_external(self, directory: Path,
                              cancel_token: Optional[CancellationToken] = None) -> int:
        """Add the repositories referenced by another manager's cache files

        Each ``*.json`` file only has to reveal a url (and optionally a
        name and id). Known repositories are skipped; the rest are
        downloaded from their URLs.

        Returns:
            Number of repositories imported
        """
        directory = Path(directory)
        imported = 0

        for path in sorted(directory.glob(REPOSITORY_FILE_PATTERN)):
            try:
                reference = self.parser.parse(read_json(path), source=str(path))
            except (OSError, ValueError, RepositoryParseError) as e:
                logger.warning(f"Skipping {path.name}: {e}")
                continue

            if not reference.url:
                logger.warning(f"Skipping repository in {path.name}: could not find URL")
                continue

            duplicate = self.find_duplicate(reference)
            if duplicate is not None:
                logger.info(f"Skipping repository as it already exists: {reference.url}")
                continue

            try:
                added = await self.add_from_url(reference.url, cancel_token=cancel_token)
            except OperationCancelledError:
                raise
            except VPMToolError as e:
                logger.error(f"Failed to import repository {reference.url}: {e}")
                continue

            if added is not None:
                imported += 1

        logger.info(f"Imported {imported} repositories from {directory}")
        return imported

    @staticmethod
    def _delete_file(path: Path) -> None:
        try:
            remove_with_meta(path)
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
