"""Package catalog aggregated across repositories"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ..models.repository import Repository, Package, PackageVersion
from ..utils.version_utils import release_order_key

logger = logging.getLogger(__name__)


@dataclass
class CatalogEntry:
    """Resolved view of one package: the chosen version and where it comes from"""
    package_id: str
    version: PackageVersion
    repository: Repository
    repositories: List[str] = field(default_factory=list)  # every repository publishing the id

    @property
    def in_multiple_repositories(self) -> bool:
        return len(self.repositories) > 1

    @property
    def display_name(self) -> str:
        return self.version.display_name or self.package_id


def order_repositories(repositories: List[Repository], priority: List[str]) -> List[Repository]:
    """Order repositories by configured priority, then by their current order

    Priority entries match a repository's id or name, ignoring case.
    """
    ordered = []
    seen = set()
    for key in priority:
        lowered = key.lower()
        for repository in repositories:
            if id(repository) in seen:
                continue
            if any(value and value.lower() == lowered for value in (repository.id, repository.name)):
                ordered.append(repository)
                seen.add(id(repository))

    for repository in repositories:
        if id(repository) not in seen:
            ordered.append(repository)
            seen.add(id(repository))

    return ordered


class PackageCatalog:
    """Flattens repositories into one package view and answers version queries

    When the same package id is published by several repositories, only
    the highest version across all of them is selected. Equal versions
    are resolved in favour of the repository that comes first in
    priority order.
    """

    def __init__(self,
                 repositories: Optional[List[Repository]] = None,
                 include_unstable: bool = False,
                 repository_priority: Optional[List[str]] = None):
        self.include_unstable = include_unstable
        self.repository_priority = list(repository_priority or [])
        self._sources: Dict[str, List[Tuple[Repository, Package]]] = {}
        self._repositories: List[Repository] = []
        self.rebuild(repositories or [])

    def rebuild(self, repositories: List[Repository]) -> None:
        """Rebuild the package index from a repository list"""
        self._repositories = order_repositories(list(repositories), self.repository_priority)

        sources: Dict[str, List[Tuple[Repository, Package]]] = {}
        for repository in self._repositories:
            for package_id, package in repository.packages.items():
                sources.setdefault(package_id, []).append((repository, package))

        self._sources = sources
        logger.debug(f"Catalog rebuilt: {len(sources)} packages from {len(self._repositories)} repositories")

    # Usable directly as a RepositoryStore listener
    on_repositories_changed = rebuild

    @property
    def repositories(self) -> List[Repository]:
        return list(self._repositories)

    def package_ids(self) -> List[str]:
        return sorted(self._sources)

    def __contains__(self, package_id: str) -> bool:
        return package_id in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def _unstable(self, include_unstable: Optional[bool]) -> bool:
        return self.include_unstable if include_unstable is None else include_unstable

    def _select(self,
                package_id: str,
                pick: Callable[[Package], Optional[PackageVersion]]) -> Optional[CatalogEntry]:
        sources = self._sources.get(package_id)
        if not sources:
            return None

        best: Optional[Tuple[Repository, PackageVersion]] = None
        for repository, package in sources:
            candidate = pick(package)
            if candidate is None:
                continue
            if best is None or release_order_key(candidate.version) > release_order_key(best[1].version):
                best = (repository, candidate)

        if best is None:
            return None

        return CatalogEntry(
            package_id=package_id,
            version=best[1],
            repository=best[0],
            repositories=[repository.display_name for repository, _ in sources]
        )

    def find_latest(self, package_id: str,
                    include_unstable: Optional[bool] = None) -> Optional[CatalogEntry]:
        """Latest version of a package across all repositories"""
        unstable = self._unstable(include_unstable)
        return self._select(package_id, lambda p: p.get_latest_version(unstable))

    def find_newer(self, package_id: str, current_version: str,
                   include_unstable: Optional[bool] = None) -> Optional[CatalogEntry]:
        """Latest version whose base exceeds ``current_version``, or None"""
        unstable = self._unstable(include_unstable)
        return self._select(package_id, lambda p: p.get_latest_newer_version(current_version, unstable))

    def find_version(self, package_id: str, version: str) -> Optional[CatalogEntry]:
        """Exact version string, taken from the highest priority repository publishing it"""
        return self._select(package_id, lambda p: p.versions.get(version))

    def versions_of(self, package_id: str) -> List[str]:
        """Every published version string of a package, newest first"""
        versions = set()
        for _, package in self._sources.get(package_id, []):
            versions.update(v.version for v in package.versions.values())
        return sorted(versions, key=release_order_key, reverse=True)

    def entries(self, include_unstable: Optional[bool] = None) -> List[CatalogEntry]:
        """One resolved entry per package id, sorted by id"""
        entries = []
        for package_id in self.package_ids():
            entry = self.find_latest(package_id, include_unstable)
            if entry is not None:
                entries.append(entry)
        return entries

    def search(self, query: str = "",
               author: Optional[str] = None,
               include_unstable: Optional[bool] = None) -> List[CatalogEntry]:
        """Case-insensitive search over id, display name and description

        Args:
            query: Text to look for (empty matches everything)
            author: Only packages whose author name contains this text
            include_unstable: Consider pre-release versions

        Returns:
            Matching entries sorted by display name
        """
        query = (query or "").lower()
        author = author.lower() if author else None

        matches = []
        for entry in self.entries(include_unstable):
            version = entry.version
            haystack = " ".join(
                value for value in (entry.package_id, version.display_name, version.description) if value
            ).lower()
            if query and query not in haystack:
                continue
            if author and author not in (version.author_name or "").lower():
                continue
            matches.append(entry)

        return sorted(matches, key=lambda e: e.display_name.lower())
