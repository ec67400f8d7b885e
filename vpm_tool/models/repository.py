# vpm_tool/models/repository.py
"""Repository, package and package version models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Any


@dataclass(frozen=True)
class PackageVersion:
    """A single published release of a package"""
    version: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    unity: Optional[str] = None  # Unity compatibility
    description: Optional[str] = None
    author_name: Optional[str] = None
    author_url: Optional[str] = None
    license: Optional[str] = None
    changelog_url: Optional[str] = None
    download_url: Optional[str] = None
    content_hash: Optional[str] = None  # zipSHA256
    package: Optional['Package'] = field(default=None, repr=False, compare=False, hash=False)

    @property
    def package_id(self) -> Optional[str]:
        """Id of the owning package, falling back to the version's own name"""
        if self.package is not None:
            return self.package.id
        return self.name

    @property
    def label(self) -> str:
        """Display name, falling back to the package id"""
        return self.display_name or self.package_id or self.name or "?"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to repository descriptor wire format"""
        data = {
            'name': self.name,
            'displayName': self.display_name,
            'version': self.version,
            'unity': self.unity,
            'description': self.description,
            'license': self.license,
            'changelogUrl': self.changelog_url,
            'url': self.download_url,
            'zipSHA256': self.content_hash,
        }
        data = {key: value for key, value in data.items() if value is not None}

        if self.author_name or self.author_url:
            author = {}
            if self.author_name:
                author['name'] = self.author_name
            if self.author_url:
                author['url'] = self.author_url
            data['author'] = author

        return data


@dataclass
class Package:
    """A package with every version published for it"""
    id: str
    versions: Dict[str, PackageVersion] = field(default_factory=dict)

    def add_version(self, key: str, version: PackageVersion) -> PackageVersion:
        """Attach a version, binding its back-reference to this package

        Args:
            key: Version string exactly as published
            version: Parsed version

        Returns:
            The stored version
        """
        if version.package is not self:
            object.__setattr__(version, 'package', self)
        self.versions[key] = version
        return version

    def get_latest_version(self, include_unstable: bool = True) -> Optional[PackageVersion]:
        """Get the latest version of this package"""
        from ..utils.version_utils import get_latest_version
        return get_latest_version(self, include_unstable)

    def get_latest_newer_version(self,
                                 current_version: str,
                                 include_unstable: bool = True) -> Optional[PackageVersion]:
        """Get the latest version newer than ``current_version``"""
        from ..utils.version_utils import get_latest_newer_version
        return get_latest_newer_version(self, current_version, include_unstable)

    def get_display_name(self) -> str:
        """Display name of the latest version, or the package id"""
        latest = self.get_latest_version()
        if latest and latest.display_name:
            return latest.display_name
        return self.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to repository descriptor wire format"""
        return {
            'versions': {key: version.to_dict() for key, version in self.versions.items()}
        }


@dataclass
class Repository:
    """A named source of packages"""
    name: Optional[str] = None
    author: Optional[str] = None
    url: Optional[str] = None
    id: Optional[str] = None
    packages: Dict[str, Package] = field(default_factory=dict)
    local_path: Optional[Path] = field(default=None, compare=False)

    @property
    def display_name(self) -> str:
        """Name used in listings"""
        return self.name or self.id or self.url or "Unnamed"

    @property
    def can_refresh(self) -> bool:
        """Only URL-backed repositories can be re-downloaded"""
        return bool(self.url)

    @property
    def package_count(self) -> int:
        """Number of packages published by this repository"""
        return len(self.packages)

    def is_duplicate_of(self, other: 'Repository') -> bool:
        """Check whether ``other`` describes the same repository

        Two repositories are the same when both Name and Id are present
        and equal, or when their URLs are equal. Comparisons ignore case.
        """
        if self.name and self.id and other.name and other.id:
            if self.name.lower() == other.name.lower() and self.id.lower() == other.id.lower():
                return True

        if self.url and other.url:
            return self.url.lower() == other.url.lower()

        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to repository descriptor wire format"""
        data = {
            'name': self.name,
            'author': self.author,
            'url': self.url,
            'id': self.id,
        }
        data = {key: value for key, value in data.items() if value is not None}
        data['packages'] = {
            package_id: package.to_dict() for package_id, package in self.packages.items()
        }
        return data
