# vpm_tool/models/manifest.py
"""Manifest models"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    # Malformed sections read as empty
    section = data.get(key)
    return section if isinstance(section, dict) else {}


@dataclass
class LockedPackage:
    """Locked entry: installed version plus dependency edges captured at install time"""
    version: str
    dependencies: Dict[str, str] = field(default_factory=dict)  # dependency id -> version range

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'version': self.version,
            'dependencies': dict(self.dependencies)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LockedPackage':
        """Create from dictionary"""
        dependencies = _section(data, 'dependencies')
        return cls(
            version=str(data.get('version', '')),
            dependencies={str(key): str(value) for key, value in dependencies.items()}
        )


@dataclass
class Manifest:
    """Project dependency manifest (vpm-manifest.json)"""
    dependencies: Dict[str, str] = field(default_factory=dict)  # package id -> requested version
    locked: Dict[str, LockedPackage] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)  # unknown top-level keys, kept verbatim

    def to_dict(self) -> Dict[str, Any]:
        """Convert to manifest file format"""
        data = dict(self.extra)
        data['dependencies'] = {
            package_id: {'version': version}
            for package_id, version in self.dependencies.items()
        }
        data['locked'] = {
            package_id: entry.to_dict()
            for package_id, entry in self.locked.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Manifest':
        """Create from manifest file content"""
        if not isinstance(data, dict):
            raise ValueError("Manifest root must be an object")

        dependencies = {}
        for package_id, entry in _section(data, 'dependencies').items():
            if isinstance(entry, dict):
                dependencies[package_id] = str(entry.get('version', ''))
            else:
                dependencies[package_id] = str(entry)

        locked = {}
        for package_id, entry in _section(data, 'locked').items():
            if isinstance(entry, dict):
                locked[package_id] = LockedPackage.from_dict(entry)

        extra = {
            key: value for key, value in data.items()
            if key not in ('dependencies', 'locked')
        }
        return cls(dependencies=dependencies, locked=locked, extra=extra)

    def copy(self) -> 'Manifest':
        """Deep copy"""
        return Manifest.from_dict(self.to_dict())

    def get_version(self, package_id: str) -> Optional[str]:
        """Installed version recorded for a package"""
        if package_id in self.dependencies:
            return self.dependencies[package_id]
        entry = self.locked.get(package_id)
        return entry.version if entry else None

    def contains(self, package_id: str) -> bool:
        """Check if a package is recorded in either section"""
        return package_id in self.dependencies or package_id in self.locked

    def package_ids(self) -> List[str]:
        """All recorded package ids"""
        return sorted(set(self.dependencies) | set(self.locked))

    def dependents_of(self, package_id: str) -> List[str]:
        """Packages whose locked dependencies reference ``package_id``"""
        return sorted(
            dependent for dependent, entry in self.locked.items()
            if dependent != package_id and package_id in entry.dependencies
        )


@dataclass
class InstalledPackageInfo:
    """Descriptor (package.json) found at an installed package root"""
    name: str
    version: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InstalledPackageInfo':
        """Create from package.json content"""
        author = data.get('author')
        if isinstance(author, dict):
            author = author.get('name')

        dependencies = {}
        for key in ('vpmDependencies', 'dependencies'):
            section = data.get(key)
            if isinstance(section, dict):
                dependencies.update({str(k): str(v) for k, v in section.items()})

        return cls(
            name=str(data.get('name') or ''),
            version=str(data.get('version') or ''),
            display_name=data.get('displayName'),
            description=data.get('description'),
            author=author,
            dependencies=dependencies
        )
