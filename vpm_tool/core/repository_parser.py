"""Repository descriptor decoding

Descriptors come in several wire shapes. Each shape is handled by a
decode strategy; strategies are tried in order and the first one that
yields a structurally valid repository wins. Key lookup is
case-insensitive throughout.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..api.exceptions import RepositoryParseError
from ..models.repository import Repository, Package, PackageVersion

logger = logging.getLogger(__name__)


def get_ci(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Look up ``key`` in a mapping, exact match first, then ignoring case"""
    if not isinstance(data, Mapping):
        return default
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if isinstance(name, str) and name.lower() == lowered:
            return value
    return default


def get_ci_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    """Case-insensitive lookup returning a non-empty string or None"""
    value = get_ci(data, key)
    if value is None or isinstance(value, (dict, list)):
        return None
    value = str(value).strip()
    return value or None


def parse_version_entry(key: str, data: Mapping[str, Any]) -> PackageVersion:
    """Decode one entry of a package's ``versions`` map"""
    author_name = author_url = None
    author = get_ci(data, 'author')
    if isinstance(author, Mapping):
        author_name = get_ci_str(author, 'name')
        author_url = get_ci_str(author, 'url')
    elif author is not None:
        author_name = str(author) or None

    return PackageVersion(
        version=get_ci_str(data, 'version') or key,
        name=get_ci_str(data, 'name'),
        display_name=get_ci_str(data, 'displayName'),
        unity=get_ci_str(data, 'unity'),
        description=get_ci_str(data, 'description'),
        author_name=author_name,
        author_url=author_url,
        license=get_ci_str(data, 'license'),
        changelog_url=get_ci_str(data, 'changelogUrl'),
        download_url=get_ci_str(data, 'url'),
        content_hash=get_ci_str(data, 'zipSHA256'),
    )


def parse_packages(data: Mapping[str, Any]) -> Dict[str, Package]:
    """Decode a ``packages`` map; malformed entries are skipped"""
    packages = {}
    for package_id, package_data in data.items():
        if not isinstance(package_data, Mapping):
            logger.debug(f"Skipping malformed package entry: {package_id}")
            continue

        package = Package(id=str(package_id))
        versions = get_ci(package_data, 'versions')
        if isinstance(versions, Mapping):
            for key, version_data in versions.items():
                if isinstance(version_data, Mapping):
                    package.add_version(str(key), parse_version_entry(str(key), version_data))
        packages[package.id] = package
    return packages


def _repository_from_fields(data: Mapping[str, Any]) -> Optional[Repository]:
    """Build a repository from name/author/url/id/packages fields"""
    url = get_ci_str(data, 'url')
    packages = get_ci(data, 'packages')
    if not url and not isinstance(packages, Mapping):
        return None

    author = get_ci(data, 'author')
    if isinstance(author, Mapping):
        author = get_ci_str(author, 'name')

    return Repository(
        name=get_ci_str(data, 'name'),
        author=str(author) if author else None,
        url=url,
        id=get_ci_str(data, 'id'),
        packages=parse_packages(packages) if isinstance(packages, Mapping) else {},
    )


class DecodeStrategy:
    """Base class for descriptor shapes"""

    name = "base"

    def decode(self, data: Mapping[str, Any]) -> Optional[Repository]:
        """Return a repository, or None if ``data`` is not in this shape"""
        raise NotImplementedError


class DirectFieldsStrategy(DecodeStrategy):
    """``{"name", "author", "url", "id", "packages"}`` at the top level"""

    name = "direct"

    def decode(self, data: Mapping[str, Any]) -> Optional[Repository]:
        # Top-level packages next to a "repo" object belong to the wrapper shape
        if not get_ci_str(data, 'url') and isinstance(get_ci(data, 'repo'), Mapping):
            return None
        return _repository_from_fields(data)


class RepoWrapperStrategy(DecodeStrategy):
    """``{"repo": {...}}`` as written by VCC-style repository caches"""

    name = "repo"

    def decode(self, data: Mapping[str, Any]) -> Optional[Repository]:
        wrapped = get_ci(data, 'repo')
        if not isinstance(wrapped, Mapping):
            return None

        repository = _repository_from_fields(wrapped)
        if repository is None:
            return None

        if not repository.packages:
            packages = get_ci(data, 'packages')
            if isinstance(packages, Mapping):
                repository.packages = parse_packages(packages)
        return repository


class RepositoriesMapStrategy(DecodeStrategy):
    """``{"repositories": {"<repo id>": {"url": ..., "name": ...}}}``"""

    name = "repositories"

    def decode(self, data: Mapping[str, Any]) -> Optional[Repository]:
        repositories = get_ci(data, 'repositories')
        if not isinstance(repositories, Mapping):
            return None

        for repo_id, entry in repositories.items():
            if not isinstance(entry, Mapping):
                continue
            url = get_ci_str(entry, 'url')
            if url:
                return Repository(name=get_ci_str(entry, 'name'), url=url, id=str(repo_id))
        return None


DEFAULT_STRATEGIES: List[DecodeStrategy] = [
    DirectFieldsStrategy(),
    RepoWrapperStrategy(),
    RepositoriesMapStrategy(),
]


class RepositoryParser:
    """Decodes repository descriptors using an ordered list of strategies"""

    def __init__(self, strategies: Optional[List[DecodeStrategy]] = None):
        self.strategies = list(DEFAULT_STRATEGIES if strategies is None else strategies)

    def parse(self, content: Union[str, bytes, Mapping[str, Any]],
              source: Optional[str] = None) -> Repository:
        """Parse a descriptor

        Args:
            content: Raw JSON text/bytes or an already decoded object
            source: File path or URL, used in error messages

        Returns:
            Parsed repository

        Raises:
            RepositoryParseError: Content is not JSON, or no strategy matched
        """
        data = self._load(content, source)

        for strategy in self.strategies:
            repository = strategy.decode(data)
            if repository is not None:
                logger.debug(f"Decoded {source or 'descriptor'} with '{strategy.name}' strategy")
                return repository

        raise RepositoryParseError(
            f"Repository descriptor has no url or packages: {source or '<memory>'}",
            source=source
        )

    @staticmethod
    def _load(content: Union[str, bytes, Mapping[str, Any]], source: Optional[str]) -> Mapping[str, Any]:
        if isinstance(content, Mapping):
            return content

        if isinstance(content, bytes):
            try:
                content = content.decode('utf-8-sig')
            except UnicodeDecodeError as e:
                raise RepositoryParseError(f"Descriptor is not UTF-8: {e}", source=source) from e

        if not content or not content.strip():
            raise RepositoryParseError("Descriptor is empty", source=source)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RepositoryParseError(f"Invalid JSON: {e}", source=source) from e

        if not isinstance(data, Mapping):
            raise RepositoryParseError("Descriptor root must be an object", source=source)
        return data


_default_parser = RepositoryParser()


def parse_repository(content: Union[str, bytes, Mapping[str, Any]],
                     source: Optional[str] = None) -> Repository:
    """Parse a descriptor with the default strategies"""
    return _default_parser.parse(content, source)
