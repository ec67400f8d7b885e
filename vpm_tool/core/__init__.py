"""Core functionality for vpm-tool"""

from .path_resolver import PathResolver
from .repository_parser import RepositoryParser, parse_repository
from .repository_store import RepositoryStore, derive_repository_name
from .catalog import PackageCatalog, CatalogEntry
from .manifest_store import ManifestStore
from .constraints import ConstraintRules
from .history import InstallationHistory, HistoryEntry
from .installer import Installer, merge_package

__all__ = [
    "PathResolver",
    "RepositoryParser",
    "parse_repository",
    "RepositoryStore",
    "derive_repository_name",
    "PackageCatalog",
    "CatalogEntry",
    "ManifestStore",
    "ConstraintRules",
    "InstallationHistory",
    "HistoryEntry",
    "Installer",
    "merge_package",
]
