"""Path resolution module for vpm-tool"""

import os
from pathlib import Path
from typing import Optional, Union

from ..api.exceptions import InvalidPackageError
from ..constants import ENV_PACKAGES_DIR, ENV_REPOS_DIR
from ..models.config import ToolConfig


class PathResolver:
    """Resolves the directories and files of a project"""

    def __init__(self, project_root: Union[str, Path], config: Optional[ToolConfig] = None):
        """Initialize path resolver

        Args:
            project_root: Root directory of the project
            config: Tool configuration (defaults when omitted)
        """
        self.project_root = Path(project_root).resolve()
        self.config = config or ToolConfig()

    def resolve(self, path: Union[str, Path]) -> Path:
        """Resolve a path relative to project root

        Args:
            path: Path to resolve (can be relative or absolute)

        Returns:
            Resolved absolute path
        """
        path = Path(path)

        if path.is_absolute():
            return path

        return (self.project_root / path).resolve()

    def expand_path(self, path: str) -> Path:
        """Expand environment variables and user home, then resolve"""
        return self.resolve(os.path.expanduser(os.path.expandvars(path)))

    def get_packages_dir(self) -> Path:
        """Directory holding one sub-directory per installed package"""
        override = os.environ.get(ENV_PACKAGES_DIR)
        return self.expand_path(override or self.config.packages_dir)

    def get_repositories_dir(self) -> Path:
        """Directory holding cached repository descriptors"""
        override = os.environ.get(ENV_REPOS_DIR)
        return self.expand_path(override or self.config.repositories_dir)

    def get_manifest_path(self) -> Path:
        """Path of the project manifest"""
        return self.get_packages_dir() / self.config.manifest_file

    def get_history_path(self) -> Path:
        """Path of the installation history file"""
        return self.expand_path(self.config.history_file)

    def get_temp_dir(self) -> Path:
        """Directory for downloads and extraction"""
        return self.config.get_temp_dir()

    def get_package_dir(self, package_id: str) -> Path:
        """Install directory of a package

        Args:
            package_id: Package identifier

        Returns:
            ``<packages_dir>/<package_id>``

        Raises:
            InvalidPackageError: The id would resolve outside the packages directory
        """
        packages_dir = self.get_packages_dir()
        if not package_id or package_id in ('.', '..') or any(sep in package_id for sep in ('/', '\\')):
            raise InvalidPackageError(f"Invalid package id: {package_id!r}")
        return packages_dir / package_id

    def make_relative(self, path: Union[str, Path]) -> Path:
        """Make a path relative to project root

        Args:
            path: Path to make relative

        Returns:
            Relative path
        """
        path = Path(path).resolve()

        try:
            return path.relative_to(self.project_root)
        except ValueError:
            # Path is not under project root
            return path
