"""CLI context object"""

from pathlib import Path
from typing import Optional

import httpx

from ..api.manager import PackageManager


class Context:
    """CLI context object with lazy package manager initialization

    The manager (and with it the configuration and the repository cache)
    is only created when a command needs it, so ``--help`` works anywhere.
    """

    def __init__(self,
                 project_root: Optional[Path] = None,
                 config_path: Optional[Path] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.project_root = project_root
        self.config_path = config_path
        self.transport = transport
        self.verbose: bool = False
        self.debug: bool = False
        self._manager: Optional[PackageManager] = None

    @property
    def manager(self) -> PackageManager:
        """Package manager for the selected project (lazy loading)"""
        if self._manager is None:
            self._manager = PackageManager(
                self.project_root or Path.cwd(),
                config_path=self.config_path,
                transport=self.transport
            )
            self._manager.load_repositories()
        return self._manager
