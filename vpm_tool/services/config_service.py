"""Configuration management service"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import yaml

from ..api.exceptions import ConfigError
from ..constants import PROJECT_CONFIG_FILE, ENV_CONFIG_PATH
from ..models.config import ToolConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Loads and saves the project configuration (.vpm-tool.yaml)"""

    def __init__(self, project_root: Path, config_path: Optional[Path] = None):
        """Initialize config service

        Args:
            project_root: Project root directory
            config_path: Explicit configuration file (overrides VPM_TOOL_CONFIG)
        """
        self.project_root = Path(project_root)
        env_path = os.environ.get(ENV_CONFIG_PATH)
        if config_path:
            self.config_path = Path(config_path)
        elif env_path:
            self.config_path = Path(env_path)
        else:
            self.config_path = self.project_root / PROJECT_CONFIG_FILE
        self._config: Optional[ToolConfig] = None

    @property
    def config(self) -> ToolConfig:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> ToolConfig:
        """Load configuration from file

        A missing file yields the defaults.

        Returns:
            Loaded configuration

        Raises:
            ConfigError: The file is not valid YAML or has invalid keys
        """
        if not self.config_path.exists():
            logger.debug(f"No configuration at {self.config_path}, using defaults")
            self._config = ToolConfig()
            return self._config

        with open(self.config_path, 'r', encoding='utf-8') as f:
            content = f.read()

        # Simple environment variable expansion
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {self.config_path}")

        try:
            self._config = ToolConfig.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {self.config_path}: {e}") from e

        return self._config

    def save_config(self, config: Optional[ToolConfig] = None) -> Path:
        """Save configuration to file, keeping a backup of the previous one

        Args:
            config: Configuration to save (uses current if not provided)

        Returns:
            Path written
        """
        if config:
            self._config = config

        if not self._config:
            raise ConfigError("No configuration to save")

        if self.config_path.exists():
            backup_path = self.config_path.with_suffix('.yaml.bak')
            shutil.copy2(self.config_path, backup_path)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self._config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {self.config_path}")
        return self.config_path
