"""Configuration management service"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

import yaml

from ..api.exceptions import ConfigError, ProjectNotFoundError
from ..constants import ENV_APPROVAL_SECRET, ENV_CONFIG_PATH, PROJECT_CONFIG_FILE
from ..models.config import Config

logger = logging.getLogger(__name__)


def find_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Find the project root directory by looking for the config file

    Args:
        start_path: Starting directory (defaults to current directory)

    Returns:
        Project root path or None if not found
    """
    current = Path(start_path).resolve() if start_path else Path.cwd()

    # Check each directory up to root
    while current != current.parent:
        if (current / PROJECT_CONFIG_FILE).exists():
            return current
        current = current.parent

    if (current / PROJECT_CONFIG_FILE).exists():
        return current
    return None


class ConfigService:
    """Service for loading and saving project configuration"""

    def __init__(self, config_path: Path):
        """Initialize config service

        Args:
            config_path: Path to .promote-tool.yaml
        """
        self.config_path = Path(config_path)
        self.project_root = self.config_path.resolve().parent
        self._config: Optional[Config] = None

    @classmethod
    def discover(cls, config_path: Optional[Path] = None,
                 start_path: Optional[Path] = None) -> 'ConfigService':
        """Locate the project configuration

        An explicit path wins, then $PROMOTE_TOOL_CONFIG, then the nearest
        .promote-tool.yaml above start_path.

        Raises:
            ProjectNotFoundError: If no configuration can be found
        """
        explicit = config_path or os.environ.get(ENV_CONFIG_PATH)
        if explicit:
            path = Path(explicit)
            if not path.is_file():
                raise ProjectNotFoundError(f"Configuration file not found: {path}")
            return cls(path)

        root = find_project_root(start_path)
        if root is None:
            raise ProjectNotFoundError()
        return cls(root / PROJECT_CONFIG_FILE)

    @property
    def config(self) -> Config:
        """Get current configuration (lazy load)"""
        if self._config is None:
            self.load_config()
        return self._config

    def load_config(self) -> Config:
        """Load configuration from file

        Returns:
            Loaded configuration

        Raises:
            ProjectNotFoundError: If the file does not exist
            ConfigError: If the file is not valid
        """
        if not self.config_path.exists():
            raise ProjectNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            content = f.read()

        # Expand environment variables in the file
        content = os.path.expandvars(content)

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}")

        config = Config.from_dict(data)
        if not config.approval_secret:
            config.approval_secret = os.environ.get(ENV_APPROVAL_SECRET) or None

        logger.debug("Loaded configuration from %s", self.config_path)
        self._config = config
        return config

    def save_config(self, config: Optional[Config] = None) -> Path:
        """Save configuration to file

        Args:
            config: Configuration to save (uses current if not provided)

        Returns:
            Path written
        """
        if config:
            self._config = config

        if not self._config:
            raise ValueError("No configuration to save")

        # Create backup
        if self.config_path.exists():
            backup_path = self.config_path.with_suffix('.yaml.bak')
            shutil.copy2(self.config_path, backup_path)

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            yaml.dump(self._config.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info("Configuration saved to %s", self.config_path)
        return self.config_path

