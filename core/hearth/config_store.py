"""
JSON config persistence.

The config document holds the server settings, the relay switch list and the
full thermostat state, and is rewritten after every evaluation. On first run
the defaults may be seeded from a YAML options file (development setup).
"""

import json
import logging
import os

import yaml

from .exceptions import ConfigurationError
from .settings import HearthConfig, default_config

logger = logging.getLogger(__name__)


class ConfigStore:
    """Reads and writes the controller config file."""

    def __init__(self, path: str, defaults_path: str | None = None):
        """Initialize config store.

        Args:
            path: JSON config file
            defaults_path: Optional YAML file whose `options` section seeds a new config
        """
        self.path = path
        self.defaults_path = defaults_path

    def load(self) -> HearthConfig:
        """Load the config, creating a default one if missing or not valid JSON.

        A file that parses but holds invalid values is never replaced.

        Raises:
            ConfigurationError: If the file parses but describes an invalid config
        """
        if os.path.exists(self.path):
            try:
                with open(self.path) as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning(f"Config {self.path} is unreadable, creating default config: {e}")
            else:
                config = self._parse(data, self.path)
                logger.info(f"Loaded config from {self.path}")
                return config
        else:
            logger.info(f"Config {self.path} does not exist, creating default config")

        config = self._default_config()
        if not self.save(config):
            logger.warning("Default config could not be written, continuing in memory")
        return config

    def save(self, config: HearthConfig) -> bool:
        """Write the config atomically.

        Returns:
            True if the file was written
        """
        tmp_path = f"{self.path}.tmp"
        try:
            directory = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(config.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write config to {self.path}: {e}")
            return False

        logger.debug(f"Saved config to {self.path}")
        return True

    def _parse(self, data, source: str) -> HearthConfig:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config {source} must hold an object, got {type(data).__name__}")
        try:
            return HearthConfig.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Invalid config {source}: {e}") from e

    def _default_config(self) -> HearthConfig:
        data = default_config().to_dict()

        if self.defaults_path and os.path.exists(self.defaults_path):
            try:
                with open(self.defaults_path) as f:
                    yaml_config = yaml.safe_load(f) or {}
                options = yaml_config.get("options", yaml_config)
                data.update(options)
                logger.info(f"Seeded default config from {self.defaults_path}")
            except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Could not load defaults from {self.defaults_path}: {e}")

        return self._parse(data, self.defaults_path or "defaults")
