"""
Configuration repository for equality validation.

Holds nested configuration addressed with dot-notation keys, loads YAML
configuration files, merges package defaults beneath application values,
and validates the result against a JSON schema.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

import jsonschema
import yaml

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""

    pass


CONFIG_KEY = "equality-validation"
CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_FILE = os.path.join(CONFIG_DIR, "equality-validation.yaml")
SCHEMA_FILE = os.path.join(CONFIG_DIR, "equality-validation.schema.json")

# Environment variable -> configuration key
ENVIRONMENT_OVERRIDES = {
    "EQUALITY_VALIDATION_LOCALE": f"{CONFIG_KEY}.locale",
    "EQUALITY_VALIDATION_STORE_DRIVER": f"{CONFIG_KEY}.store.driver",
    "EQUALITY_VALIDATION_TABLE_PREFIX": f"{CONFIG_KEY}.store.table_prefix",
    "AWS_REGION": f"{CONFIG_KEY}.store.region_name",
}


class Settings:
    """
    Dot-notation configuration repository.

    Example:
        >>> settings = Settings({"equality-validation": {"store": {"driver": "memory"}}})
        >>> settings.get("equality-validation.store.driver")
        "memory"
    """

    def __init__(self, items: Optional[Dict[str, Any]] = None):
        self.items: Dict[str, Any] = copy.deepcopy(items) if items else {}

    def has(self, key: str) -> bool:
        node: Any = self.items
        for segment in key.split("."):
            if not isinstance(node, dict) or segment not in node:
                return False
            node = node[segment]
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted key, or default when any segment is missing."""
        node: Any = self.items
        for segment in key.split("."):
            if not isinstance(node, dict) or segment not in node:
                return default
            node = node[segment]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set dotted key, creating intermediate mappings as needed."""
        segments = key.split(".")
        node = self.items
        for segment in segments[:-1]:
            if not isinstance(node.get(segment), dict):
                node[segment] = {}
            node = node[segment]
        node[segments[-1]] = value

    def all(self) -> Dict[str, Any]:
        return copy.deepcopy(self.items)

    @staticmethod
    def read_yaml(path: str) -> Dict[str, Any]:
        """
        Read a YAML configuration file.

        Args:
            path: Path to the YAML file

        Returns:
            Parsed mapping (empty for an empty file)

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the YAML is invalid or not a mapping
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except FileNotFoundError:
            logger.error(f"Configuration file not found: {path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in configuration: {e}")
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        return content

    def load_file(self, path: str, key: str) -> None:
        """Load an application configuration file under key, replacing any current value."""
        self.set(key, self.read_yaml(path))
        logger.debug(f"Loaded configuration '{key}' from {path}")

    def merge_config_from(self, path: str, key: str, schema_path: Optional[str] = None) -> None:
        """
        Merge package defaults from path beneath the current value of key.

        Application values win. The merge is shallow: an application
        "store" block replaces the package "store" block as a whole.

        Raises:
            ConfigurationError: If the merged configuration fails schema validation
        """
        defaults = self.read_yaml(path)
        current = self.get(key) or {}
        if not isinstance(current, dict):
            raise ConfigurationError(f"Configuration '{key}' must be a mapping")

        self.set(key, {**defaults, **current})

        if schema_path:
            self.validate(key, schema_path)

        logger.debug(f"Merged package configuration '{key}' from {path}")

    def validate(self, key: str, schema_path: str) -> None:
        """
        Validate the configuration at key against a JSON schema file.

        Raises:
            ConfigurationError: If the schema is invalid or the configuration violates it
        """
        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read configuration schema {schema_path}: {e}") from e

        try:
            jsonschema.validate(instance=self.get(key, {}), schema=schema)
        except jsonschema.ValidationError as e:
            logger.error(f"Configuration '{key}' failed schema validation: {e.message}")
            raise ConfigurationError(f"Configuration '{key}' validation failed: {e.message}") from e
        except jsonschema.SchemaError as e:
            logger.error(f"Configuration schema is invalid: {e.message}")
            raise ConfigurationError(f"Configuration schema is invalid: {e.message}") from e

    def apply_environment(self) -> None:
        """Apply environment variable overrides (see ENVIRONMENT_OVERRIDES)."""
        for variable, key in ENVIRONMENT_OVERRIDES.items():
            value = os.getenv(variable)
            if value:
                self.set(key, value)
                logger.debug(f"Configuration '{key}' overridden by ${variable}")


def load_settings(config_path: Optional[str] = None) -> Settings:
    """
    Build settings from package defaults, an optional application file and the environment.

    Args:
        config_path: Application override file (e.g. a published config/equality-validation.yaml)
    """
    settings = Settings()
    if config_path and os.path.exists(config_path):
        settings.load_file(config_path, CONFIG_KEY)
    settings.merge_config_from(DEFAULT_CONFIG_FILE, CONFIG_KEY)
    settings.apply_environment()
    settings.validate(CONFIG_KEY, SCHEMA_FILE)
    return settings
