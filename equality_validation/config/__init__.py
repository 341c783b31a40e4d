"""Configuration for equality validation."""

from .settings import (
    CONFIG_KEY,
    DEFAULT_CONFIG_FILE,
    SCHEMA_FILE,
    ConfigurationError,
    Settings,
    load_settings,
)

__all__ = [
    "CONFIG_KEY",
    "DEFAULT_CONFIG_FILE",
    "SCHEMA_FILE",
    "ConfigurationError",
    "Settings",
    "load_settings",
]
