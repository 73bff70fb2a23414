"""Cellarbook configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/cellarbook/config.toml (user config)
4. /etc/cellarbook/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from cellarbook.config.schema import (
    AuthConfig,
    CatalogConfig,
    CellarbookConfig,
    DatabaseConfig,
    InventoryConfig,
    LoggingConfig,
    SecretsConfig,
    ServerConfig,
)
from cellarbook.config.settings import get_settings, reset_settings, settings

__all__ = [
    "AuthConfig",
    "CatalogConfig",
    "CellarbookConfig",
    "DatabaseConfig",
    "InventoryConfig",
    "LoggingConfig",
    "SecretsConfig",
    "ServerConfig",
    "get_settings",
    "reset_settings",
    "settings",
]
