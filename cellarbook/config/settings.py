"""Global settings instance for Cellarbook.

This module provides a unified settings object that combines:
- Configuration from config.toml
- Secrets from secrets.env
- Environment variable overrides

The settings object provides a flat interface while internally using the
structured configuration.
"""

import logging
import secrets as secrets_module
from pathlib import Path

from cellarbook.config.loader import load_config, load_secrets
from cellarbook.config.schema import CellarbookConfig, SecretsConfig
from cellarbook.models.category import BeverageCategory

logger = logging.getLogger(__name__)


class Settings:
    """Unified settings object combining config and secrets."""

    def __init__(
        self,
        config: CellarbookConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        """Initialize settings.

        Args:
            config: Optional CellarbookConfig instance. If not provided, loads from file.
            secrets: Optional SecretsConfig instance. If not provided, loads from file.
        """
        self._config = config or load_config()
        self._secrets = secrets or load_secrets()

        if not self._secrets.secret_key:
            self._secrets.secret_key = secrets_module.token_urlsafe(32)
            logger.warning(
                "SECURITY WARNING: No secret key configured. "
                "A random secret key has been generated. Access tokens will be invalidated "
                "when the server restarts. Set CELLARBOOK_SECRET_KEY for production use."
            )

    @property
    def config(self) -> CellarbookConfig:
        """Get the full configuration object."""
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        """Get the secrets configuration object."""
        return self._secrets

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def enforce_https(self) -> bool:
        return self._config.server.enforce_https

    @property
    def rate_limit_per_minute(self) -> int:
        return self._config.server.rate_limit_per_minute

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # Database
    @property
    def mongodb_url(self) -> str:
        return self._config.database.mongodb_url

    @property
    def mongodb_database(self) -> str:
        return self._config.database.mongodb_database

    @property
    def min_pool_size(self) -> int:
        return self._config.database.min_pool_size

    @property
    def max_pool_size(self) -> int:
        return self._config.database.max_pool_size

    # Catalog
    @property
    def catalog_source_path(self) -> Path:
        return self._config.catalog.source_path

    @property
    def catalog_refresh_on_startup(self) -> bool:
        return self._config.catalog.refresh_on_startup

    # Inventory
    @property
    def vintage_categories(self) -> frozenset[BeverageCategory]:
        return frozenset(self._config.inventory.vintage_categories)

    # Auth
    @property
    def auth_rate_limit_per_minute(self) -> int:
        return self._config.auth.auth_rate_limit_per_minute

    @property
    def token_expire_minutes(self) -> int:
        return self._config.auth.token_expire_minutes

    # Logging
    @property
    def log_level(self) -> str:
        return self._config.logging.level

    # Secrets
    @property
    def secret_key(self) -> str:
        # Never None after __init__
        return self._secrets.secret_key or ""


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    The settings are loaded once and cached for subsequent calls.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance.

    This is primarily useful for testing to reload configuration.
    """
    global _settings
    _settings = None


class _SettingsProxy:
    """Proxy object that lazily loads settings on first access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return repr(get_settings())


settings = _SettingsProxy()
