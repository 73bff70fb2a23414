"""Pydantic models for Cellarbook configuration.

These models define the structure of config.toml and secrets.env files.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from cellarbook.models.category import DEFAULT_VINTAGE_CATEGORIES, BeverageCategory


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    enforce_https: bool = False
    rate_limit_per_minute: int = 60
    # CORS configuration - empty list means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    """MongoDB database configuration."""

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "cellarbook"
    # Connection pool settings
    min_pool_size: int = 1
    max_pool_size: int = 20


class CatalogConfig(BaseModel):
    """Reference catalog configuration."""

    source_path: Path = Field(default_factory=lambda: Path("data/catalog.csv"))
    refresh_on_startup: bool = True


class InventoryConfig(BaseModel):
    """Inventory rules."""

    vintage_categories: list[BeverageCategory] = Field(
        default_factory=lambda: sorted(DEFAULT_VINTAGE_CATEGORIES, key=list(BeverageCategory).index)
    )

    @field_validator("vintage_categories", mode="before")
    @classmethod
    def split_comma_list(cls, v):
        """Accept a comma separated string (environment overrides)."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v


class AuthConfig(BaseModel):
    """Authentication configuration."""

    auth_rate_limit_per_minute: int = 30
    token_expire_minutes: int = 120


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class CellarbookConfig(BaseModel):
    """Main Cellarbook configuration loaded from config.toml."""

    app_name: str = "Cellarbook"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    inventory: InventoryConfig = Field(default_factory=InventoryConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    secret_key: str | None = None
