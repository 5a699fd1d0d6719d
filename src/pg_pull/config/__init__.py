"""Configuration management: TOML loading and config models.

Usage:
    >>> from pg_pull.config import load_migration_config, MigrationConfig
"""

from pg_pull.config.loader import load_migration_config
from pg_pull.config.models import DatabaseConfig, MigrationConfig, ServerConfig

__all__ = ["load_migration_config", "MigrationConfig", "ServerConfig", "DatabaseConfig"]
