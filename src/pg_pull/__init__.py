"""pg-pull: copy a PostgreSQL database from a remote host into a local one.

Dumps the remote database over SSH, copies the archive with scp, restores
it into a fresh local database and renames that database into place.

Usage:
    from pg_pull import load_migration_config, Migration

    config = load_migration_config("config.toml")
    Migration(config).run()
"""

__version__ = "0.1.0"

# Config
from pg_pull.config.loader import load_migration_config
from pg_pull.config.models import DatabaseConfig, MigrationConfig, ServerConfig

# Errors
from pg_pull.errors import (
    CommandError,
    ConfigError,
    DatabaseError,
    LocalCommandError,
    MigrationError,
    RemoteCommandError,
    RemoteConnectionError,
)

# Migration
from pg_pull.migrate import Migration, MigrationNames

__all__ = [
    # Config
    "load_migration_config",
    "MigrationConfig",
    "ServerConfig",
    "DatabaseConfig",
    # Errors
    "MigrationError",
    "ConfigError",
    "RemoteConnectionError",
    "RemoteCommandError",
    "LocalCommandError",
    "CommandError",
    "DatabaseError",
    # Migration
    "Migration",
    "MigrationNames",
]
