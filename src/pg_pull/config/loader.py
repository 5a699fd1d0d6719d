"""Load the migration configuration from a TOML file."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from pg_pull.config.models import MigrationConfig
from pg_pull.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config.toml")


def load_migration_config(config_path: Path | str | None = None) -> MigrationConfig:
    """Load migration configuration from TOML file.

    Args:
        config_path: Path to config.toml (default: ./config.toml)

    Returns:
        Validated, immutable MigrationConfig

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or does not
            describe a complete configuration
    """
    config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not config_path.is_file():
        raise ConfigError(
            f"Config file not found: {config_path}\n"
            f"Copy config.toml.example to {config_path} and fill in your hosts."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e

    try:
        return MigrationConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}:\n{e}") from e
