"""Pydantic models for the migration configuration."""

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseConfig(BaseModel):
    """PostgreSQL connection credentials."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=5432, gt=0, lt=65536)
    database: str = Field(min_length=1)
    username: str
    password: str  # required; may be set to "" explicitly


class ServerConfig(BaseModel):
    """Remote host reached over SSH, plus the database it serves."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(default=22, gt=0, lt=65536)
    user: str
    private_key_file: str
    known_hosts_file: str | None = None
    verify_host_key: bool = True  # false accepts any host key (insecure)
    dump_dir: str = "/tmp"
    db: DatabaseConfig

    @field_validator("private_key_file", "known_hosts_file")
    @classmethod
    def _expand_home(cls, value: str | None) -> str | None:
        return os.path.expanduser(value) if value else value


class MigrationConfig(BaseModel):
    """Complete configuration from config.toml."""

    model_config = ConfigDict(frozen=True)

    server: ServerConfig
    local_db: DatabaseConfig
