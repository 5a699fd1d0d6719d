"""Shared fixtures: a complete configuration, as TOML and as a model."""

import textwrap
from pathlib import Path

import pytest

from pg_pull.config.models import MigrationConfig

CONFIG_TOML = textwrap.dedent("""\
    [server]
    host = "db.example.com"
    port = 2222
    user = "deploy"
    private_key_file = "/keys/id_ed25519"

    [server.db]
    host = "10.0.0.5"
    port = 5433
    database = "shop"
    username = "shop_ro"
    password = "s3cret-remote"

    [local_db]
    host = "localhost"
    port = 5432
    database = "shop"
    username = "postgres"
    password = "s3cret-local"
""")


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(CONFIG_TOML)
    return path


@pytest.fixture
def config() -> MigrationConfig:
    return MigrationConfig.model_validate({
        "server": {
            "host": "db.example.com",
            "port": 2222,
            "user": "deploy",
            "private_key_file": "/keys/id_ed25519",
            "db": {
                "host": "10.0.0.5",
                "port": 5433,
                "database": "shop",
                "username": "shop_ro",
                "password": "s3cret-remote",
            },
        },
        "local_db": {
            "host": "localhost",
            "port": 5432,
            "database": "shop",
            "username": "postgres",
            "password": "s3cret-local",
        },
    })
