"""Remote-to-local PostgreSQL migration.

Dumps a database on a remote host over SSH, copies the archive locally,
restores it into a fresh database and swaps that database into the
production name.

Every temporary resource registers its cleanup as soon as it exists; the
cleanups run in reverse order when the run ends, successfully or not. A
failed step ends the run without rolling back completed steps.

Usage:
    from pg_pull.config import load_migration_config
    from pg_pull.migrate import Migration

    config = load_migration_config("config.toml")
    Migration(config).run()
"""

import logging
import tempfile
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict
from rich.console import Console
from rich.markup import escape

from pg_pull.commands import (
    build_copy_command,
    build_dump_command,
    build_remove_command,
    build_restore_command,
    redact,
)
from pg_pull.config.models import MigrationConfig
from pg_pull.database import LocalDatabase
from pg_pull.errors import MigrationError
from pg_pull.remote import RemoteSession
from pg_pull.runner import run_local

logger = logging.getLogger(__name__)

# PostgreSQL truncates identifiers longer than this (NAMEDATALEN - 1)
MAX_IDENTIFIER_LENGTH = 63

_last_suffix = 0


# ============================================================================
# Per-run names
# ============================================================================


def new_run_suffix() -> str:
    """Return a nanosecond timestamp, strictly increasing within the process."""
    global _last_suffix
    _last_suffix = max(time.time_ns(), _last_suffix + 1)
    return str(_last_suffix)


def temp_database_name(base: str, kind: str, suffix: str) -> str:
    """Build ``<base>_<kind>_<suffix>``, shortening ``base`` to fit 63 bytes."""
    tail = f"_{kind}_{suffix}"
    room = MAX_IDENTIFIER_LENGTH - len(tail.encode())
    trimmed = base.encode()[:room].decode(errors="ignore")
    return f"{trimmed}{tail}"


class MigrationNames(BaseModel):
    """Transient identifiers for one run, all sharing one suffix."""

    model_config = ConfigDict(frozen=True)

    suffix: str
    remote_dump: str
    local_dump: str
    intermediate_db: str
    restored_db: str

    @classmethod
    def for_run(
        cls,
        config: MigrationConfig,
        work_dir: str | Path,
        suffix: str | None = None,
    ) -> "MigrationNames":
        suffix = suffix or new_run_suffix()
        dump_name = f"{config.server.db.database}_{suffix}.dump"
        production = config.local_db.database
        return cls(
            suffix=suffix,
            remote_dump=f"{config.server.dump_dir.rstrip('/')}/{dump_name}",
            local_dump=str(Path(work_dir) / dump_name),
            intermediate_db=temp_database_name(production, "migrate", suffix),
            restored_db=temp_database_name(production, "restore", suffix),
        )


def _make_work_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise MigrationError(f"Cannot create work directory {path}: {e}") from e


def _remove_local_file(path: str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        raise MigrationError(f"Cannot remove local file {path}: {e}") from e


# ============================================================================
# Orchestrator
# ============================================================================


class Migration:
    """Runs the dump, copy, restore and swap sequence once.

    Args:
        config: Loaded migration configuration
        work_dir: Local directory receiving the copied dump
            (default: the system temp directory)
        terminate_connections: Terminate other sessions on the production
            database before dropping it
        console: Rich console for progress lines
        names: Precomputed per-run names (default: derived from a fresh suffix)
    """

    def __init__(
        self,
        config: MigrationConfig,
        work_dir: str | Path | None = None,
        terminate_connections: bool = False,
        console: Console | None = None,
        names: MigrationNames | None = None,
    ):
        self._config = config
        self._work_dir = Path(work_dir) if work_dir else Path(tempfile.gettempdir())
        self._terminate_connections = terminate_connections
        self._console = console or Console()
        self.names = names or MigrationNames.for_run(config, self._work_dir)
        self._step = 0

    @property
    def _secrets(self) -> list[str]:
        return [self._config.server.db.password, self._config.local_db.password]

    def _announce(self, message: str) -> None:
        self._step += 1
        self._console.print(f"[bold]{self._step}.[/bold] {escape(message)}")
        logger.info("Step %d: %s", self._step, message)

    def _cleanup(self, message: str, action: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._announce(message)
        action(*args, **kwargs)

    def plan(self) -> list[str]:
        """Describe the steps ``run()`` would take, with secrets redacted."""
        config = self._config
        names = self.names
        production = config.local_db.database
        dump_cmd = redact(build_dump_command(config.server.db, names.remote_dump), self._secrets)
        copy_cmd = build_copy_command(config.server, names.remote_dump, names.local_dump)
        restore_cmd = build_restore_command(config.local_db, names.restored_db, names.local_dump)

        steps = [
            f"Check connection to local database {production}",
            f"SSH to {config.server.user}@{config.server.host}:{config.server.port}",
            f"Dump on {config.server.host}: {dump_cmd}",
            f"Copy dump to local: {copy_cmd.display()}",
            f"Create intermediate database {names.intermediate_db}",
            f"Create restored database {names.restored_db}",
            f"Restore: {restore_cmd.display()}",
        ]
        if self._terminate_connections:
            steps.append(f"Terminate connections to {production}")
        steps += [
            f"Drop database {production}",
            f"Rename {names.restored_db} to {production}",
            f"Drop {names.restored_db} if it still exists",
            f"Drop intermediate database {names.intermediate_db}",
            f"Remove local dump {names.local_dump}",
            f"Remove remote dump {names.remote_dump} on {config.server.host}",
        ]
        return [f"{i}. {step}" for i, step in enumerate(steps, start=1)]

    def run(self) -> MigrationNames:
        """Execute the migration.

        Returns:
            The names used by this run

        Raises:
            MigrationError: On the first failing step or cleanup action
        """
        config = self._config
        names = self.names
        local = LocalDatabase(config.local_db)
        production = local.name

        self._announce(f"Checking connection to local database {production}")
        local.check_connection()

        with ExitStack() as cleanup:
            self._announce(f"SSH to {config.server.host}")
            session = cleanup.enter_context(RemoteSession(config.server, secrets=self._secrets))

            self._announce(f"Dumping database {config.server.db.database} in {config.server.host}")
            session.run(build_dump_command(config.server.db, names.remote_dump))
            cleanup.callback(
                self._cleanup,
                f"Remove temp dump file {names.remote_dump} in {config.server.host}",
                session.run,
                build_remove_command(names.remote_dump),
            )

            self._announce(f"Copy dump file {names.remote_dump} to local {names.local_dump}")
            _make_work_dir(self._work_dir)
            run_local(build_copy_command(config.server, names.remote_dump, names.local_dump))
            cleanup.callback(
                self._cleanup,
                f"Remove local temp copied file {names.local_dump}",
                _remove_local_file,
                names.local_dump,
            )

            self._announce(f"Creating intermediate database {names.intermediate_db}")
            local.create_database(names.intermediate_db, via=production)
            cleanup.callback(
                self._cleanup,
                f"Drop intermediate database {names.intermediate_db}",
                local.drop_database,
                names.intermediate_db,
                via=production,
            )

            self._announce(f"Creating database {names.restored_db}")
            local.create_database(names.restored_db, via=names.intermediate_db)
            cleanup.callback(
                self._cleanup,
                f"Drop database {names.restored_db} if it still exists",
                local.drop_database,
                names.restored_db,
                via=names.intermediate_db,
                if_exists=True,
            )

            self._announce(f"Restoring {names.local_dump} to database {names.restored_db}")
            run_local(build_restore_command(config.local_db, names.restored_db, names.local_dump))

            if self._terminate_connections:
                self._announce(f"Terminating connections to {production}")
                local.terminate_connections(production, via=names.intermediate_db)

            self._announce(f"Dropping database {production}")
            local.drop_database(production, via=names.intermediate_db)

            self._announce(f"Renaming {names.restored_db} to {production}")
            local.rename_database(names.restored_db, production, via=names.intermediate_db)

        return names
