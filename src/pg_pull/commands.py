"""Construction of the external tool invocations used by a migration.

Local tools are described as argument vectors (``Command``) so they run
without a shell; passwords travel in the child environment, never in argv.
The remote dump has to be a single command string for SSH exec, so it is
assembled with ``shlex`` quoting.

Usage:
    from pg_pull.commands import build_dump_command, build_restore_command

    remote_cmd = build_dump_command(config.server.db, "/tmp/app_1.dump")
    restore = build_restore_command(config.local_db, "app_restore_1", "app_1.dump")
"""

import shlex

from pydantic import BaseModel, ConfigDict, Field

from pg_pull.config.models import DatabaseConfig, ServerConfig

REDACTED = "****"

# pg_dump: custom archive format, no privileges
DUMP_OPTIONS = ["-Fc", "-x"]
# pg_restore: no privileges, no ownership, clean objects that exist
RESTORE_OPTIONS = ["-x", "-O", "-c", "--if-exists"]


class Command(BaseModel):
    """A local process invocation: argv plus extra environment variables."""

    model_config = ConfigDict(frozen=True)

    argv: list[str]
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def secrets(self) -> list[str]:
        """Values that must not appear in logs."""
        return [value for key, value in self.env.items() if "PASSWORD" in key and value]

    def display(self) -> str:
        """Render the command line for humans, secrets redacted."""
        env_part = " ".join(
            f"{key}={REDACTED if value in self.secrets else shlex.quote(value)}"
            for key, value in self.env.items()
        )
        line = shlex.join(self.argv)
        return redact(f"{env_part} {line}" if env_part else line, self.secrets)


def redact(text: str, secrets: list[str]) -> str:
    """Replace every occurrence of each secret in ``text``.

    The shell-quoted form is replaced first so secrets embedded in a
    quoted command line are hidden too.
    """
    for secret in secrets:
        if secret:
            text = text.replace(shlex.quote(secret), REDACTED)
            text = text.replace(secret, REDACTED)
    return text


def _connection_args(db: DatabaseConfig) -> list[str]:
    return ["-h", db.host, "-p", str(db.port), "-U", db.username]


def build_dump_command(db: DatabaseConfig, dump_file: str) -> str:
    """Build the pg_dump command line run on the remote host.

    Args:
        db: Credentials of the database as seen from the remote host
        dump_file: Remote path of the archive to write

    Returns:
        Shell command string with every argument quoted
    """
    argv = ["pg_dump", *_connection_args(db), "-d", db.database, *DUMP_OPTIONS, "-f", dump_file]
    return f"PGPASSWORD={shlex.quote(db.password)} {shlex.join(argv)}"


def build_remove_command(path: str) -> str:
    """Build the remote command deleting a temporary file."""
    return shlex.join(["rm", "-f", path])


def build_restore_command(db: DatabaseConfig, database: str, dump_file: str) -> Command:
    """Build the local pg_restore invocation.

    Args:
        db: Local server credentials
        database: Target database name (the restored copy, not production)
        dump_file: Local path of the archive

    Returns:
        Command with PGPASSWORD in its environment
    """
    argv = ["pg_restore", *_connection_args(db), "-d", database, *RESTORE_OPTIONS, dump_file]
    return Command(argv=argv, env={"PGPASSWORD": db.password})


def build_copy_command(server: ServerConfig, remote_file: str, local_file: str) -> Command:
    """Build the scp invocation copying the remote dump to the local machine.

    Host key handling mirrors ``server.verify_host_key`` so scp trusts the
    same hosts the SSH session does.
    """
    argv = ["scp", "-P", str(server.port), "-i", server.private_key_file, "-o", "BatchMode=yes"]
    if server.verify_host_key:
        argv += ["-o", "StrictHostKeyChecking=yes"]
        if server.known_hosts_file:
            argv += ["-o", f"UserKnownHostsFile={server.known_hosts_file}"]
    else:
        argv += ["-o", "StrictHostKeyChecking=no", "-o", "UserKnownHostsFile=/dev/null"]
    argv += [f"{server.user}@{server.host}:{remote_file}", local_file]
    return Command(argv=argv)
