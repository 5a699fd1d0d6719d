"""Exception hierarchy for migration failures.

Every failure during a run derives from ``MigrationError`` so the CLI can
report it uniformly and exit non-zero.
"""


class MigrationError(Exception):
    """Base class for all migration failures."""

    pass


class ConfigError(MigrationError):
    """Raised when the configuration file is missing or malformed."""

    pass


class RemoteConnectionError(MigrationError):
    """Raised when the SSH connection or authentication fails."""

    pass


class DatabaseError(MigrationError):
    """Raised when a statement against the local database fails."""

    pass


class CommandError(MigrationError):
    """An external command exited with a non-zero status.

    Attributes:
        command: Command line as it is safe to display (secrets redacted).
        exit_status: Exit status reported by the process.
        stderr: Captured standard error output.
    """

    def __init__(self, command: str, exit_status: int, stderr: str = ""):
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        super().__init__(f"Command failed with exit status {exit_status}: {command}")


class RemoteCommandError(CommandError):
    """A command executed over SSH failed."""

    pass


class LocalCommandError(CommandError):
    """A local command failed or could not be started."""

    pass
