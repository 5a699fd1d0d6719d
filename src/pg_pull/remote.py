"""SSH session to the remote host.

Uses paramiko with public-key authentication from the configured key file.

Usage:
    with RemoteSession(config.server) as session:
        session.run("pg_dump ... -f /tmp/app.dump")
"""

import logging

import paramiko

from pg_pull.commands import redact
from pg_pull.config.models import ServerConfig
from pg_pull.errors import RemoteCommandError, RemoteConnectionError

logger = logging.getLogger(__name__)


class RemoteSession:
    """One authenticated SSH connection held for the whole run.

    Commands run sequentially over the same connection; the connection is
    closed when the context exits, whether or not an error occurred.
    """

    def __init__(self, server: ServerConfig, secrets: list[str] | None = None):
        """Initialize with server configuration.

        Args:
            server: Remote host, port, user and key file
            secrets: Strings to redact when commands are logged or reported
        """
        self._server = server
        self._secrets = secrets or []
        self._client: paramiko.SSHClient | None = None

    def __enter__(self) -> "RemoteSession":
        """Context manager entry - opens the connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the connection."""
        self.close()

    def connect(self) -> None:
        server = self._server
        client = paramiko.SSHClient()

        try:
            if server.verify_host_key:
                client.load_system_host_keys()
                if server.known_hosts_file:
                    client.load_host_keys(server.known_hosts_file)
                client.set_missing_host_key_policy(paramiko.RejectPolicy())
            else:
                logger.warning(
                    "Host key verification disabled for %s; any host key is accepted",
                    server.host,
                )
                client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

            client.connect(
                hostname=server.host,
                port=server.port,
                username=server.user,
                key_filename=server.private_key_file,
                allow_agent=False,
                look_for_keys=False,
            )
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise RemoteConnectionError(
                f"Failed to connect to {server.user}@{server.host}:{server.port}: {e}"
            ) from e

        self._client = client
        logger.debug("Connected to %s@%s:%s", server.user, server.host, server.port)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def run(self, command: str) -> None:
        """Execute a command on the remote host and wait for it to exit.

        Args:
            command: Shell command string

        Raises:
            RuntimeError: If the session is not connected
            RemoteCommandError: If the command exits non-zero; carries stderr
            RemoteConnectionError: If the channel cannot be opened
        """
        if self._client is None:
            raise RuntimeError("Remote session not connected. Use with statement.")

        display = redact(command, self._secrets)
        logger.debug("Running remote command: %s", display)

        try:
            _, stdout, stderr = self._client.exec_command(command)
            err = stderr.read().decode(errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except paramiko.SSHException as e:
            raise RemoteConnectionError(f"Remote command could not run: {e}") from e

        if exit_status != 0:
            raise RemoteCommandError(display, exit_status, err)
