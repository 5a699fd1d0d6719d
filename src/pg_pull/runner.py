"""Run local commands, capturing standard error."""

import logging
import os
import subprocess

from pg_pull.commands import Command
from pg_pull.errors import LocalCommandError

logger = logging.getLogger(__name__)


def run_local(command: Command) -> None:
    """Run a command without a shell and wait for it to exit.

    The command's ``env`` is merged over the current environment.

    Args:
        command: Argument vector and extra environment

    Raises:
        LocalCommandError: If the executable cannot be started or exits
            non-zero; carries the captured stderr
    """
    display = command.display()
    logger.debug("Running local command: %s", display)

    env = {**os.environ, **command.env} if command.env else None
    try:
        result = subprocess.run(
            command.argv,
            env=env,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        raise LocalCommandError(display, 127, str(e)) from e

    if result.returncode != 0:
        raise LocalCommandError(display, result.returncode, result.stderr or "")
