"""Command line entry point for remote-to-local PostgreSQL migration.

Usage:
    pg-pull
    pg-pull -f config.toml
    pg-pull -f config.toml --work-dir /var/tmp/pg-pull
    pg-pull -f config.toml --terminate-connections
    pg-pull -f config.toml --dry-run

Exit status is 0 on success and 1 when any step fails; the failing
command's captured standard error is printed before exiting.
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from pg_pull.config.loader import DEFAULT_CONFIG_PATH, load_migration_config
from pg_pull.errors import CommandError, MigrationError
from pg_pull.migrate import Migration

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _failure_chain(error: BaseException) -> list[MigrationError]:
    """Collect the migration errors behind ``error``, root cause first.

    A cleanup that fails while a step failure unwinds raises its own error;
    the step failure survives only as its ``__context__``.
    """
    chain: list[MigrationError] = []
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, MigrationError):
            chain.append(current)
        current = current.__cause__ or current.__context__
    return list(reversed(chain))


def cmd_migrate(args: argparse.Namespace) -> int:
    """Load the config and run (or plan) the migration.

    Args:
        args: Parsed arguments with config, work_dir, terminate_connections
            and dry_run.

    Returns:
        0 on success, 1 on failure.
    """
    console.print(f"-> Config file: [cyan]{escape(str(args.config))}[/cyan]")

    try:
        config = load_migration_config(args.config)
        migration = Migration(
            config,
            work_dir=args.work_dir,
            terminate_connections=args.terminate_connections,
            console=console,
        )

        if args.dry_run:
            console.print("[bold yellow]DRY RUN[/bold yellow] - No changes made.")
            for line in migration.plan():
                console.print(f"  {line}", highlight=False, markup=False)
            return 0

        migration.run()
    except MigrationError as e:
        for failure in _failure_chain(e):
            if isinstance(failure, CommandError) and failure.stderr:
                console.print(failure.stderr.rstrip(), highlight=False, markup=False)
            console.print(f"[bold red]x[/bold red] {escape(str(failure))}", highlight=False)
        return 1

    console.print(
        f"[bold green]v[/bold green] Database [bold cyan]{config.local_db.database}[/bold cyan] "
        f"now holds the data from {config.server.host}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="pg-pull",
        description="Copy a PostgreSQL database from a remote host into a local database",
    )
    parser.add_argument(
        "-f",
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to the TOML config file (default: config.toml)",
    )
    parser.add_argument(
        "--work-dir",
        default=None,
        help="Local directory for the copied dump (default: system temp dir)",
    )
    parser.add_argument(
        "--terminate-connections",
        action="store_true",
        help="Terminate other sessions on the local database before dropping it",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the steps and commands without running them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every command executed (passwords redacted)",
    )
    parser.set_defaults(func=cmd_migrate)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
