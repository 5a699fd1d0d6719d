"""Tests for dump, restore, copy and remove command construction."""

import shlex

from pg_pull.commands import (
    REDACTED,
    Command,
    build_copy_command,
    build_dump_command,
    build_remove_command,
    build_restore_command,
    redact,
)
from pg_pull.config.models import MigrationConfig


def _flag_value(argv: list[str], flag: str) -> str:
    return argv[argv.index(flag) + 1]


class TestDumpCommand:
    """pg_dump command run on the remote host."""

    def test_contains_configured_connection(self, config: MigrationConfig) -> None:
        cmd = build_dump_command(config.server.db, "/tmp/shop_1.dump")
        argv = shlex.split(cmd)

        assert argv[0] == "PGPASSWORD=s3cret-remote"
        assert argv[1] == "pg_dump"
        assert _flag_value(argv, "-h") == "10.0.0.5"
        assert _flag_value(argv, "-p") == "5433"
        assert _flag_value(argv, "-U") == "shop_ro"
        assert _flag_value(argv, "-d") == "shop"
        assert _flag_value(argv, "-f") == "/tmp/shop_1.dump"

    def test_custom_format_without_privileges(self, config: MigrationConfig) -> None:
        argv = shlex.split(build_dump_command(config.server.db, "/tmp/x.dump"))
        assert "-Fc" in argv
        assert "-x" in argv

    def test_password_embedded_verbatim(self, config: MigrationConfig) -> None:
        cmd = build_dump_command(config.server.db, "/tmp/x.dump")
        assert "s3cret-remote" in cmd

    def test_shell_metacharacters_are_quoted(self, config: MigrationConfig) -> None:
        """A password with spaces and quotes survives shell parsing intact."""
        db = config.server.db.model_copy(update={"password": "p a'ss;rm -rf"})
        argv = shlex.split(build_dump_command(db, "/tmp/x.dump"))

        assert argv[0] == "PGPASSWORD=p a'ss;rm -rf"
        assert argv[1] == "pg_dump"


class TestRestoreCommand:
    """pg_restore command run locally."""

    def test_contains_configured_connection(self, config: MigrationConfig) -> None:
        cmd = build_restore_command(config.local_db, "shop_restore_1", "/work/shop_1.dump")

        assert cmd.argv[0] == "pg_restore"
        assert _flag_value(cmd.argv, "-h") == "localhost"
        assert _flag_value(cmd.argv, "-p") == "5432"
        assert _flag_value(cmd.argv, "-U") == "postgres"
        assert _flag_value(cmd.argv, "-d") == "shop_restore_1"
        assert cmd.argv[-1] == "/work/shop_1.dump"
        for option in ("-x", "-O", "-c", "--if-exists"):
            assert option in cmd.argv

    def test_password_in_environment_not_argv(self, config: MigrationConfig) -> None:
        cmd = build_restore_command(config.local_db, "shop_restore_1", "/work/shop_1.dump")

        assert cmd.env == {"PGPASSWORD": "s3cret-local"}
        assert all("s3cret-local" not in arg for arg in cmd.argv)


class TestCopyCommand:
    """scp command copying the dump to the local machine."""

    def test_contains_configured_server(self, config: MigrationConfig) -> None:
        cmd = build_copy_command(config.server, "/tmp/shop_1.dump", "/work/shop_1.dump")

        assert cmd.argv[0] == "scp"
        assert _flag_value(cmd.argv, "-P") == "2222"
        assert _flag_value(cmd.argv, "-i") == "/keys/id_ed25519"
        assert cmd.argv[-2] == "deploy@db.example.com:/tmp/shop_1.dump"
        assert cmd.argv[-1] == "/work/shop_1.dump"
        assert cmd.env == {}

    def test_strict_host_key_checking_by_default(self, config: MigrationConfig) -> None:
        cmd = build_copy_command(config.server, "/tmp/a", "/work/a")
        assert "StrictHostKeyChecking=yes" in cmd.argv

    def test_known_hosts_file_passed_through(self, config: MigrationConfig) -> None:
        server = config.server.model_copy(update={"known_hosts_file": "/etc/pg-pull/known_hosts"})
        cmd = build_copy_command(server, "/tmp/a", "/work/a")
        assert "UserKnownHostsFile=/etc/pg-pull/known_hosts" in cmd.argv

    def test_verification_disabled(self, config: MigrationConfig) -> None:
        server = config.server.model_copy(update={"verify_host_key": False})
        cmd = build_copy_command(server, "/tmp/a", "/work/a")
        assert "StrictHostKeyChecking=no" in cmd.argv
        assert "StrictHostKeyChecking=yes" not in cmd.argv


class TestRemoveCommand:
    def test_quotes_path(self) -> None:
        assert build_remove_command("/tmp/my file.dump") == "rm -f '/tmp/my file.dump'"


class TestRedaction:
    """Secrets never reach displayed command lines."""

    def test_display_redacts_password(self) -> None:
        cmd = Command(argv=["pg_restore", "-d", "db"], env={"PGPASSWORD": "hunter2"})

        shown = cmd.display()

        assert "hunter2" not in shown
        assert f"PGPASSWORD={REDACTED}" in shown
        assert shown.endswith("pg_restore -d db")

    def test_display_without_env(self) -> None:
        assert Command(argv=["scp", "a b", "c"]).display() == "scp 'a b' c"

    def test_redact_ignores_empty_secrets(self) -> None:
        assert redact("PGPASSWORD= pg_dump", ["", "zzz"]) == "PGPASSWORD= pg_dump"

    def test_redact_replaces_all_occurrences(self) -> None:
        assert redact("pw x pw", ["pw"]) == f"{REDACTED} x {REDACTED}"

    def test_redact_hides_shell_quoted_secret(self) -> None:
        """A password with quotes and spaces is hidden in its quoted form."""
        secret = "pa'ss word"
        line = f"PGPASSWORD={shlex.quote(secret)} pg_dump -d shop"

        shown = redact(line, [secret])

        assert shown == f"PGPASSWORD={REDACTED} pg_dump -d shop"
        assert "ss word" not in shown
