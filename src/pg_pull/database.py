"""Database-level DDL against the local PostgreSQL server.

Uses psycopg (v3) in autocommit mode: CREATE/DROP/ALTER DATABASE cannot run
inside a transaction block. PostgreSQL refuses to drop or rename the
database a session is connected to, so every operation takes a ``via``
database to connect to while issuing the statement.
"""

import logging

import psycopg
from psycopg import sql

from pg_pull.config.models import DatabaseConfig
from pg_pull.errors import DatabaseError

logger = logging.getLogger(__name__)


class LocalDatabase:
    """Issues statements against the local server described by ``db``.

    Usage:
        local = LocalDatabase(config.local_db)
        local.check_connection()
        local.create_database("app_restore_1", via="app")
    """

    def __init__(self, db: DatabaseConfig):
        self._db = db

    @property
    def name(self) -> str:
        """Production database name."""
        return self._db.database

    def _connect(self, dbname: str) -> psycopg.Connection:
        return psycopg.connect(
            host=self._db.host,
            port=self._db.port,
            user=self._db.username,
            password=self._db.password,
            dbname=dbname,
            autocommit=True,
        )

    def _execute(self, via: str, statement: sql.Composable, params: tuple | None = None) -> None:
        try:
            with self._connect(via) as conn:
                logger.debug("[%s] %r", via, statement)
                conn.execute(statement, params)
        except psycopg.Error as e:
            raise DatabaseError(f"Statement failed on database '{via}': {e}") from e

    def check_connection(self) -> None:
        """Verify the production database accepts connections.

        Raises:
            DatabaseError: If the server is unreachable or rejects the login
        """
        self._execute(self.name, sql.SQL("SELECT 1"))

    def create_database(self, name: str, via: str) -> None:
        self._execute(via, sql.SQL("CREATE DATABASE {}").format(sql.Identifier(name)))

    def drop_database(self, name: str, via: str, if_exists: bool = False) -> None:
        template = "DROP DATABASE IF EXISTS {}" if if_exists else "DROP DATABASE {}"
        self._execute(via, sql.SQL(template).format(sql.Identifier(name)))

    def rename_database(self, old: str, new: str, via: str) -> None:
        self._execute(
            via,
            sql.SQL("ALTER DATABASE {} RENAME TO {}").format(
                sql.Identifier(old), sql.Identifier(new)
            ),
        )

    def terminate_connections(self, name: str, via: str) -> None:
        """Terminate other sessions connected to ``name`` so it can be dropped."""
        self._execute(
            via,
            sql.SQL(
                "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
                "WHERE datname = %s AND pid <> pg_backend_pid()"
            ),
            (name,),
        )
