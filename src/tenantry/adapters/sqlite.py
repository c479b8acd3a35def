"""SQLite database adapter.

Uses the built-in ``sqlite3`` module through SQLAlchemy's ``pysqlite``
dialect. Only ``database`` (a file path or ``:memory:``) is read from the
configuration; host, port and credentials are ignored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, Engine

from tenantry.errors import DatabaseConnectionError, ErrorContext

from .base import DatabaseAdapter
from .types import DriverFamily

MEMORY = ":memory:"


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Suitable for:
    - Development and testing
    - Single-process deployments
    """

    family = DriverFamily.SQLITE
    required_fields = ("database",)

    @property
    def path(self) -> str:
        database = self._config.database or MEMORY
        if database.startswith("sqlite:///"):
            database = database[len("sqlite:///"):] or MEMORY
        return database

    @property
    def is_memory(self) -> bool:
        return self.path == MEMORY

    def url(self) -> URL:
        return URL.create("sqlite+pysqlite", database=self.path)

    def connect_args(self) -> dict[str, Any]:
        args = super().connect_args()
        args.setdefault("check_same_thread", False)
        return args

    def create_engine(self) -> Engine:
        if not self.is_memory:
            try:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DatabaseConnectionError(
                    f"Failed to connect to sqlite: cannot create directory for {self.path}",
                    context=ErrorContext(driver=self.family.value),
                    cause=e,
                ) from e
        return super().create_engine()

    def configure_engine(self, engine: Engine) -> None:
        # pysqlite defers BEGIN until the first DML statement, which leaves
        # DDL outside the transaction. Disable that and emit BEGIN ourselves.
        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection: Any, _rec: Any) -> None:
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")


__all__ = [
    "SQLiteAdapter",
]
