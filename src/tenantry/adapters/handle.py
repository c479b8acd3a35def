"""The reusable connection object handed out by the resolver.

``ConnectionHandle`` wraps one SQLAlchemy ``Connection`` and gives callers a
small, driver-neutral surface: named-parameter statements, dict rows, and
explicit ``begin``/``commit``/``rollback``. Outside an explicit transaction
every statement is committed as soon as it has run, so a handle behaves like
an autocommit connection until ``begin()`` is called.

Parameters are always bound by the driver through ``sqlalchemy.text()``;
SQL text and values never meet in a Python string.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine, RootTransaction
from sqlalchemy.exc import SQLAlchemyError

from tenantry.dialect import Dialect
from tenantry.errors import DatabaseError
from tenantry.logging import get_logger

from .types import DriverFamily

logger = get_logger(__name__)

T = TypeVar("T")


class ConnectionHandle:
    """A live, reusable database connection for one scope."""

    def __init__(
        self,
        engine: Engine,
        connection: Connection,
        *,
        family: DriverFamily,
        dialect: Dialect,
    ) -> None:
        self._engine = engine
        self._conn = connection
        self._family = family
        self._dialect = dialect
        self._tx: RootTransaction | None = None
        self._lock = threading.RLock()

    # --- properties ---

    @property
    def family(self) -> DriverFamily:
        return self._family

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def connection(self) -> Connection:
        """The underlying SQLAlchemy connection (for Core/ORM use)."""
        return self._conn

    @property
    def in_transaction(self) -> bool:
        """Whether an explicit transaction opened by ``begin()`` is active."""
        return self._tx is not None

    @property
    def closed(self) -> bool:
        return self._conn.closed

    # --- statements ---

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Run a statement and return the affected row count."""
        return self._run(lambda conn: conn.execute(text(sql), dict(params or {})).rowcount)

    def query(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a query and return every row as a dict."""
        return self._run(
            lambda conn: [dict(row) for row in conn.execute(text(sql), dict(params or {})).mappings()]
        )

    def query_one(self, sql: str, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        """Run a query and return the first row, or ``None``."""
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def scalar(self, sql: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a query and return the first column of the first row."""
        return self._run(lambda conn: conn.execute(text(sql), dict(params or {})).scalar())

    def insert(self, table: str, data: Mapping[str, Any]) -> int:
        """Insert one row; column names are quoted for this dialect."""
        columns = list(data.keys())
        quoted = ", ".join(self._dialect.quote_identifier(c) for c in columns)
        # Bind names are positional so any column name is safe
        params = {f"c{i}": data[c] for i, c in enumerate(columns)}
        placeholders = ", ".join(f":{name}" for name in params)
        sql = (
            f"INSERT INTO {self._dialect.quote_identifier(table)} "
            f"({quoted}) VALUES ({placeholders})"
        )
        return self.execute(sql, params)

    def has_table(self, name: str) -> bool:
        """Whether *name* exists in the connected database."""
        return self._run(lambda conn: inspect(conn).has_table(name))

    # --- transaction ---

    def begin(self) -> None:
        """Start an explicit transaction."""
        with self._lock:
            if self._tx is not None:
                raise DatabaseError("A transaction is already active on this connection")
            if self._conn.in_transaction():
                # Release the implicit transaction SQLAlchemy auto-began
                self._conn.commit()
            self._tx = self._conn.begin()

    def commit(self) -> None:
        """Commit the explicit transaction."""
        with self._lock:
            tx = self._require_transaction()
            tx.commit()
            self._tx = None

    def rollback(self) -> None:
        """Roll back the explicit transaction."""
        with self._lock:
            tx = self._require_transaction()
            try:
                tx.rollback()
            finally:
                self._tx = None

    def close(self) -> None:
        """Close the connection and dispose of the engine's pool."""
        with self._lock:
            if self._tx is not None:
                try:
                    self._tx.rollback()
                except SQLAlchemyError as e:
                    logger.warning("connection.close_rollback_failed", error=str(e))
                self._tx = None
            self._conn.close()
            self._engine.dispose()

    # --- internal ---

    def _require_transaction(self) -> RootTransaction:
        if self._tx is None:
            raise DatabaseError("No transaction is active on this connection")
        return self._tx

    def _run(self, work: Callable[[Connection], T]) -> T:
        with self._lock:
            try:
                value = work(self._conn)
            except SQLAlchemyError:
                if self._tx is None and self._conn.in_transaction():
                    self._conn.rollback()
                raise
            if self._tx is None and self._conn.in_transaction():
                self._conn.commit()
            return value

    def __repr__(self) -> str:
        return f"ConnectionHandle(family={self._family.value!r}, url={self._engine.url!r})"


__all__ = ["ConnectionHandle"]
