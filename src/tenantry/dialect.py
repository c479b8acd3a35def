"""SQL dialect fragments for the engines tenantry can connect to.

Provides a ``Dialect`` protocol and one implementation per driver family.
The migration ledger, the repository and pagination rendering ask the
dialect for engine-specific fragments (identifier quoting, auto-increment
keys, timestamp defaults, LIMIT/OFFSET syntax) instead of branching on the
driver name themselves.

Manifesto:
    The same ledger table and the same paginated query must work on SQLite
    in tests and on MySQL, PostgreSQL, SQL Server or Oracle in production.
    Engine syntax lives here and nowhere else.

Architecture::

    ┌──────────┐ ┌────────────┐ ┌────────┐ ┌────────────┐ ┌──────────┐
    │ SQLite   │ │ PostgreSQL │ │ MySQL  │ │ SQL Server │ │  Oracle  │
    │ "ident"  │ │ "ident"    │ │ `ident`│ │ [ident]    │ │ "IDENT"  │
    │ LIMIT    │ │ LIMIT      │ │ LIMIT  │ │ OFFSET ..  │ │ OFFSET ..│
    │          │ │            │ │        │ │ FETCH NEXT │ │ FETCH    │
    └──────────┘ └────────────┘ └────────┘ └────────────┘ └──────────┘

Examples:
    >>> d = get_dialect("mysql")
    >>> d.quote_identifier("users.id")
    '`users`.`id`'
    >>> d.limit_offset(10, 20)
    'LIMIT 10 OFFSET 20'

Tags:
    dialect, sql, portability, database, tenantry
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tenantry.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract. Every method returns a SQL fragment."""

    @property
    def name(self) -> str:
        """Dialect name (``'sqlite'``, ``'mysql'``, ...)."""
        ...

    @property
    def quote_char(self) -> str:
        """Opening identifier quote character."""
        ...

    def quote_identifier(self, identifier: str) -> str:
        """Quote a (possibly ``table.column``) identifier."""
        ...

    def auto_increment_pk(self) -> str:
        """Column definition for an integer surrogate primary key."""
        ...

    def string_type(self, length: int) -> str:
        ...

    def timestamp_type(self) -> str:
        ...

    def timestamp_default_now(self) -> str:
        """``DEFAULT`` clause filling a timestamp column at insert time."""
        ...

    def table_options(self) -> str:
        """Trailing ``CREATE TABLE`` options (storage engine, charset)."""
        ...

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        """Pagination clause, or ``''`` when neither is set."""
        ...


class _BaseDialect:
    """Shared behaviour; concrete dialects override what differs."""

    _name = "ansi"
    _open = '"'
    _close = '"'

    @property
    def name(self) -> str:
        return self._name

    @property
    def quote_char(self) -> str:
        return self._open

    def quote_identifier(self, identifier: str) -> str:
        if identifier.startswith(('"', "`", "[")) or identifier == "*":
            return identifier
        return ".".join(f"{self._open}{part}{self._close}" for part in identifier.split("."))

    def auto_increment_pk(self) -> str:
        return "INTEGER PRIMARY KEY"

    def string_type(self, length: int) -> str:
        return f"VARCHAR({length})"

    def timestamp_type(self) -> str:
        return "TIMESTAMP"

    def timestamp_default_now(self) -> str:
        return "DEFAULT CURRENT_TIMESTAMP"

    def table_options(self) -> str:
        return ""

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {int(limit)}")
        if offset is not None:
            parts.append(f"OFFSET {int(offset)}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SQLiteDialect(_BaseDialect):
    """SQLite: ``AUTOINCREMENT`` keys, ``LIMIT -1`` when only an offset is set."""

    _name = "sqlite"

    def auto_increment_pk(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            return f"LIMIT -1 OFFSET {int(offset)}"
        return super().limit_offset(limit, offset)


class PostgreSQLDialect(_BaseDialect):
    _name = "postgresql"

    def auto_increment_pk(self) -> str:
        return "SERIAL PRIMARY KEY"


class MySQLDialect(_BaseDialect):
    """MySQL / MariaDB: backtick quoting, InnoDB + utf8mb4 tables."""

    _name = "mysql"
    _open = "`"
    _close = "`"

    def auto_increment_pk(self) -> str:
        return "INT AUTO_INCREMENT PRIMARY KEY"

    def table_options(self) -> str:
        return "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is not None:
            # MySQL has no OFFSET without LIMIT
            return f"LIMIT 18446744073709551615 OFFSET {int(offset)}"
        return super().limit_offset(limit, offset)


class SQLServerDialect(_BaseDialect):
    """SQL Server: bracket quoting, ``IDENTITY`` keys, ``OFFSET/FETCH`` paging."""

    _name = "sqlserver"
    _open = "["
    _close = "]"

    def auto_increment_pk(self) -> str:
        return "INT IDENTITY(1,1) PRIMARY KEY"

    def string_type(self, length: int) -> str:
        return f"NVARCHAR({length})"

    def timestamp_type(self) -> str:
        return "DATETIME2"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        # OFFSET/FETCH is only valid after an ORDER BY clause
        if limit is None and offset is None:
            return ""
        clause = f"OFFSET {int(offset or 0)} ROWS"
        if limit is not None:
            clause += f" FETCH NEXT {int(limit)} ROWS ONLY"
        return clause


class OracleDialect(_BaseDialect):
    """Oracle 12c+: identity columns, ``OFFSET/FETCH`` paging."""

    _name = "oracle"

    def auto_increment_pk(self) -> str:
        return "NUMBER GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY"

    def string_type(self, length: int) -> str:
        return f"VARCHAR2({length})"

    def limit_offset(self, limit: int | None, offset: int | None) -> str:
        if limit is None and offset is None:
            return ""
        clause = f"OFFSET {int(offset or 0)} ROWS"
        if limit is not None:
            clause += f" FETCH NEXT {int(limit)} ROWS ONLY"
        return clause


_DIALECTS: dict[str, type[_BaseDialect]] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "mysql": MySQLDialect,
    "sqlserver": SQLServerDialect,
    "oracle": OracleDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return the dialect for a canonical driver-family name."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ConfigError(f"No SQL dialect for driver family: {name}") from None


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "SQLServerDialect",
    "OracleDialect",
    "get_dialect",
]
