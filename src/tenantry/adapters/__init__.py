"""Database adapters -- one connection factory for five database engines.

Manifesto:
    Core, tenant and unit databases may live on different engines (SQLite in
    tests, MySQL or PostgreSQL in production, SQL Server or Oracle at some
    customers). Each adapter translates the same ``DriverConfig`` into the
    engine's parameter shape; everything above this package only sees a
    ``ConnectionHandle``.

    Drivers are **import-guarded**: the DB-API package is only needed when a
    connection is built. Install the corresponding extra::

        pip install tenantry[mysql]        # mysql-connector-python
        pip install tenantry[postgresql]   # psycopg2-binary
        pip install tenantry[sqlserver]    # pymssql
        pip install tenantry[oracle]       # oracledb

Architecture::

    DatabaseAdapter (base.py)        config → SQLAlchemy URL → ConnectionHandle
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- MySQLAdapter             mysql.connector
        |-- PostgreSQLAdapter        psycopg2
        |-- SQLServerAdapter         pymssql
        |-- OracleAdapter            oracledb

    AdapterRegistry (registry.py)    driver alias → adapter class
    build_connection (registry.py)   the connection factory
    ConnectionHandle (handle.py)     the object callers borrow

Guardrails:
    ❌ ``handle.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``handle.execute("SELECT * FROM t WHERE id = :id", {"id": user_input})``
    ❌ ``MySQLAdapter(config).connect()`` in application code
    ✅ ``resolver.resolve(ScopeKind.TENANT)``

Tags:
    tenantry, database, adapters, multi-backend, import-guarded
"""

from tenantry.dialect import Dialect, get_dialect

from .base import DatabaseAdapter
from .handle import ConnectionHandle
from .mysql import MySQLAdapter
from .oracle import OracleAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, build_connection, normalize_driver
from .sqlite import SQLiteAdapter
from .sqlserver import SQLServerAdapter
from .types import DRIVER_ALIASES, DriverConfig, DriverFamily

__all__ = [
    # Types
    "DriverFamily",
    "DriverConfig",
    "DRIVER_ALIASES",
    "ConnectionHandle",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "MySQLAdapter",
    "PostgreSQLAdapter",
    "SQLServerAdapter",
    "OracleAdapter",
    # Registry / factory
    "AdapterRegistry",
    "adapter_registry",
    "normalize_driver",
    "build_connection",
]
