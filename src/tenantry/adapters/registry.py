"""Database adapter registry and the connection factory.

Manifesto:
    Callers never hard-code adapter classes. The registry maps every
    accepted driver spelling (``pgsql``, ``postgres``, ``mariadb``, ...) to
    an adapter class, and ``build_connection()`` turns a ``DriverConfig``
    into an open ``ConnectionHandle``.

Features:
    - ``AdapterRegistry`` with the default aliases pre-registered
    - ``register()`` for custom / third-party adapters
    - ``build_connection()``: config → open handle (no caching; the
      resolver caches)

Tags:
    tenantry, database, registry, factory
"""

from __future__ import annotations

from tenantry.errors import ConfigError, ErrorContext

from .base import DatabaseAdapter
from .handle import ConnectionHandle
from .mysql import MySQLAdapter
from .oracle import OracleAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .sqlserver import SQLServerAdapter
from .types import DRIVER_ALIASES, DriverConfig, DriverFamily

_FAMILY_ADAPTERS: dict[DriverFamily, type[DatabaseAdapter]] = {
    DriverFamily.SQLITE: SQLiteAdapter,
    DriverFamily.MYSQL: MySQLAdapter,
    DriverFamily.POSTGRESQL: PostgreSQLAdapter,
    DriverFamily.SQLSERVER: SQLServerAdapter,
    DriverFamily.ORACLE: OracleAdapter,
}


class AdapterRegistry:
    """
    Registry of adapter classes keyed by driver alias.

    Pre-registered aliases:
    - ``sqlite``
    - ``mysql`` / ``mariadb``
    - ``pgsql`` / ``postgresql`` / ``postgres``
    - ``sqlsrv`` / ``mssql`` / ``sqlserver``
    - ``oracle`` / ``oci``
    """

    def __init__(self):
        self._factories: dict[str, type[DatabaseAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        for alias, family in DRIVER_ALIASES.items():
            self._factories[alias] = _FAMILY_ADAPTERS[family]

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Register an adapter class under a driver alias."""
        self._factories[name.strip().lower()] = adapter_class

    def resolve(self, driver: str) -> type[DatabaseAdapter]:
        """Adapter class for a driver name (case-insensitive)."""
        name = driver.strip().lower()
        if name not in self._factories:
            raise ConfigError(
                f"Unknown database driver: {driver!r}. "
                f"Supported: {', '.join(self.list_adapters())}",
                context=ErrorContext(driver=driver),
            )
        return self._factories[name]

    def create(self, config: DriverConfig) -> DatabaseAdapter:
        """Create a (not yet connected) adapter for *config*."""
        return self.resolve(config.driver)(config)

    def list_adapters(self) -> list[str]:
        """List registered driver aliases."""
        return sorted(self._factories.keys())


# Global registry
adapter_registry = AdapterRegistry()


def normalize_driver(driver: str) -> DriverFamily:
    """Canonical family for a driver spelling; ``ConfigError`` if unknown."""
    family = DRIVER_ALIASES.get(driver.strip().lower())
    if family is None:
        raise ConfigError(f"Unknown database driver: {driver!r}", context=ErrorContext(driver=driver))
    return family


def build_connection(
    config: DriverConfig,
    registry: AdapterRegistry | None = None,
) -> ConnectionHandle:
    """
    Build an open connection handle from a driver configuration.

    Raises ``ConfigError`` (unknown driver, missing field, driver package not
    installed) or ``DatabaseConnectionError`` (connect failed).

    Usage:
        handle = build_connection(DriverConfig(driver="sqlite", database="data/core.db"))
        handle = build_connection(DriverConfig(driver="pgsql", host="db", database="core"))
    """
    return (registry if registry is not None else adapter_registry).create(config).connect()


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "normalize_driver",
    "build_connection",
]
