"""Migration base class and the class registry.

Migration files declare one class each and decorate it with
:func:`register_migration`. The runner loads a file right before running
it and looks the class up by the unit name (the file stem) or the class
name derived from it, so ``0001_create_users_table.py`` defines
``Migration0001CreateUsersTable``. Stems that do not make an identifier
(``2025-01-01_create_orders``) register with ``@register_migration(name=...)``.

Example migration file::

    from tenantry.migrations import Migration, register_migration

    @register_migration
    class Migration0001CreateUsersTable(Migration):
        def up(self):
            self.execute(
                "CREATE TABLE users (id INTEGER PRIMARY KEY, email VARCHAR(255) NOT NULL)"
            )

        def down(self):
            self.execute("DROP TABLE users")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from tenantry.adapters.handle import ConnectionHandle
from tenantry.dialect import Dialect
from tenantry.logging import get_logger

logger = get_logger(__name__)


def migration_class_name(name: str) -> str:
    """
    Class name a migration file must define.

    Numeric parts are kept, other parts get an upper-case first letter,
    and ``Migration`` is prefixed unless already present.

    Examples:
        >>> migration_class_name("0001_create_users_table")
        'Migration0001CreateUsersTable'
        >>> migration_class_name("add_index")
        'MigrationAddIndex'
    """
    parts = [part if part.isdigit() else part[:1].upper() + part[1:] for part in name.split("_")]
    class_name = "".join(parts)
    if not class_name.startswith("Migration"):
        class_name = "Migration" + class_name
    return class_name


class Migration(ABC):
    """One schema change, run inside a transaction on the scope's handle."""

    def __init__(self, handle: ConnectionHandle):
        self.handle = handle

    @property
    def dialect(self) -> Dialect:
        return self.handle.dialect

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        return self.handle.execute(sql, params)

    @abstractmethod
    def up(self) -> None:
        """Apply the change."""
        ...

    def down(self) -> None:
        """Revert the change. Optional; override to make the migration reversible."""
        raise NotImplementedError(f"{type(self).__name__} has no down()")

    @classmethod
    def reversible(cls) -> bool:
        return cls.down is not Migration.down


class MigrationRegistry:
    """Migration classes keyed by class name or by an explicit unit name."""

    def __init__(self) -> None:
        self._classes: dict[str, type] = {}

    def register(self, cls: type, name: str | None = None) -> type:
        """Add (or replace) a class; returns it so it works as a decorator.

        ``name`` registers the class under a migration unit name instead of
        its class name, for units whose file stem is not a valid identifier
        (``2025-01-01_create_orders.py``).
        """
        key = name or cls.__name__
        self._classes[key] = cls
        logger.debug("migration.registered", name=key, cls=cls.__name__)
        return cls

    def get(self, key: str) -> type | None:
        return self._classes.get(key)

    def lookup(self, unit_name: str) -> type | None:
        """Class for a unit: registered under its name, else its derived class name."""
        return self._classes.get(unit_name) or self._classes.get(migration_class_name(unit_name))

    def discard(self, *keys: str) -> None:
        for key in keys:
            self._classes.pop(key, None)

    def names(self) -> list[str]:
        return sorted(self._classes)

    def clear(self) -> None:
        self._classes.clear()

    @contextmanager
    def collecting(self) -> Iterator[MigrationRegistry]:
        """Route :func:`register_migration` into this registry for the block."""
        token = _collecting.set(self)
        try:
            yield self
        finally:
            _collecting.reset(token)

    def __contains__(self, key: object) -> bool:
        return key in self._classes

    def __len__(self) -> int:
        return len(self._classes)


# Global registry
migration_registry = MigrationRegistry()

_collecting: ContextVar[MigrationRegistry | None] = ContextVar("tenantry_migration_registry", default=None)


def active_registry() -> MigrationRegistry:
    """Registry that :func:`register_migration` currently targets."""
    active = _collecting.get()
    return active if active is not None else migration_registry


def register_migration(cls: type | None = None, *, name: str | None = None) -> Any:
    """Class decorator registering a migration with the active registry.

    Use bare (``@register_migration``) to register under the class name, or
    with ``name=`` to register under the migration unit name::

        @register_migration(name="2025-01-01_create_orders")
        class CreateOrders(Migration):
            ...
    """
    if cls is None:
        return lambda target: active_registry().register(target, name)
    return active_registry().register(cls, name)


def clear_registry() -> None:
    """Empty the global registry (for tests)."""
    migration_registry.clear()


__all__ = [
    "Migration",
    "MigrationRegistry",
    "migration_registry",
    "migration_class_name",
    "register_migration",
    "active_registry",
    "clear_registry",
]
