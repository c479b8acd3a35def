"""Per-scope migration runner.

Discovers migration files for a scope, tracks applied ones in the
``migrations`` ledger table of the scope's connection, and applies pending
ones in name order, each inside its own transaction.

Example::

    from tenantry.migrations import MigrationRunner, collect_migration_paths

    runner = MigrationRunner(resolver, {
        "core": collect_migration_paths("app/modules", "core"),
        "tenant": collect_migration_paths("app/modules", "tenant"),
    })
    result = runner.run("core")
    print(f"Applied {len(result.applied)} migrations")
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from tenantry.adapters.handle import ConnectionHandle
from tenantry.errors import DatabaseError, ErrorContext, MigrationError
from tenantry.logging import get_logger
from tenantry.resolver import ConnectionResolver
from tenantry.scope import ScopeKind

from .discovery import MigrationUnit, discover_units, load_unit
from .registry import Migration, MigrationRegistry, migration_class_name, migration_registry

logger = get_logger(__name__)

LEDGER_TABLE = "migrations"

MigrationPaths = Mapping[ScopeKind | str, Sequence[str | Path] | str | Path]


@dataclass
class MigrationRecord:
    """Record of a single applied migration."""

    id: int
    name: str
    applied_at: datetime | str | None


@dataclass
class MigrationResult:
    """Result of a migration run."""

    scope: ScopeKind
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class MigrationRunner:
    """Applies migrations per scope.

    Parameters
    ----------
    resolver
        Supplies the connection for each scope (tenant and unit resolve
        with ``allow_default=True``).
    paths
        ``{scope: [directory, ...]}``; a single directory is accepted too.
    registry
        Where migration classes register. Defaults to the global registry.
    """

    def __init__(
        self,
        resolver: ConnectionResolver,
        paths: MigrationPaths,
        registry: MigrationRegistry | None = None,
    ) -> None:
        self._resolver = resolver
        self._paths: dict[ScopeKind, list[Path]] = {}
        for scope, value in paths.items():
            if isinstance(value, (str, Path)):
                value = [value]
            self._paths[ScopeKind.parse(scope)] = [Path(p) for p in value]
        self._registry = registry if registry is not None else migration_registry

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, scope: ScopeKind | str) -> MigrationResult:
        """Apply every pending migration of *scope* in name order.

        Stops at the first failure, which is raised as ``MigrationError``
        after that migration's transaction has been rolled back.
        """
        kind = ScopeKind.parse(scope)
        result = MigrationResult(scope=kind)
        paths = self._paths.get(kind, [])
        if not paths:
            return result

        handle = self._handle(kind)
        with self._ledger_errors(kind):
            self._ensure_ledger(handle, kind)
            applied = set(self._applied_names(handle))

        for unit in discover_units(paths):
            if unit.name in applied:
                result.skipped.append(unit.name)
                logger.debug("migration.skipped", scope=kind.value, migration=unit.name)
                continue

            self._execute(handle, kind, unit)
            applied.add(unit.name)
            result.applied.append(unit.name)

        return result

    def pending(self, scope: ScopeKind | str) -> list[str]:
        """Names of migrations not yet applied."""
        kind = ScopeKind.parse(scope)
        paths = self._paths.get(kind, [])
        if not paths:
            return []
        applied = {record.name for record in self.applied(kind)}
        return [unit.name for unit in discover_units(paths) if unit.name not in applied]

    def applied(self, scope: ScopeKind | str) -> list[MigrationRecord]:
        """Ledger rows ordered by name; empty when no ledger exists yet."""
        kind = ScopeKind.parse(scope)
        handle = self._handle(kind)
        with self._ledger_errors(kind):
            if not handle.has_table(LEDGER_TABLE):
                return []
            rows = handle.query(f"SELECT id, name, applied_at FROM {LEDGER_TABLE} ORDER BY name")
        return [MigrationRecord(id=row["id"], name=row["name"], applied_at=row["applied_at"]) for row in rows]

    def rollback_last(self, scope: ScopeKind | str) -> str | None:
        """Revert the last applied migration with its ``down()``.

        Returns the migration name, or ``None`` if nothing is applied.
        The ``down()`` call and the ledger delete share one transaction.
        """
        kind = ScopeKind.parse(scope)
        records = self.applied(kind)
        if not records:
            return None
        name = records[-1].name

        unit = next(
            (u for u in discover_units(self._paths.get(kind, [])) if u.name == name),
            None,
        )
        if unit is None:
            raise MigrationError(
                f"Migration file for {name} not found",
                migration=name,
                context=ErrorContext(scope=kind.value),
            )

        handle = self._handle(kind)

        def revert(instance: Migration) -> None:
            down = getattr(instance, "down", None)
            if not callable(down) or (isinstance(instance, Migration) and not instance.reversible()):
                raise MigrationError(
                    f"Migration {name} has no down()",
                    migration=name,
                    context=ErrorContext(scope=kind.value),
                )
            down()
            handle.execute(f"DELETE FROM {LEDGER_TABLE} WHERE name = :name", {"name": name})

        self._in_transaction(handle, kind, unit, revert)
        logger.info("migration.rolled_back", scope=kind.value, migration=name)
        return name

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _handle(self, kind: ScopeKind) -> ConnectionHandle:
        return self._resolver.resolve(kind, allow_default=True)

    @contextmanager
    def _ledger_errors(self, kind: ScopeKind) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Migration ledger unavailable for scope {kind.value}: {e}",
                context=ErrorContext(scope=kind.value),
                cause=e,
            ) from e

    def _ensure_ledger(self, handle: ConnectionHandle, kind: ScopeKind) -> None:
        """Create the ``migrations`` table if it doesn't exist."""
        if handle.has_table(LEDGER_TABLE):
            return
        dialect = handle.dialect
        sql = (
            f"CREATE TABLE {LEDGER_TABLE} ("
            f"id {dialect.auto_increment_pk()}, "
            f"name {dialect.string_type(255)} NOT NULL UNIQUE, "
            f"applied_at {dialect.timestamp_type()} {dialect.timestamp_default_now()}"
            f") {dialect.table_options()}"
        ).rstrip()
        handle.execute(sql)
        logger.info("migration.ledger_created", scope=kind.value, driver=handle.family.value)

    def _applied_names(self, handle: ConnectionHandle) -> list[str]:
        rows = handle.query(f"SELECT name FROM {LEDGER_TABLE} ORDER BY name")
        return [row["name"] for row in rows]

    def _execute(self, handle: ConnectionHandle, kind: ScopeKind, unit: MigrationUnit) -> None:
        def apply(instance: Migration) -> None:
            up = getattr(instance, "up", None)
            if not callable(up):
                raise MigrationError(
                    f"Migration {unit.name} has no callable up()",
                    migration=unit.name,
                    context=ErrorContext(scope=kind.value),
                )
            up()
            handle.execute(f"INSERT INTO {LEDGER_TABLE} (name) VALUES (:name)", {"name": unit.name})

        self._in_transaction(handle, kind, unit, apply)
        logger.info("migration.applied", scope=kind.value, migration=unit.name)

    def _in_transaction(
        self,
        handle: ConnectionHandle,
        kind: ScopeKind,
        unit: MigrationUnit,
        work: Callable[[Migration], None],
    ) -> None:
        started = False
        try:
            handle.begin()
            started = True
            work(self._instantiate(handle, kind, unit))
            handle.commit()
        except Exception as e:
            # Only roll back what this unit began
            if started and handle.in_transaction:
                handle.rollback()
            logger.error("migration.failed", scope=kind.value, migration=unit.name, error=str(e))
            if isinstance(e, MigrationError):
                raise
            raise MigrationError(
                f"Migration {unit.name} failed: {e}",
                migration=unit.name,
                context=ErrorContext(scope=kind.value),
                cause=e,
            ) from e

    def _instantiate(self, handle: ConnectionHandle, kind: ScopeKind, unit: MigrationUnit) -> Migration:
        class_name = migration_class_name(unit.name)
        # Only a class registered by this file may run for this unit
        self._registry.discard(unit.name, class_name)
        with self._registry.collecting():
            load_unit(unit)
        cls = self._registry.lookup(unit.name)
        if cls is None:
            raise MigrationError(
                f"Migration class {class_name} not found in {unit.source_path}",
                migration=unit.name,
                context=ErrorContext(scope=kind.value),
            )
        return cls(handle)


__all__ = [
    "LEDGER_TABLE",
    "MigrationRecord",
    "MigrationResult",
    "MigrationRunner",
]
