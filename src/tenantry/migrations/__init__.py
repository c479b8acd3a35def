"""Per-scope schema migrations with an idempotent ledger.

Manifesto:
    Core, tenant and unit databases evolve independently. Each module ships
    migration files per scope; the runner applies the ones a database has
    not seen yet and records them in that database's ``migrations`` table,
    so running twice is a no-op.

Architecture::

    <modules_dir>/<module>/migrations/<scope>/0001_create_users_table.py
            │
            ▼  collect_migration_paths / discover_units
    MigrationUnit(name, source_path)         sorted by name across modules
            │
            ▼  load_unit + MigrationRegistry (class by derived name)
    Migration0001CreateUsersTable(handle).up()
            │
            ▼  one transaction per unit, ledger row inserted before commit
    migrations(id, name UNIQUE, applied_at)

Tags:
    tenantry, migrations, schema, ledger, multi-tenant
"""

from .discovery import MigrationUnit, collect_migration_paths, discover_units, load_unit
from .registry import (
    Migration,
    MigrationRegistry,
    clear_registry,
    migration_class_name,
    migration_registry,
    register_migration,
)
from .runner import LEDGER_TABLE, MigrationRecord, MigrationResult, MigrationRunner

__all__ = [
    # Runner
    "MigrationRunner",
    "MigrationRecord",
    "MigrationResult",
    "LEDGER_TABLE",
    # Units
    "MigrationUnit",
    "discover_units",
    "collect_migration_paths",
    "load_unit",
    # Classes
    "Migration",
    "MigrationRegistry",
    "migration_registry",
    "migration_class_name",
    "register_migration",
    "clear_registry",
]
