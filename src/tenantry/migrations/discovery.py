"""Finding and loading migration files."""

from __future__ import annotations

import importlib.util
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

from tenantry.scope import ScopeKind

MIGRATIONS_DIR = "migrations"


@dataclass(frozen=True)
class MigrationUnit:
    """A migration file; ``name`` is its stem and the ledger key."""

    name: str
    source_path: Path

    @classmethod
    def from_path(cls, path: Path) -> MigrationUnit:
        return cls(name=path.stem, source_path=path)


def discover_units(paths: Iterable[str | Path]) -> list[MigrationUnit]:
    """
    Every ``*.py`` migration under *paths*, merged and sorted by name.

    Missing directories are ignored; files starting with ``_`` are not
    migrations.
    """
    units: list[MigrationUnit] = []
    for directory in map(Path, paths):
        if not directory.is_dir():
            continue
        units.extend(
            MigrationUnit.from_path(file)
            for file in directory.glob("*.py")
            if not file.name.startswith("_")
        )
    return sorted(units, key=lambda unit: (unit.name, str(unit.source_path)))


def collect_migration_paths(modules_dir: str | Path, scope: ScopeKind | str) -> list[Path]:
    """
    Migration directories of every module for *scope*.

    Layout::

        <modules_dir>/<module>/migrations/<scope>/0001_create_users_table.py
    """
    kind = ScopeKind.parse(scope)
    root = Path(modules_dir)
    if not root.is_dir():
        return []
    return sorted(
        module / MIGRATIONS_DIR / kind.value
        for module in root.iterdir()
        if module.is_dir() and (module / MIGRATIONS_DIR / kind.value).is_dir()
    )


def load_unit(unit: MigrationUnit) -> ModuleType:
    """Execute a migration file so its decorated class registers itself."""
    module_name = f"_tenantry_migration_{unit.name}"
    spec = importlib.util.spec_from_file_location(module_name, unit.source_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load migration file: {unit.source_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


__all__ = [
    "MigrationUnit",
    "discover_units",
    "collect_migration_paths",
    "load_unit",
]
