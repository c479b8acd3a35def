"""
Shared pytest fixtures for tenantry tests.

This module provides:
- SQLite settings and resolvers backed by temp files or ``:memory:``
- Migration registry and structlog context cleanup for test isolation
- A migration tree builder for runner and CLI tests
"""

import sys
import textwrap
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

# Ensure tenantry package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tenantry.adapters import DriverConfig
from tenantry.logging import clear_context
from tenantry.migrations import clear_registry
from tenantry.resolver import ConnectionResolver
from tenantry.settings import DatabaseSettings


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_migration_registry() -> Generator[None, None, None]:
    """Clear the global migration registry before and after each test."""
    clear_registry()
    yield
    clear_registry()


@pytest.fixture(autouse=True)
def clean_log_context() -> Generator[None, None, None]:
    clear_context()
    yield
    clear_context()
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def no_tenantry_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host environment and ``.env`` files out of settings."""
    import os

    for key in list(os.environ):
        if key.startswith("TENANTRY_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


# =============================================================================
# Connection Fixtures
# =============================================================================


@pytest.fixture
def sqlite_settings(tmp_path: Path) -> DatabaseSettings:
    """One SQLite file per scope-kind under tmp_path."""
    return DatabaseSettings.from_mapping({
        "core": {"driver": "sqlite", "database": str(tmp_path / "db" / "core.db")},
        "tenant": {"driver": "sqlite", "database": str(tmp_path / "db" / "tenant.db")},
        "unit": {"driver": "sqlite", "database": str(tmp_path / "db" / "unit.db")},
    })


@pytest.fixture
def resolver(sqlite_settings: DatabaseSettings) -> Generator[ConnectionResolver, None, None]:
    r = ConnectionResolver(sqlite_settings)
    yield r
    r.close_all()


@pytest.fixture
def memory_resolver() -> Generator[ConnectionResolver, None, None]:
    """Every scope on its own in-memory database."""
    memory = DriverConfig(driver="sqlite", database=":memory:")
    r = ConnectionResolver({"core": memory, "tenant": memory, "unit": memory})
    yield r
    r.close_all()


# =============================================================================
# Migration Fixtures
# =============================================================================


MIGRATION_TEMPLATE = '''\
from tenantry.migrations import Migration, register_migration


@register_migration
class {class_name}(Migration):
    def up(self):
{up}
{down}
'''


@pytest.fixture
def write_migration() -> Callable[..., Path]:
    """
    Write a migration file.

        write_migration(directory, "0001_create_users", up="CREATE TABLE users (id INTEGER)")
    """
    from tenantry.migrations import migration_class_name

    def _write(
        directory: Path,
        name: str,
        up: str | list[str] = "",
        down: str | list[str] | None = None,
        class_name: str | None = None,
        body: str | None = None,
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.py"
        if body is not None:
            path.write_text(textwrap.dedent(body), encoding="utf-8")
            return path

        def _statements(sql: str | list[str]) -> str:
            statements = [sql] if isinstance(sql, str) else sql
            lines = [f"        self.execute({s!r})" for s in statements if s]
            return "\n".join(lines) or "        pass"

        down_src = ""
        if down is not None:
            down_src = "\n    def down(self):\n" + _statements(down) + "\n"
        path.write_text(
            MIGRATION_TEMPLATE.format(
                class_name=class_name or migration_class_name(name),
                up=_statements(up),
                down=down_src,
            ),
            encoding="utf-8",
        )
        return path

    return _write
