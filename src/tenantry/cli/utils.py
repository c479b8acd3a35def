"""
CLI utility helpers: runner construction and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from tenantry.errors import TenantryError
from tenantry.logging import configure_logging
from tenantry.migrations import MigrationRunner, collect_migration_paths
from tenantry.resolver import ConnectionResolver
from tenantry.scope import ScopeKind
from tenantry.settings import load_settings

console = Console()
err_console = Console(stderr=True)


# ── Runner helper ────────────────────────────────────────────────────────


def make_runner(
    scope: ScopeKind,
    modules_dir: Path,
    config: Path | None = None,
) -> tuple[MigrationRunner, ConnectionResolver]:
    """Settings → resolver → runner for one scope's module migrations."""
    try:
        settings = load_settings(config)
    except TenantryError as e:
        fail(e)
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")
    resolver = ConnectionResolver(settings)
    runner = MigrationRunner(resolver, {scope: collect_migration_paths(modules_dir, scope)})
    return runner, resolver


def fail(error: TenantryError) -> NoReturn:
    """Print a tenantry error and exit with status 1."""
    err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    if error.cause is not None:
        err_console.print(f"[dim]Caused by: {error.cause}[/dim]")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / dict to plain dict."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(items: list, *, title: str = "") -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    if not items:
        console.print("[dim]No items.[/dim]")
        return
    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        row = _to_dict(item)
        table.add_row(*(str(row.get(col, "")) for col in first))
    console.print(table)
