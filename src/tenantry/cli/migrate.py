"""
CLI: ``tenantry migrate | status | rollback``: per-scope migrations.
"""

from __future__ import annotations

from pathlib import Path

import typer

from tenantry.cli.utils import console, fail, make_runner, print_json, print_table
from tenantry.errors import TenantryError
from tenantry.scope import ScopeKind

ScopeOption = typer.Option(..., "--scope", "-s", case_sensitive=False, help="core, tenant or unit")
ModulesDirOption = typer.Option(
    Path("modules"),
    "--modules-dir",
    "-m",
    help="Directory holding <module>/migrations/<scope>/",
)
ConfigOption = typer.Option(None, "--config", "-c", help="TOML settings file")
JsonOption = typer.Option(False, "--json", help="JSON output")


def migrate(
    scope: ScopeKind = ScopeOption,
    modules_dir: Path = ModulesDirOption,
    config: Path | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    runner, resolver = make_runner(scope, modules_dir, config)
    try:
        result = runner.run(scope)
    except TenantryError as e:
        fail(e)
    finally:
        resolver.close_all()

    if json_out:
        print_json({"scope": result.scope.value, "applied": result.applied, "skipped": result.skipped})
        return
    for name in result.applied:
        console.print(f"[green]applied[/green]  {name}")
    console.print(
        f"Migrations complete for scope [bold]{scope.value}[/bold]: "
        f"{len(result.applied)} applied, {len(result.skipped)} already applied."
    )


def status(
    scope: ScopeKind = ScopeOption,
    modules_dir: Path = ModulesDirOption,
    config: Path | None = ConfigOption,
    json_out: bool = JsonOption,
) -> None:
    runner, resolver = make_runner(scope, modules_dir, config)
    try:
        applied = runner.applied(scope)
        pending = runner.pending(scope)
    except TenantryError as e:
        fail(e)
    finally:
        resolver.close_all()

    if json_out:
        print_json({
            "scope": scope.value,
            "applied": [{"name": r.name, "applied_at": r.applied_at} for r in applied],
            "pending": pending,
        })
        return
    print_table(applied, title=f"Applied ({scope.value})")
    for name in pending:
        console.print(f"[yellow]pending[/yellow]  {name}")
    if not pending:
        console.print("[dim]Nothing pending.[/dim]")


def rollback(
    scope: ScopeKind = ScopeOption,
    modules_dir: Path = ModulesDirOption,
    config: Path | None = ConfigOption,
) -> None:
    runner, resolver = make_runner(scope, modules_dir, config)
    try:
        name = runner.rollback_last(scope)
    except TenantryError as e:
        fail(e)
    finally:
        resolver.close_all()

    if name is None:
        console.print("[dim]Nothing to roll back.[/dim]")
    else:
        console.print(f"[green]rolled back[/green]  {name}")
