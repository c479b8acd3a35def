"""
Root Typer application for the tenantry CLI.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

app = Typer(
    name="tenantry",
    help="tenantry: multi-tenant data access: per-scope connections and migrations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("tenantry")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"tenantry {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """tenantry CLI: apply and inspect per-scope migrations."""


# ── Command registration ─────────────────────────────────────────────────

from tenantry.cli.migrate import migrate, rollback, status  # noqa: E402

app.command(help="Apply pending migrations for a scope.")(migrate)
app.command(help="Show applied and pending migrations for a scope.")(status)
app.command(help="Revert the last applied migration of a scope.")(rollback)
