"""
CLI layer for tenantry.

Provides a Typer application for bootstrap-time schema work. All logic
lives in ``tenantry.migrations``; this package handles only terminal
transport: argument parsing, coloured output, and table formatting.

Entry point::

    tenantry --help
"""

from tenantry.cli.app import app

__all__ = ["app"]
