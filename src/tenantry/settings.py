"""Database settings for the three scope-kinds.

``DatabaseSettings`` holds one ``DriverConfig`` per scope-kind plus
optional per-tenant / per-unit overrides. Values come from (highest
priority first) environment variables, a ``.env`` file, then whatever the
caller hands in (a TOML file via :func:`load_settings` or a plain mapping
via :meth:`DatabaseSettings.from_mapping`).

Manifesto:
    Connection settings should be explicit, validated, and environment-driven.
    Production deployments override a checked-in TOML profile with
    ``TENANTRY_*`` environment variables; tests pass a mapping.

    - **Pydantic validation:** Type-checked at startup, not at first connect
    - **Environment-driven:** ``TENANTRY_CORE__HOST=db1`` sets ``core.host``
    - **Sensible defaults:** SQLite files under ``data/`` for development

Examples:
    >>> settings = DatabaseSettings.from_mapping({"core": {"driver": "sqlite", "database": ":memory:"}})
    >>> settings.for_scope("core").database
    ':memory:'

TOML profile::

    [core]
    driver = "pgsql"
    host = "db.internal"
    database = "app_core"

    [tenant]
    driver = "mysql"
    host = "tenants.internal"
    database = "tenant_default"

    [overrides.tenant.acme]
    driver = "mysql"
    host = "acme.internal"
    database = "tenant_acme"

Tags:
    settings, configuration, pydantic, environment, toml, tenantry
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from tenantry.adapters.types import DriverConfig
from tenantry.errors import ConfigError, InvalidConfigError
from tenantry.scope import ScopeKind, ScopeIdentity

LOG_FORMATS = ("console", "json")


def _default_sqlite(name: str) -> DriverConfig:
    return DriverConfig(driver="sqlite", database=f"data/{name}.db")


class DatabaseSettings(BaseSettings):
    """Connection settings for every scope-kind.

    Fields
    ──────
    core, tenant, unit : DriverConfig for each scope-kind
    overrides          : ``{scope: {identity: DriverConfig}}`` for tenants or
                         units that live on their own server
    log_level          : Structlog log level
    log_format         : ``console`` or ``json``
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTRY_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connections ──────────────────────────────────────────────
    core: DriverConfig = Field(default_factory=lambda: _default_sqlite("core"))
    tenant: DriverConfig = Field(default_factory=lambda: _default_sqlite("tenant"))
    unit: DriverConfig = Field(default_factory=lambda: _default_sqlite("unit"))

    overrides: dict[ScopeKind, dict[str, DriverConfig]] = Field(
        default_factory=dict,
        description="Per-identity connection settings, keyed by scope then identity",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats files and mappings handed in by the caller
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DatabaseSettings:
        """Build settings from plain structured values (e.g. a parsed config file)."""
        try:
            return cls(**dict(data))
        except ValidationError as e:
            raise ConfigError(f"Invalid database settings: {e}", cause=e) from e

    def for_scope(self, kind: ScopeKind | str) -> DriverConfig:
        """The ``DriverConfig`` of a scope-kind."""
        return getattr(self, ScopeKind.parse(kind).value)

    def override_map(self) -> dict[tuple[ScopeKind, ScopeIdentity], DriverConfig]:
        """Overrides flattened to ``{(kind, identity): config}`` for the resolver."""
        return {
            (kind, identity): config
            for kind, by_identity in self.overrides.items()
            for identity, config in by_identity.items()
        }


def load_settings(path: str | Path | None = None) -> DatabaseSettings:
    """
    Load settings from an optional TOML file, then the environment.

    Raises ``InvalidConfigError`` when the file exists but is not valid TOML
    and ``ConfigError`` when a value fails validation. A ``path`` that does
    not exist is an error; ``None`` means environment and defaults only.
    """
    data: dict[str, Any] = {}
    if path is not None:
        file = Path(path)
        if not file.is_file():
            raise InvalidConfigError("config", str(file), f"Config file not found: {file}")
        try:
            with file.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as e:
            raise InvalidConfigError("config", str(file), f"Invalid TOML in {file}: {e}", cause=e) from e
    return DatabaseSettings.from_mapping(data)


__all__ = [
    "DatabaseSettings",
    "load_settings",
]
