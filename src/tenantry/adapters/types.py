"""Driver families and per-scope driver configuration."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DriverFamily(str, Enum):
    """Canonical driver identifiers."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"


# Accepted spellings → canonical family
DRIVER_ALIASES: dict[str, DriverFamily] = {
    "sqlite": DriverFamily.SQLITE,
    "mysql": DriverFamily.MYSQL,
    "mariadb": DriverFamily.MYSQL,
    "pgsql": DriverFamily.POSTGRESQL,
    "postgresql": DriverFamily.POSTGRESQL,
    "postgres": DriverFamily.POSTGRESQL,
    "sqlsrv": DriverFamily.SQLSERVER,
    "mssql": DriverFamily.SQLSERVER,
    "sqlserver": DriverFamily.SQLSERVER,
    "oracle": DriverFamily.ORACLE,
    "oci": DriverFamily.ORACLE,
}


class DriverConfig(BaseModel):
    """
    Connection settings for one scope-kind.

    Different fields are used by different driver families: SQLite only
    reads ``database`` (a file path or ``:memory:``); host-based engines read
    everything. Immutable once loaded.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    driver: str = "sqlite"

    # SQLite: file path. Others: database / schema / SID / service name.
    database: str | None = None

    # Host-based engines
    host: str | None = None
    port: int | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    charset: str | None = None

    # Extra keyword arguments for the DB-API driver
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("driver")
    @classmethod
    def _normalize_driver(cls, value: str) -> str:
        return value.strip().lower()

    def redacted(self) -> dict[str, Any]:
        """Field mapping safe to log (password masked)."""
        data = self.model_dump(exclude={"options"})
        if data.get("password"):
            data["password"] = "***"
        return data


__all__ = [
    "DriverFamily",
    "DRIVER_ALIASES",
    "DriverConfig",
]
