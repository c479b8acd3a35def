"""Database adapter base class.

Manifesto:
    Every engine needs the same lifecycle (validate config, build an engine,
    open a connection, wrap it in a ``ConnectionHandle``) but a different
    parameter shape. The abstract base owns the lifecycle; subclasses only
    translate a ``DriverConfig`` into a SQLAlchemy URL and driver arguments.

Features:
    - Required-field validation raising ``MissingConfigError``
    - Default port and charset per driver family
    - Import-guarded drivers: a missing DB-API package is a ``ConfigError``
    - Connect failures wrapped in ``DatabaseConnectionError`` (cause chained)

Tags:
    tenantry, database, abstract-base, adapter-pattern
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import NoSuchModuleError, SQLAlchemyError

from tenantry.dialect import Dialect, get_dialect
from tenantry.errors import ConfigError, DatabaseConnectionError, ErrorContext, MissingConfigError
from tenantry.logging import get_logger

from .handle import ConnectionHandle
from .types import DriverConfig, DriverFamily

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Translates a ``DriverConfig`` into an open ``ConnectionHandle``.

    Subclasses set the class attributes and implement ``url()``.
    """

    family: ClassVar[DriverFamily]
    default_port: ClassVar[int | None] = None
    default_charset: ClassVar[str | None] = None
    required_fields: ClassVar[tuple[str, ...]] = ("host", "database")
    driver_package: ClassVar[str] = ""

    def __init__(self, config: DriverConfig):
        self._config = config
        self._dialect: Dialect = get_dialect(self.family.value)
        self._validate()

    @property
    def config(self) -> DriverConfig:
        return self._config

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def port(self) -> int | None:
        """Configured port, or the family default."""
        return self._config.port or self.default_port

    @property
    def charset(self) -> str | None:
        """Configured charset, or the family default."""
        return self._config.charset or self.default_charset

    @abstractmethod
    def url(self) -> URL:
        """SQLAlchemy URL for this configuration."""
        ...

    def connect_args(self) -> dict[str, Any]:
        """Keyword arguments passed straight to the DB-API ``connect()``."""
        return dict(self._config.options)

    def create_engine(self) -> Engine:
        """Build the SQLAlchemy engine (no connection is opened yet)."""
        try:
            engine = create_engine(self.url(), connect_args=self.connect_args())
        except (ImportError, NoSuchModuleError) as e:
            hint = f" Install with: pip install {self.driver_package}" if self.driver_package else ""
            raise ConfigError(
                f"No DB-API driver available for {self.family.value}.{hint}",
                context=ErrorContext(driver=self.family.value),
                cause=e,
            ) from e
        self.configure_engine(engine)
        return engine

    def configure_engine(self, engine: Engine) -> None:
        """Hook for engine event listeners."""

    def connect(self) -> ConnectionHandle:
        """Open a connection and wrap it in a handle."""
        engine = self.create_engine()
        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            engine.dispose()
            raise DatabaseConnectionError(
                f"Failed to connect to {self.family.value}: {e}",
                context=ErrorContext(driver=self.family.value),
                cause=e,
            ) from e

        logger.debug(
            "connection.opened",
            driver=self.family.value,
            host=self._config.host,
            database=self._config.database,
        )
        return ConnectionHandle(engine, connection, family=self.family, dialect=self._dialect)

    def _validate(self) -> None:
        for name in self.required_fields:
            if getattr(self._config, name) in (None, ""):
                raise MissingConfigError(
                    name,
                    f"Driver {self._config.driver!r} requires '{name}'",
                    context=ErrorContext(driver=self.family.value),
                )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.url()!r})"


__all__ = [
    "DatabaseAdapter",
]
