"""PostgreSQL database adapter.

Uses ``psycopg2`` through SQLAlchemy's ``postgresql+psycopg2`` dialect.
The configured charset is sent as the session ``client_encoding``.

Install the driver::

    pip install psycopg2-binary
    # or:  pip install tenantry[postgresql]
"""

from __future__ import annotations

from sqlalchemy.engine import URL

from .base import DatabaseAdapter
from .types import DriverFamily


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter (default port 5432, charset UTF8)."""

    family = DriverFamily.POSTGRESQL
    default_port = 5432
    default_charset = "UTF8"
    driver_package = "psycopg2-binary"

    def url(self) -> URL:
        return URL.create(
            "postgresql+psycopg2",
            username=self._config.username,
            password=self._config.password,
            host=self._config.host,
            port=self.port,
            database=self._config.database,
            query={"client_encoding": self.charset},
        )


__all__ = [
    "PostgreSQLAdapter",
]
