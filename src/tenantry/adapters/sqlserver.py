"""Microsoft SQL Server database adapter.

Uses ``pymssql`` through SQLAlchemy's ``mssql+pymssql`` dialect; it needs no
system ODBC driver and accepts the connection charset directly.

Install the driver::

    pip install pymssql
    # or:  pip install tenantry[sqlserver]
"""

from __future__ import annotations

from sqlalchemy.engine import URL

from .base import DatabaseAdapter
from .types import DriverFamily


class SQLServerAdapter(DatabaseAdapter):
    """SQL Server database adapter (default port 1433, charset UTF-8)."""

    family = DriverFamily.SQLSERVER
    default_port = 1433
    default_charset = "UTF-8"
    driver_package = "pymssql"

    def url(self) -> URL:
        return URL.create(
            "mssql+pymssql",
            username=self._config.username,
            password=self._config.password,
            host=self._config.host,
            port=self.port,
            database=self._config.database,
            query={"charset": self.charset},
        )


__all__ = [
    "SQLServerAdapter",
]
