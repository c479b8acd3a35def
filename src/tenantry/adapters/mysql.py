"""MySQL / MariaDB database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package through
SQLAlchemy's ``mysql+mysqlconnector`` dialect.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install tenantry[mysql]

The driver is import-guarded: if ``mysql.connector`` is not installed a
clear :class:`~tenantry.errors.ConfigError` is raised when the connection
is built.
"""

from __future__ import annotations

from sqlalchemy.engine import URL

from .base import DatabaseAdapter
from .types import DriverFamily


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter (default port 3306, charset utf8mb4)."""

    family = DriverFamily.MYSQL
    default_port = 3306
    default_charset = "utf8mb4"
    driver_package = "mysql-connector-python"

    def url(self) -> URL:
        return URL.create(
            "mysql+mysqlconnector",
            username=self._config.username,
            password=self._config.password,
            host=self._config.host,
            port=self.port,
            database=self._config.database,
            query={"charset": self.charset},
        )


__all__ = [
    "MySQLAdapter",
]
