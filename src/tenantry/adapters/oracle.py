"""Oracle database adapter.

Uses ``oracledb`` (python-oracledb), the driver that supersedes
``cx_Oracle``, through SQLAlchemy's ``oracle+oracledb`` dialect.

Oracle databases are addressed either by SID or by service name. A
``database`` value containing ``/`` (``host/ORCLPDB1`` or ``/ORCLPDB1``)
selects service-name addressing with the part after the last slash;
anything else is a SID.

Install the driver::

    pip install oracledb
    # or:  pip install tenantry[oracle]
"""

from __future__ import annotations

from sqlalchemy.engine import URL

from .base import DatabaseAdapter
from .types import DriverFamily


class OracleAdapter(DatabaseAdapter):
    """Oracle database adapter (default port 1521, charset AL32UTF8).

    python-oracledb always talks UTF-8 on the wire, which is what the
    AL32UTF8 default names; the charset is kept for reporting only.
    """

    family = DriverFamily.ORACLE
    default_port = 1521
    default_charset = "AL32UTF8"
    driver_package = "oracledb"

    @property
    def uses_service_name(self) -> bool:
        return "/" in (self._config.database or "")

    @property
    def service_name(self) -> str | None:
        if not self.uses_service_name:
            return None
        return self._config.database.rstrip("/").rsplit("/", 1)[-1]

    @property
    def sid(self) -> str | None:
        return None if self.uses_service_name else self._config.database

    def url(self) -> URL:
        if self.uses_service_name:
            return URL.create(
                "oracle+oracledb",
                username=self._config.username,
                password=self._config.password,
                host=self._config.host,
                port=self.port,
                query={"service_name": self.service_name},
            )
        return URL.create(
            "oracle+oracledb",
            username=self._config.username,
            password=self._config.password,
            host=self._config.host,
            port=self.port,
            database=self.sid,
        )


__all__ = [
    "OracleAdapter",
]
