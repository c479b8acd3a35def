"""Table gateway bound to a scope.

Provides :class:`ScopedRepository`, a thin CRUD layer over one table in
the database of the current scope. Every call resolves the handle again,
so the same repository object serves whichever tenant or unit the ambient
:func:`~tenantry.scope.scope_context` names at call time.

Architecture::

    ┌──────────────────────────────────────────────────────────────┐
    │                     ScopedRepository                         │
    │                                                              │
    │   resolver   ← ConnectionResolver (allow_default=False)      │
    │   table, scope, primary_key                                  │
    │                                                              │
    │   find(criteria, columns)  → list[dict]                      │
    │   get(id)                  → dict | None                     │
    │   count(criteria)          → int                             │
    │   insert(data)             → int (rows affected)             │
    │   update(id, data)         → int                             │
    │   delete(id)               → int                             │
    └──────────────────────────────────────────────────────────────┘

Usage:
    >>> products = ScopedRepository(resolver, "products", scope="tenant")
    >>> with scope_context(tenant_id="acme"):
    ...     products.insert({"name": "Widget", "price": 10})
    ...     products.find(QueryCriteria().where("price", "<", 20).order_by("name"))

Tags:
    repository, database, multi-tenant, table-gateway
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tenantry.adapters.handle import ConnectionHandle
from tenantry.errors import ValidationError
from tenantry.query import QueryCriteria
from tenantry.resolver import ConnectionResolver
from tenantry.scope import ScopeKind


class ScopedRepository:
    """CRUD helpers for one table in one scope.

    Tenant and unit repositories never fall back to the default
    connection: without an identity in context they raise
    ``MissingIdentityError``.
    """

    def __init__(
        self,
        resolver: ConnectionResolver,
        table: str,
        scope: ScopeKind | str = ScopeKind.CORE,
        primary_key: str = "id",
    ) -> None:
        self.resolver = resolver
        self.table = table
        self.scope = ScopeKind.parse(scope)
        self.primary_key = primary_key

    @property
    def handle(self) -> ConnectionHandle:
        return self.resolver.resolve(self.scope, allow_default=False)

    # -- Reads -------------------------------------------------------------

    def find(self, criteria: QueryCriteria | None = None, columns: str | list[str] = "*") -> list[dict[str, Any]]:
        """Rows matching *criteria* (all rows without one)."""
        handle = self.handle
        sql, params = (criteria or QueryCriteria()).render_select(self.table, columns, handle.dialect)
        return handle.query(sql, params)

    def get(self, id: Any) -> dict[str, Any] | None:
        """Row with the given primary key, or ``None``."""
        handle = self.handle
        q = handle.dialect.quote_identifier
        return handle.query_one(
            f"SELECT * FROM {q(self.table)} WHERE {q(self.primary_key)} = :id",
            {"id": id},
        )

    def count(self, criteria: QueryCriteria | None = None) -> int:
        handle = self.handle
        q = handle.dialect.quote_identifier
        where, params = (criteria or QueryCriteria()).render_where(handle.dialect.quote_char)
        sql = f"SELECT COUNT(*) FROM {q(self.table)}"
        if where:
            sql += f" {where}"
        return int(handle.scalar(sql, params) or 0)

    # -- Writes ------------------------------------------------------------

    def insert(self, data: Mapping[str, Any]) -> int:
        self._require_data(data)
        return self.handle.insert(self.table, data)

    def update(self, id: Any, data: Mapping[str, Any]) -> int:
        """Update the row with the given primary key; returns rows affected."""
        self._require_data(data)
        handle = self.handle
        q = handle.dialect.quote_identifier
        params: dict[str, Any] = {}
        assignments = []
        for index, (column, value) in enumerate(data.items()):
            params[f"v{index}"] = value
            assignments.append(f"{q(column)} = :v{index}")
        params["pk"] = id
        sql = f"UPDATE {q(self.table)} SET {', '.join(assignments)} WHERE {q(self.primary_key)} = :pk"
        return handle.execute(sql, params)

    def delete(self, id: Any) -> int:
        handle = self.handle
        q = handle.dialect.quote_identifier
        return handle.execute(
            f"DELETE FROM {q(self.table)} WHERE {q(self.primary_key)} = :id",
            {"id": id},
        )

    def _require_data(self, data: Mapping[str, Any]) -> None:
        if not data:
            raise ValidationError(f"No columns given for {self.table}", field="data", constraint="non-empty")

    def __repr__(self) -> str:
        return f"ScopedRepository(table={self.table!r}, scope={self.scope.value!r})"


__all__ = ["ScopedRepository"]
