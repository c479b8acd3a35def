"""
tenantry: multi-tenant data access.

Resolves database connections per scope (core / tenant / unit), manages
nested transactions per scope, builds parameterized filter queries, and
applies per-scope schema migrations with an idempotent ledger.

Quick start::

    from tenantry import (
        ConnectionResolver, QueryCriteria, ScopeKind, TransactionManager,
        load_settings, scope_context,
    )

    resolver = ConnectionResolver(load_settings("tenantry.toml"))
    tx = TransactionManager(resolver)

    with scope_context(tenant_id="acme"):
        with tx.transaction(ScopeKind.TENANT) as handle:
            handle.insert("orders", {"sku": "W-1", "qty": 2})

        sql, params = QueryCriteria().where("qty", ">", 1).render_select("orders")
        rows = resolver.resolve(ScopeKind.TENANT).query(sql, params)
"""

from tenantry.adapters import ConnectionHandle, DriverConfig, build_connection
from tenantry.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseError,
    FilterError,
    InvalidScopeError,
    MigrationError,
    MissingConfigError,
    MissingIdentityError,
    NoActiveTransactionError,
    TenantryError,
)
from tenantry.migrations import Migration, MigrationRunner, register_migration
from tenantry.query import QueryCriteria, QueryFilter
from tenantry.repository import ScopedRepository
from tenantry.resolver import ConnectionResolver
from tenantry.scope import ScopeKind, current_identity, scope_context
from tenantry.settings import DatabaseSettings, load_settings
from tenantry.transaction import TransactionManager

__version__ = "0.1.0"

__all__ = [
    # Scope
    "ScopeKind",
    "scope_context",
    "current_identity",
    # Connections
    "DriverConfig",
    "ConnectionHandle",
    "build_connection",
    "ConnectionResolver",
    "DatabaseSettings",
    "load_settings",
    # Transactions
    "TransactionManager",
    # Queries
    "QueryCriteria",
    "QueryFilter",
    "ScopedRepository",
    # Migrations
    "Migration",
    "MigrationRunner",
    "register_migration",
    # Errors
    "TenantryError",
    "ConfigError",
    "MissingConfigError",
    "DatabaseConnectionError",
    "DatabaseError",
    "MissingIdentityError",
    "InvalidScopeError",
    "NoActiveTransactionError",
    "FilterError",
    "MigrationError",
]
