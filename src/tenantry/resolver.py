"""Connection resolver: one cached handle per (scope-kind, identity).

Manifesto:
    Opening a connection per query is slow and opening two connections for
    the same tenant breaks transactions. The resolver is the single place
    that decides *which* database a piece of work targets and guarantees
    that every caller asking for the same target gets the same handle.

Resolution rules::

    core                    → one handle, identity ignored
    tenant / unit + id      → one handle per (kind, id)
    tenant / unit, no id    → allow_default=True  → shared (kind, DEFAULT_IDENTITY)
                              allow_default=False → MissingIdentityError

The identity comes from the explicit argument or, failing that, from the
ambient :func:`tenantry.scope.scope_context`.

Examples:
    >>> resolver = ConnectionResolver(settings)
    >>> with scope_context(tenant_id="acme"):
    ...     handle = resolver.resolve(ScopeKind.TENANT)
    >>> handle is resolver.resolve(ScopeKind.TENANT, "acme")
    True

Tags:
    tenantry, database, resolver, cache, multi-tenant, thread-safe
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping

from tenantry.adapters.handle import ConnectionHandle
from tenantry.adapters.registry import build_connection
from tenantry.adapters.types import DriverConfig
from tenantry.errors import MissingConfigError, MissingIdentityError
from tenantry.logging import get_logger
from tenantry.scope import ScopeIdentity, ScopeKind, current_identity
from tenantry.settings import DatabaseSettings

logger = get_logger(__name__)

class _DefaultIdentity:
    """Identity slot of the shared default connection of a scope-kind.

    Not a string, so no real tenant or unit id can collide with it.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<default>"


DEFAULT_IDENTITY = _DefaultIdentity()

CacheKey = tuple[ScopeKind, "str | _DefaultIdentity"]
ConnectionFactory = Callable[[DriverConfig], ConnectionHandle]


class ConnectionResolver:
    """
    Resolves and caches connection handles per scope.

    Args:
        settings: ``DatabaseSettings`` or a plain ``{scope: DriverConfig}``
            mapping (string or ``ScopeKind`` keys).
        factory: Builds a handle from a config on cache miss. Defaults to
            :func:`tenantry.adapters.build_connection`.
        overrides: ``{(kind, identity): DriverConfig}`` for identities that
            live on their own server. Merged over ``settings.overrides``.
    """

    def __init__(
        self,
        settings: DatabaseSettings | Mapping[ScopeKind | str, DriverConfig],
        *,
        factory: ConnectionFactory = build_connection,
        overrides: Mapping[tuple[ScopeKind | str, ScopeIdentity], DriverConfig] | None = None,
    ):
        self._configs: dict[ScopeKind, DriverConfig] = {}
        self._overrides: dict[tuple[ScopeKind, ScopeIdentity], DriverConfig] = {}

        if isinstance(settings, DatabaseSettings):
            for kind in ScopeKind:
                self._configs[kind] = settings.for_scope(kind)
            self._overrides.update(settings.override_map())
        else:
            for kind, config in settings.items():
                self._configs[ScopeKind.parse(kind)] = config

        for (kind, identity), config in (overrides or {}).items():
            self._overrides[(ScopeKind.parse(kind), identity)] = config

        self._factory = factory
        self._cache: dict[CacheKey, ConnectionHandle] = {}
        self._lock = threading.Lock()

    # --- resolution ---

    def resolve(
        self,
        kind: ScopeKind | str,
        identity: ScopeIdentity = None,
        allow_default: bool = False,
    ) -> ConnectionHandle:
        """
        Return the handle for a scope, building it on first use.

        Raises:
            InvalidScopeError: unknown scope-kind
            MissingIdentityError: tenant/unit without identity and
                ``allow_default`` false
            ConfigError / DatabaseConnectionError: from the factory, unchanged
        """
        kind = ScopeKind.parse(kind)
        key = self._cache_key(kind, identity, allow_default)

        handle = self._cache.get(key)
        if handle is not None:
            return handle

        with self._lock:
            handle = self._cache.get(key)
            if handle is None:
                handle = self._factory(self._config_for(kind, key[1]))
                self._cache[key] = handle
                logger.debug("connection.resolved", scope=kind.value, identity=str(key[1]))
        return handle

    def resolve_core(self) -> ConnectionHandle:
        return self.resolve(ScopeKind.CORE)

    def resolve_tenant(self, tenant_id: ScopeIdentity = None, allow_default: bool = False) -> ConnectionHandle:
        return self.resolve(ScopeKind.TENANT, tenant_id, allow_default)

    def resolve_unit(self, unit_id: ScopeIdentity = None, allow_default: bool = False) -> ConnectionHandle:
        return self.resolve(ScopeKind.UNIT, unit_id, allow_default)

    def connection(self, scope: ScopeKind | str, allow_default: bool = False) -> ConnectionHandle:
        """Resolve by scope name using the ambient identity."""
        return self.resolve(scope, None, allow_default)

    # --- cache ---

    def cached_keys(self) -> list[CacheKey]:
        """Keys of the handles built so far, in build order."""
        with self._lock:
            return list(self._cache)

    def close_all(self) -> None:
        """Close every cached handle and empty the cache.

        Every handle is closed even if one fails; the first failure is
        re-raised afterwards.
        """
        with self._lock:
            handles = list(self._cache.items())
            self._cache.clear()

        first_error: Exception | None = None
        for (kind, identity), handle in handles:
            try:
                handle.close()
            except Exception as e:
                logger.warning("connection.close_failed", scope=kind.value, identity=str(identity), error=str(e))
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    # --- internal ---

    def _cache_key(self, kind: ScopeKind, identity: ScopeIdentity, allow_default: bool) -> CacheKey:
        if kind is ScopeKind.CORE:
            return (kind, kind.value)

        identity = identity or current_identity(kind)
        if identity:
            return (kind, identity)
        if allow_default:
            return (kind, DEFAULT_IDENTITY)
        raise MissingIdentityError(kind.value)

    def _config_for(self, kind: ScopeKind, identity: str | _DefaultIdentity) -> DriverConfig:
        override = self._overrides.get((kind, identity))
        if override is not None:
            return override
        try:
            return self._configs[kind]
        except KeyError:
            raise MissingConfigError(kind.value, f"No database configured for scope: {kind.value}") from None

    def __repr__(self) -> str:
        return f"ConnectionResolver(scopes={[k.value for k in self._configs]}, cached={len(self._cache)})"


__all__ = [
    "ConnectionResolver",
    "ConnectionFactory",
    "DEFAULT_IDENTITY",
]
