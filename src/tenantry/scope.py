"""Scope kinds and the ambient scope identity of the current unit of work.

A *scope-kind* selects which database partition an operation targets
(``core``, ``tenant`` or ``unit``); a *scope identity* selects which
database inside the tenant or unit partition. The calling layer (HTTP
middleware, CLI, job runner) sets the identity once per unit of work with
:func:`scope_context`; the core only reads it.

The identity is held in :mod:`contextvars`, so each thread or asyncio task
sees its own value and nothing leaks between concurrent requests.

Example::

    from tenantry.scope import ScopeKind, scope_context

    with scope_context(tenant_id="acme"):
        handle = resolver.resolve(ScopeKind.TENANT)   # acme's database
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum

from tenantry.errors import InvalidScopeError
from tenantry.logging import bound_context


class ScopeKind(str, Enum):
    """The three data partitions."""

    CORE = "core"
    TENANT = "tenant"
    UNIT = "unit"

    @classmethod
    def parse(cls, value: ScopeKind | str) -> ScopeKind:
        """Coerce a member or a case-insensitive name into a ``ScopeKind``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidScopeError(value)


ScopeIdentity = str | None


@dataclass(frozen=True)
class ScopeState:
    """Snapshot of the ambient scope values for one unit of work."""

    request_id: str
    tenant_id: str | None = None
    unit_id: str | None = None
    user_id: str | None = None


def new_request_id() -> str:
    """32 hex characters, random per unit of work."""
    return uuid.uuid4().hex


_state: ContextVar[ScopeState | None] = ContextVar("tenantry_scope", default=None)


def current_scope() -> ScopeState | None:
    """The ambient scope state, or ``None`` outside :func:`scope_context`."""
    return _state.get()


def current_tenant_id() -> str | None:
    state = _state.get()
    return state.tenant_id if state else None


def current_unit_id() -> str | None:
    state = _state.get()
    return state.unit_id if state else None


def current_request_id() -> str | None:
    state = _state.get()
    return state.request_id if state else None


def current_identity(kind: ScopeKind | str) -> ScopeIdentity:
    """Ambient identity for *kind*; always ``None`` for ``core``."""
    match ScopeKind.parse(kind):
        case ScopeKind.TENANT:
            return current_tenant_id()
        case ScopeKind.UNIT:
            return current_unit_id()
        case ScopeKind.CORE:
            return None


@contextmanager
def scope_context(
    *,
    tenant_id: str | None = None,
    unit_id: str | None = None,
    user_id: str | None = None,
    request_id: str | None = None,
) -> Iterator[ScopeState]:
    """Set the ambient scope for the duration of the block.

    The request, tenant and unit identifiers are also bound into the
    structured-logging context so every log line emitted inside the block
    carries them.
    """
    state = ScopeState(
        request_id=request_id or new_request_id(),
        tenant_id=tenant_id,
        unit_id=unit_id,
        user_id=user_id,
    )
    log_fields = {
        key: value
        for key, value in (
            ("request_id", state.request_id),
            ("tenant_id", state.tenant_id),
            ("unit_id", state.unit_id),
        )
        if value is not None
    }
    token = _state.set(state)
    try:
        with bound_context(**log_fields):
            yield state
    finally:
        _state.reset(token)


__all__ = [
    "ScopeKind",
    "ScopeIdentity",
    "ScopeState",
    "new_request_id",
    "current_scope",
    "current_tenant_id",
    "current_unit_id",
    "current_request_id",
    "current_identity",
    "scope_context",
]
