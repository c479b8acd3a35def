"""Nested transactions per scope-kind.

Only the outermost ``open``/``close`` pair touches the database: the first
``open`` begins a transaction, nested ``open`` calls bump a level counter,
and the ``close`` that brings the level back to zero commits. ``rollback``
always unwinds the whole stack, whatever the level.

Manifesto:
    Service code composes: a use case that opens a transaction calls a
    helper that opens one too. Without nesting, the helper's ``close``
    would commit half of the outer unit of work.

    - **Commit once:** N nested opens, N closes, one COMMIT
    - **Rollback is total:** any rollback discards the outermost transaction
    - **Errors propagate:** commit failures roll back, then re-raise

Examples:
    >>> tx = TransactionManager(resolver)
    >>> handle = tx.open("tenant")
    >>> tx.open("tenant") is handle        # nested: same handle, no BEGIN
    True
    >>> tx.close("tenant"); tx.close("tenant")   # second close commits

    >>> tx.run(lambda h: h.insert("audit", {"event": "login"}), "core")

    >>> with tx.transaction("core") as handle:
    ...     handle.execute("DELETE FROM sessions")

Note:
    Entries are keyed by scope-kind only, so two threads working on
    different tenants through one manager share the tenant transaction.
    Give each unit of work its own manager, or serialize per scope-kind.

Tags:
    tenantry, database, transaction, nested, commit, rollback
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeVar

from tenantry.adapters.handle import ConnectionHandle
from tenantry.errors import NoActiveTransactionError
from tenantry.logging import get_logger
from tenantry.resolver import ConnectionResolver
from tenantry.scope import ScopeKind

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class TransactionEntry:
    """An open transaction: the handle it runs on and its nesting depth."""

    handle: ConnectionHandle
    level: int = 1


class TransactionManager:
    """Tracks one (possibly nested) transaction per scope-kind."""

    def __init__(self, resolver: ConnectionResolver):
        self._resolver = resolver
        self._entries: dict[ScopeKind, TransactionEntry] = {}
        self._lock = threading.RLock()

    def open(self, kind: ScopeKind | str = ScopeKind.CORE) -> ConnectionHandle:
        """Begin (or join) the transaction for *kind* and return its handle."""
        kind = ScopeKind.parse(kind)
        # Tenant and unit work may run without an identity (bootstrap, examples)
        handle = self._resolver.resolve(kind, allow_default=kind is not ScopeKind.CORE)

        with self._lock:
            entry = self._entries.get(kind)
            if entry is not None:
                entry.level += 1
                logger.debug("transaction.nested", scope=kind.value, level=entry.level)
                return entry.handle

            handle.begin()
            self._entries[kind] = TransactionEntry(handle)
            logger.debug("transaction.begin", scope=kind.value)
            return handle

    def close(self, kind: ScopeKind | str = ScopeKind.CORE) -> None:
        """Leave one nesting level; the outermost close commits.

        A failed commit is rolled back, the entry removed, and the commit
        error re-raised.
        """
        kind = ScopeKind.parse(kind)
        with self._lock:
            entry = self._require(kind)
            if entry.level > 1:
                entry.level -= 1
                return

            try:
                entry.handle.commit()
            except Exception as e:
                logger.error("transaction.commit_failed", scope=kind.value, error=str(e))
                try:
                    entry.handle.rollback()
                except Exception as rollback_error:
                    logger.warning(
                        "transaction.rollback_failed",
                        scope=kind.value,
                        error=str(rollback_error),
                    )
                del self._entries[kind]
                raise

            del self._entries[kind]
            logger.debug("transaction.commit", scope=kind.value)

    def rollback(self, kind: ScopeKind | str = ScopeKind.CORE) -> None:
        """Roll back and forget the transaction for *kind*, whatever its level."""
        kind = ScopeKind.parse(kind)
        with self._lock:
            entry = self._require(kind)
            try:
                entry.handle.rollback()
            finally:
                del self._entries[kind]
            logger.debug("transaction.rollback", scope=kind.value, level=entry.level)

    def run(self, callback: Callable[[ConnectionHandle], T], kind: ScopeKind | str = ScopeKind.CORE) -> T:
        """
        Run ``callback(handle)`` inside a transaction.

        Commits when the callback returns; rolls back and re-raises when it
        raises.
        """
        kind = ScopeKind.parse(kind)
        handle = self.open(kind)
        try:
            result = callback(handle)
        except BaseException:
            if self.is_active(kind):
                self.rollback(kind)
            raise
        self.close(kind)
        return result

    @contextmanager
    def transaction(self, kind: ScopeKind | str = ScopeKind.CORE) -> Iterator[ConnectionHandle]:
        """Context-manager form of :meth:`run`."""
        kind = ScopeKind.parse(kind)
        handle = self.open(kind)
        try:
            yield handle
        except BaseException:
            if self.is_active(kind):
                self.rollback(kind)
            raise
        self.close(kind)

    # --- introspection ---

    def is_active(self, kind: ScopeKind | str = ScopeKind.CORE) -> bool:
        with self._lock:
            return ScopeKind.parse(kind) in self._entries

    def get_connection(self, kind: ScopeKind | str = ScopeKind.CORE) -> ConnectionHandle | None:
        """Handle of the active transaction, or ``None``."""
        with self._lock:
            entry = self._entries.get(ScopeKind.parse(kind))
            return entry.handle if entry else None

    def level(self, kind: ScopeKind | str = ScopeKind.CORE) -> int:
        """Current nesting depth (0 when no transaction is open)."""
        with self._lock:
            entry = self._entries.get(ScopeKind.parse(kind))
            return entry.level if entry else 0

    def _require(self, kind: ScopeKind) -> TransactionEntry:
        entry = self._entries.get(kind)
        if entry is None:
            raise NoActiveTransactionError(kind.value)
        return entry


__all__ = [
    "TransactionEntry",
    "TransactionManager",
]
