"""Tests for TransactionManager nesting, commit and rollback."""

from __future__ import annotations

import pytest

from tenantry.adapters import DriverConfig
from tenantry.errors import NoActiveTransactionError
from tenantry.resolver import DEFAULT_IDENTITY, ConnectionResolver
from tenantry.scope import ScopeKind, scope_context
from tenantry.transaction import TransactionManager


class RecordingHandle:
    """Counts transaction calls; commit can be made to fail."""

    def __init__(self, config: DriverConfig | None = None):
        self.config = config
        self.begins = 0
        self.commits = 0
        self.rollbacks = 0
        self.fail_commit = False

    def begin(self) -> None:
        self.begins += 1

    def commit(self) -> None:
        if self.fail_commit:
            raise RuntimeError("commit failed")
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        pass


CONFIG = DriverConfig(driver="sqlite", database=":memory:")


@pytest.fixture()
def fake_resolver() -> ConnectionResolver:
    return ConnectionResolver({"core": CONFIG, "tenant": CONFIG, "unit": CONFIG}, factory=RecordingHandle)


@pytest.fixture()
def tx(fake_resolver) -> TransactionManager:
    return TransactionManager(fake_resolver)


class TestOpenClose:
    def test_single_open_close_commits(self, tx):
        handle = tx.open()
        assert handle.begins == 1
        assert tx.is_active("core")
        tx.close()
        assert handle.commits == 1
        assert not tx.is_active("core")

    def test_nested_commits_once(self, tx):
        handle = tx.open("core")
        assert tx.open("core") is handle
        assert tx.open(ScopeKind.CORE) is handle
        assert tx.level("core") == 3
        assert handle.begins == 1

        tx.close("core")
        tx.close("core")
        assert handle.commits == 0
        assert tx.level("core") == 1

        tx.close("core")
        assert handle.commits == 1
        assert tx.level("core") == 0

    def test_close_without_open(self, tx):
        with pytest.raises(NoActiveTransactionError, match="No active transaction for scope: core"):
            tx.close("core")

    def test_scopes_are_independent(self, tx):
        core = tx.open("core")
        tenant = tx.open("tenant")
        assert core is not tenant
        tx.close("tenant")
        assert tx.is_active("core")
        assert not tx.is_active("tenant")

    def test_tenant_without_identity_uses_default(self, tx, fake_resolver):
        tx.open("tenant")
        assert (ScopeKind.TENANT, DEFAULT_IDENTITY) in fake_resolver.cached_keys()
        tx.rollback("tenant")

    def test_tenant_with_identity(self, tx, fake_resolver):
        with scope_context(tenant_id="acme"):
            handle = tx.open("tenant")
        assert handle is fake_resolver.resolve_tenant("acme")
        tx.close("tenant")

    def test_get_connection(self, tx):
        assert tx.get_connection("core") is None
        handle = tx.open()
        assert tx.get_connection("core") is handle
        tx.close()


class TestCommitFailure:
    def test_rolls_back_removes_entry_and_reraises(self, tx):
        handle = tx.open()
        handle.fail_commit = True
        with pytest.raises(RuntimeError, match="commit failed"):
            tx.close()
        assert handle.rollbacks == 1
        assert not tx.is_active()


class TestRollback:
    def test_rollback_unwinds_all_levels(self, tx):
        handle = tx.open()
        tx.open()
        tx.open()
        tx.rollback()
        assert handle.rollbacks == 1
        assert not tx.is_active()
        with pytest.raises(NoActiveTransactionError):
            tx.close()

    def test_rollback_without_open(self, tx):
        with pytest.raises(NoActiveTransactionError):
            tx.rollback("unit")


class TestRun:
    def test_commits_and_returns(self, tx):
        result = tx.run(lambda h: "done")
        assert result == "done"
        handle = tx._resolver.resolve_core()
        assert handle.commits == 1
        assert not tx.is_active()

    def test_rolls_back_and_reraises(self, tx):
        def fail(handle):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            tx.run(fail, "unit")
        handle = tx._resolver.resolve("unit", allow_default=True)
        assert handle.rollbacks == 1
        assert handle.commits == 0
        assert not tx.is_active("unit")

    def test_nested_run_failure_unwinds_outer(self, tx):
        def inner(handle):
            raise ValueError("inner")

        def outer(handle):
            tx.run(inner)

        with pytest.raises(ValueError, match="inner"):
            tx.run(outer)
        handle = tx._resolver.resolve_core()
        assert handle.rollbacks == 1
        assert handle.commits == 0

    def test_nested_run_commits_once(self, tx):
        tx.run(lambda h: tx.run(lambda h2: None))
        assert tx._resolver.resolve_core().commits == 1

    def test_commit_failure_not_rolled_back_twice(self, tx):
        handle = tx.open()
        tx.close()
        handle.fail_commit = True
        with pytest.raises(RuntimeError):
            tx.run(lambda h: None)
        assert handle.rollbacks == 1


class TestContextManager:
    def test_commit(self, tx):
        with tx.transaction("core") as handle:
            assert tx.is_active("core")
        assert handle.commits == 1

    def test_rollback_on_error(self, tx):
        with pytest.raises(KeyError):
            with tx.transaction("core") as handle:
                raise KeyError("x")
        assert handle.rollbacks == 1
        assert not tx.is_active("core")


class TestWithSQLite:
    def test_committed_rows_persist(self, resolver):
        tx = TransactionManager(resolver)
        resolver.resolve_core().execute("CREATE TABLE t (id INTEGER)")
        with tx.transaction() as handle:
            handle.execute("INSERT INTO t VALUES (1)")
        assert resolver.resolve_core().scalar("SELECT COUNT(*) FROM t") == 1

    def test_rolled_back_rows_discarded(self, resolver):
        tx = TransactionManager(resolver)
        resolver.resolve_core().execute("CREATE TABLE t (id INTEGER)")

        def insert_then_fail(handle):
            handle.execute("INSERT INTO t VALUES (1)")
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            tx.run(insert_then_fail)
        assert resolver.resolve_core().scalar("SELECT COUNT(*) FROM t") == 0
