"""Tests for ScopedRepository."""

from pathlib import Path

import pytest

from tenantry.adapters import DriverConfig
from tenantry.errors import MissingIdentityError, ValidationError
from tenantry.query import QueryCriteria
from tenantry.repository import ScopedRepository
from tenantry.resolver import ConnectionResolver
from tenantry.scope import scope_context

PRODUCTS_DDL = "CREATE TABLE products (id INTEGER PRIMARY KEY, name VARCHAR(50), price INTEGER, category VARCHAR(20))"


@pytest.fixture
def tenant_resolver(tmp_path: Path):
    """Tenants ``acme`` and ``globex`` on separate SQLite files."""
    db = tmp_path / "db"
    r = ConnectionResolver(
        {
            "core": DriverConfig(database=str(db / "core.db")),
            "tenant": DriverConfig(database=str(db / "tenant_default.db")),
        },
        overrides={
            ("tenant", "acme"): DriverConfig(database=str(db / "acme.db")),
            ("tenant", "globex"): DriverConfig(database=str(db / "globex.db")),
        },
    )
    for tenant in ("acme", "globex"):
        r.resolve_tenant(tenant).execute(PRODUCTS_DDL)
    yield r
    r.close_all()


@pytest.fixture
def products(tenant_resolver) -> ScopedRepository:
    return ScopedRepository(tenant_resolver, "products", scope="tenant")


def _seed(repo: ScopedRepository) -> None:
    for name, price, category in [
        ("Widget", 10, "tools"),
        ("Gadget", 25, "tools"),
        ("Gizmo", 40, "toys"),
        ("Doohickey", 5, None),
    ]:
        repo.insert({"name": name, "price": price, "category": category})


class TestCrud:
    def test_insert_and_get(self, products):
        with scope_context(tenant_id="acme"):
            assert products.insert({"name": "Widget", "price": 10}) == 1
            row = products.get(1)
        assert row["name"] == "Widget"
        assert row["price"] == 10

    def test_get_missing(self, products):
        with scope_context(tenant_id="acme"):
            assert products.get(99) is None

    def test_update(self, products):
        with scope_context(tenant_id="acme"):
            products.insert({"name": "Widget", "price": 10})
            assert products.update(1, {"price": 12, "category": "tools"}) == 1
            row = products.get(1)
        assert row["price"] == 12
        assert row["category"] == "tools"

    def test_delete(self, products):
        with scope_context(tenant_id="acme"):
            products.insert({"name": "Widget", "price": 10})
            assert products.delete(1) == 1
            assert products.delete(1) == 0
            assert products.count() == 0

    def test_empty_data_rejected(self, products):
        with scope_context(tenant_id="acme"):
            with pytest.raises(ValidationError):
                products.insert({})
            with pytest.raises(ValidationError):
                products.update(1, {})


class TestQueries:
    def test_find_all(self, products):
        with scope_context(tenant_id="acme"):
            _seed(products)
            assert len(products.find()) == 4

    def test_find_with_criteria(self, products):
        criteria = QueryCriteria().where("price", ">=", 10).where("category", "=", "tools").order_by("price", "DESC")
        with scope_context(tenant_id="acme"):
            _seed(products)
            rows = products.find(criteria, columns=["name", "price"])
        assert rows == [{"name": "Gadget", "price": 25}, {"name": "Widget", "price": 10}]

    def test_find_in_and_null(self, products):
        with scope_context(tenant_id="acme"):
            _seed(products)
            names = [r["name"] for r in products.find(QueryCriteria().where("name", "IN", ["Gizmo", "Widget"]).order_by("name"))]
            nulls = products.find(QueryCriteria().where("category", "IS NULL"))
        assert names == ["Gizmo", "Widget"]
        assert [r["name"] for r in nulls] == ["Doohickey"]

    def test_pagination(self, products):
        criteria = QueryCriteria().order_by("price").limit(2).offset(1)
        with scope_context(tenant_id="acme"):
            _seed(products)
            rows = products.find(criteria)
        assert [r["name"] for r in rows] == ["Widget", "Gadget"]

    def test_count(self, products):
        with scope_context(tenant_id="acme"):
            _seed(products)
            assert products.count() == 4
            assert products.count(QueryCriteria().where("price", "BETWEEN", [5, 25])) == 3
            assert products.count(QueryCriteria().where("name", "LIKE", "G%")) == 2


class TestScoping:
    def test_tenants_are_isolated(self, products):
        with scope_context(tenant_id="acme"):
            products.insert({"name": "Acme only", "price": 1})
        with scope_context(tenant_id="globex"):
            assert products.count() == 0
            products.insert({"name": "Globex only", "price": 2})
        with scope_context(tenant_id="acme"):
            assert [r["name"] for r in products.find()] == ["Acme only"]

    def test_requires_identity(self, products):
        with pytest.raises(MissingIdentityError, match="Tenant ID not available"):
            products.find()

    def test_core_repository(self, tenant_resolver):
        tenant_resolver.resolve_core().execute("CREATE TABLE settings (id INTEGER PRIMARY KEY, key VARCHAR(50))")
        repo = ScopedRepository(tenant_resolver, "settings")
        repo.insert({"key": "theme"})
        assert repo.get(1)["key"] == "theme"

    def test_custom_primary_key(self, tenant_resolver):
        tenant_resolver.resolve_core().execute("CREATE TABLE codes (code VARCHAR(10) PRIMARY KEY, label VARCHAR(20))")
        repo = ScopedRepository(tenant_resolver, "codes", primary_key="code")
        repo.insert({"code": "eu", "label": "Europe"})
        repo.update("eu", {"label": "EU"})
        assert repo.get("eu") == {"code": "eu", "label": "EU"}
