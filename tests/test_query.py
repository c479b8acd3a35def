"""Tests for QueryFilter and QueryCriteria rendering."""

from __future__ import annotations

import pytest

from tenantry.dialect import MySQLDialect, SQLiteDialect, SQLServerDialect
from tenantry.errors import FilterError
from tenantry.query import ParamAllocator, QueryCriteria, QueryFilter, escape_field


class TestLiteralCases:
    def test_single_comparison(self):
        sql, params = QueryCriteria().add(QueryFilter("age", ">=", 18)).render_where()
        assert sql == "WHERE `age` >= :p0"
        assert params == {"p0": 18}

    def test_or_chain(self):
        criteria = QueryCriteria().add(QueryFilter("age", ">=", 18)).add(QueryFilter("status", "=", "active", "OR"))
        sql, params = criteria.render_where()
        assert sql == "WHERE `age` >= :p0 OR `status` = :p1"
        assert params == {"p0": 18, "p1": "active"}

    def test_first_logical_operator_never_emitted(self):
        sql, _ = QueryCriteria().add_filter("age", ">=", 18, "OR").render_where()
        assert sql == "WHERE `age` >= :p0"

    def test_in(self):
        sql, params = QueryCriteria().add_filter("role", "IN", ["admin", "owner"]).render_where()
        assert sql == "WHERE `role` IN (:p0_0, :p0_1)"
        assert params == {"p0_0": "admin", "p0_1": "owner"}

    def test_between(self):
        sql, params = QueryCriteria().add_filter("price", "BETWEEN", [10, 20]).render_where()
        assert sql == "WHERE `price` BETWEEN :p0 AND :p1"
        assert params == {"p0": 10, "p1": 20}

    def test_in_with_string_is_type_error(self):
        with pytest.raises(TypeError):
            QueryCriteria().add_filter("x", "IN", "not-a-list").render_where()


class TestQueryFilter:
    def test_operator_normalized(self):
        f = QueryFilter("name", " like ", "%a%", " or ")
        assert f.operator == "LIKE"
        assert f.logical_operator == "OR"

    @pytest.mark.parametrize("op", ["IS NULL", "is not null"])
    def test_null_operators_take_no_parameter(self, op):
        params = {}
        sql = QueryFilter("deleted_at", op).render(params)
        assert sql == f"`deleted_at` {op.upper()}"
        assert params == {}

    def test_not_in(self):
        params = {}
        sql = QueryFilter("id", "NOT IN", (1, 2, 3)).render(params)
        assert sql == "`id` NOT IN (:p0_0, :p0_1, :p0_2)"
        assert params == {"p0_0": 1, "p0_1": 2, "p0_2": 3}

    @pytest.mark.parametrize("value", ["abc", b"abc", {"a": 1}, 5, None])
    def test_in_rejects_non_list(self, value):
        with pytest.raises(FilterError):
            QueryFilter("x", "IN", value).render({})

    def test_in_rejects_empty(self):
        with pytest.raises(FilterError, match="at least one"):
            QueryFilter("x", "IN", []).render({})

    @pytest.mark.parametrize("value", [[1], [1, 2, 3], "ab", 5])
    def test_between_requires_pair(self, value):
        with pytest.raises(FilterError):
            QueryFilter("x", "BETWEEN", value).render({})

    def test_unknown_operator(self):
        with pytest.raises(FilterError, match="Unsupported operator"):
            QueryFilter("x", "~=", 1).render({})

    def test_errors_only_at_render(self):
        criteria = QueryCriteria().add_filter("x", "IN", "oops")
        assert len(criteria.filters) == 1


class TestEscaping:
    def test_dotted(self):
        assert escape_field("users.id") == "`users`.`id`"

    @pytest.mark.parametrize("field", ["`weird name`", '"Quoted"', "[Order Details]"])
    def test_prequoted_pass_through(self, field):
        assert escape_field(field) == field

    def test_other_quote(self):
        assert escape_field("users.id", '"') == '"users"."id"'
        assert escape_field("users", "[") == "[users]"

    def test_bracketed_field_with_bracket_quote(self):
        sql, _ = QueryCriteria().where("[a]", "=", 1).render_where("[")
        assert sql == "WHERE [a] = :p0"

    def test_dotted_field_in_filter(self):
        sql, _ = QueryCriteria().where("u.age", ">", 1).render_where()
        assert sql == "WHERE `u`.`age` > :p0"


class TestParameterNames:
    def test_same_field_twice(self):
        criteria = QueryCriteria().where("age", ">", 18).where("age", "<", 65)
        sql, params = criteria.render_where()
        assert sql == "WHERE `age` > :p0 AND `age` < :p1"
        assert params == {"p0": 18, "p1": 65}

    def test_mixed_operators_unique(self):
        criteria = (
            QueryCriteria()
            .where("a", "=", 1)
            .where("b", "IN", [1, 2])
            .where("c", "BETWEEN", [3, 4])
            .where("d", "IS NULL")
            .where("e", "=", 5)
        )
        sql, params = criteria.render_where()
        assert sql == (
            "WHERE `a` = :p0 AND `b` IN (:p1_0, :p1_1) AND `c` BETWEEN :p2 AND :p3 "
            "AND `d` IS NULL AND `e` = :p4"
        )
        assert len(params) == 6

    def test_allocator(self):
        alloc = ParamAllocator()
        assert [alloc.next(), alloc.next()] == ["p0", "p1"]

    def test_render_is_repeatable(self):
        criteria = QueryCriteria().where("a", "=", 1)
        assert criteria.render_where() == criteria.render_where()


class TestLogicalOperators:
    def test_default_is_and(self):
        sql, _ = QueryCriteria().add_filter("a", "=", 1).add_filter("b", "=", 2).render_where()
        assert sql == "WHERE `a` = :p0 AND `b` = :p1"

    def test_default_can_be_changed(self):
        criteria = QueryCriteria().set_default_logical_operator("or")
        criteria.add_filter("a", "=", 1).add_filter("b", "=", 2).add_filter("c", "=", 3, "AND")
        sql, _ = criteria.render_where()
        assert sql == "WHERE `a` = :p0 OR `b` = :p1 AND `c` = :p2"

    def test_or_where(self):
        sql, _ = QueryCriteria().where("a", "=", 1).or_where("b", "=", 2).render_where()
        assert sql == "WHERE `a` = :p0 OR `b` = :p1"

    def test_invalid_logical_operator(self):
        criteria = QueryCriteria().add_filter("a", "=", 1).add_filter("b", "=", 2, "XOR")
        with pytest.raises(FilterError):
            criteria.render_where()


class TestClauses:
    def test_empty_where(self):
        assert QueryCriteria().render_where() == ("", {})

    def test_order_by(self):
        criteria = QueryCriteria().order_by("name").order_by("created_at", "desc").order_by("x", "sideways")
        assert criteria.render_order_by() == "ORDER BY `name` ASC, `created_at` DESC, `x` ASC"

    def test_group_by(self):
        assert QueryCriteria().group_by("tenant").group_by("t.kind").render_group_by() == (
            "GROUP BY `tenant`, `t`.`kind`"
        )

    def test_empty_clauses(self):
        c = QueryCriteria()
        assert c.render_order_by() == ""
        assert c.render_group_by() == ""
        assert c.render_pagination(SQLiteDialect()) == ""

    def test_limit_offset_stored(self):
        c = QueryCriteria().limit(10).offset(20)
        assert (c.limit_value, c.offset_value) == (10, 20)
        assert c.render_pagination(MySQLDialect()) == "LIMIT 10 OFFSET 20"
        assert c.render_pagination(SQLServerDialect()) == "OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"


class TestRenderSelect:
    def test_full_select(self):
        criteria = (
            QueryCriteria()
            .where("status", "=", "active")
            .group_by("role")
            .order_by("role")
            .limit(5)
        )
        sql, params = criteria.render_select("users", ["role", "status"])
        assert sql == (
            "SELECT `role`, `status` FROM `users` WHERE `status` = :p0 "
            "GROUP BY `role` ORDER BY `role` ASC LIMIT 5"
        )
        assert params == {"p0": "active"}

    def test_dialect_quoting(self):
        sql, _ = QueryCriteria().where("id", "=", 1).render_select("users", dialect=SQLiteDialect())
        assert sql == 'SELECT * FROM "users" WHERE "id" = :p0'

    def test_sqlserver(self):
        criteria = QueryCriteria().order_by("id").limit(10)
        sql, _ = criteria.render_select("users", dialect=SQLServerDialect())
        assert sql == "SELECT * FROM [users] ORDER BY [id] ASC OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"
