"""Composable WHERE / GROUP BY / ORDER BY / pagination.

Manifesto:
    Filters are assembled across layers (a controller adds the tenant's
    search terms, a service adds soft-delete exclusion, a repository adds
    paging) and only rendered at the data-access call site. Rendering is
    where every check happens, and every value leaves as a bound parameter.

Examples:
    >>> criteria = QueryCriteria().add_filter("age", ">=", 18).add_filter("status", "=", "active", "OR")
    >>> criteria.render_where()
    ('WHERE `age` >= :p0 OR `status` = :p1', {'p0': 18, 'p1': 'active'})

    >>> QueryCriteria().order_by("created_at", "desc").render_order_by()
    'ORDER BY `created_at` DESC'

Tags:
    tenantry, query, sql, criteria, parameterized
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tenantry.dialect import Dialect
from tenantry.errors import FilterError

from .filter import (
    DEFAULT_QUOTE,
    LOGICAL_OPERATORS,
    ParamAllocator,
    QueryFilter,
    escape_field,
)


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: str = "ASC"


class QueryCriteria:
    """Ordered filters plus ordering, grouping and paging. Fluent builder."""

    def __init__(self) -> None:
        self.filters: list[QueryFilter] = []
        self.ordering: list[OrderBy] = []
        self.grouping: list[str] = []
        self.limit_value: int | None = None
        self.offset_value: int | None = None
        self.default_logical_operator = "AND"

    # --- building ---

    def add(self, query_filter: QueryFilter) -> QueryCriteria:
        self.filters.append(query_filter)
        return self

    def add_filter(
        self,
        field: str,
        operator: str,
        value: Any = None,
        logical_operator: str | None = None,
    ) -> QueryCriteria:
        return self.add(QueryFilter(field, operator, value, logical_operator))

    def where(self, field: str, operator: str, value: Any = None) -> QueryCriteria:
        """Add a filter joined with ``AND``."""
        return self.add_filter(field, operator, value, "AND")

    def or_where(self, field: str, operator: str, value: Any = None) -> QueryCriteria:
        """Add a filter joined with ``OR``."""
        return self.add_filter(field, operator, value, "OR")

    def order_by(self, field: str, direction: str = "ASC") -> QueryCriteria:
        self.ordering.append(OrderBy(field, direction.strip().upper()))
        return self

    def group_by(self, field: str) -> QueryCriteria:
        self.grouping.append(field)
        return self

    def limit(self, limit: int) -> QueryCriteria:
        self.limit_value = limit
        return self

    def offset(self, offset: int) -> QueryCriteria:
        self.offset_value = offset
        return self

    def set_default_logical_operator(self, operator: str) -> QueryCriteria:
        """Operator used for filters added without one (initially ``AND``)."""
        self.default_logical_operator = operator.strip().upper()
        return self

    # --- rendering ---

    def render_where(self, quote: str = DEFAULT_QUOTE) -> tuple[str, dict[str, Any]]:
        """``('WHERE ...', params)``, or ``('', {})`` without filters."""
        if not self.filters:
            return "", {}

        params: dict[str, Any] = {}
        allocator = ParamAllocator()
        parts: list[str] = []
        for index, query_filter in enumerate(self.filters):
            sql = query_filter.render(params, allocator, quote)
            if index == 0:
                parts.append(sql)
                continue
            joiner = query_filter.logical_operator or self.default_logical_operator
            if joiner not in LOGICAL_OPERATORS:
                raise FilterError(
                    f"Unsupported logical operator: {joiner!r}",
                    field=query_filter.field,
                    constraint="logical_operator",
                )
            parts.append(f"{joiner} {sql}")
        return "WHERE " + " ".join(parts), params

    def render_order_by(self, quote: str = DEFAULT_QUOTE) -> str:
        if not self.ordering:
            return ""
        columns = [
            f"{escape_field(o.field, quote)} {'DESC' if o.direction == 'DESC' else 'ASC'}"
            for o in self.ordering
        ]
        return "ORDER BY " + ", ".join(columns)

    def render_group_by(self, quote: str = DEFAULT_QUOTE) -> str:
        if not self.grouping:
            return ""
        return "GROUP BY " + ", ".join(escape_field(f, quote) for f in self.grouping)

    def render_pagination(self, dialect: Dialect) -> str:
        """LIMIT/OFFSET (or OFFSET ... FETCH) in the dialect's syntax."""
        return dialect.limit_offset(self.limit_value, self.offset_value)

    def render_select(
        self,
        table: str,
        columns: str | list[str] = "*",
        dialect: Dialect | None = None,
    ) -> tuple[str, dict[str, Any]]:
        """
        Compose a full ``SELECT`` for *table*.

        With a dialect, identifiers use its quote character and pagination
        its syntax; without one, backticks and ``LIMIT``/``OFFSET``.
        """
        quote = dialect.quote_char if dialect else DEFAULT_QUOTE
        if isinstance(columns, str):
            columns = [columns]
        column_sql = ", ".join(c if c == "*" else escape_field(c, quote) for c in columns)

        where_sql, params = self.render_where(quote)
        if dialect is not None:
            pagination = self.render_pagination(dialect)
        else:
            pagination = " ".join(
                part
                for part in (
                    f"LIMIT {int(self.limit_value)}" if self.limit_value is not None else "",
                    f"OFFSET {int(self.offset_value)}" if self.offset_value is not None else "",
                )
                if part
            )

        clauses = [
            f"SELECT {column_sql} FROM {escape_field(table, quote)}",
            where_sql,
            self.render_group_by(quote),
            self.render_order_by(quote),
            pagination,
        ]
        return " ".join(c for c in clauses if c), params

    def __repr__(self) -> str:
        return (
            f"QueryCriteria(filters={len(self.filters)}, order_by={len(self.ordering)}, "
            f"limit={self.limit_value}, offset={self.offset_value})"
        )


__all__ = [
    "OrderBy",
    "QueryCriteria",
]
