"""Parameterized filter queries.

Build a :class:`QueryCriteria` from :class:`QueryFilter` predicates and
render it to SQL text plus a bound-parameter mapping for
``ConnectionHandle.query``.

Example::

    from tenantry.query import QueryCriteria

    criteria = (
        QueryCriteria()
        .where("status", "=", "active")
        .where("role", "IN", ["admin", "owner"])
        .order_by("name")
        .limit(20)
    )
    sql, params = criteria.render_select("users", dialect=handle.dialect)
    rows = handle.query(sql, params)
"""

from .criteria import OrderBy, QueryCriteria
from .filter import LOGICAL_OPERATORS, OPERATORS, ParamAllocator, QueryFilter, escape_field

__all__ = [
    "QueryCriteria",
    "QueryFilter",
    "OrderBy",
    "ParamAllocator",
    "OPERATORS",
    "LOGICAL_OPERATORS",
    "escape_field",
]
