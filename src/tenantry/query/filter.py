"""A single predicate of a WHERE clause.

``QueryFilter`` stores a field, an operator and a value; nothing is checked
until :meth:`QueryFilter.render` is called, so a filter can be built in one
layer and validated at the data-access call site.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tenantry.errors import FilterError

NULL_OPERATORS = frozenset({"IS NULL", "IS NOT NULL"})
LIST_OPERATORS = frozenset({"IN", "NOT IN"})
RANGE_OPERATORS = frozenset({"BETWEEN"})
COMPARISON_OPERATORS = frozenset({"=", "!=", "<", ">", "<=", ">=", "LIKE"})

OPERATORS = NULL_OPERATORS | LIST_OPERATORS | RANGE_OPERATORS | COMPARISON_OPERATORS
LOGICAL_OPERATORS = frozenset({"AND", "OR"})

DEFAULT_QUOTE = "`"

_CLOSING = {"`": "`", '"': '"', "[": "]"}


class ParamAllocator:
    """Hands out ``p0``, ``p1``, ... for one render pass."""

    def __init__(self, prefix: str = "p"):
        self._prefix = prefix
        self._next = 0

    def next(self) -> str:
        name = f"{self._prefix}{self._next}"
        self._next += 1
        return name


def escape_field(name: str, quote: str = DEFAULT_QUOTE) -> str:
    """Quote a field; ``table.column`` is quoted per part.

    Fields that already start with a backtick, double quote or bracket are
    returned unchanged.
    """
    if name.startswith(("`", '"', "[")):
        return name
    close = _CLOSING.get(quote, quote)
    return ".".join(f"{quote}{part}{close}" for part in name.split("."))


def _sequence(value: Any) -> list[Any] | None:
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return None
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


@dataclass
class QueryFilter:
    """
    One predicate: ``<field> <operator> <value>``.

    ``logical_operator`` joins this filter to the one before it; it is never
    emitted for the first filter. ``None`` means "use the criteria default".

    Examples:
        >>> params = {}
        >>> QueryFilter("age", ">=", 18).render(params)
        '`age` >= :p0'
        >>> params
        {'p0': 18}
    """

    field: str
    operator: str
    value: Any = None
    logical_operator: str | None = None

    def __post_init__(self) -> None:
        self.operator = self.operator.strip().upper()
        if self.logical_operator is not None:
            self.logical_operator = self.logical_operator.strip().upper()

    def render(
        self,
        params: dict[str, Any],
        allocator: ParamAllocator | None = None,
        quote: str = DEFAULT_QUOTE,
    ) -> str:
        """
        Render this predicate, adding its bound values to *params*.

        Raises:
            FilterError: unknown operator, ``IN``/``NOT IN`` without a
                non-empty list, ``BETWEEN`` without exactly two values.
        """
        allocator = allocator or ParamAllocator()
        column = escape_field(self.field, quote)
        op = self.operator

        if op in NULL_OPERATORS:
            return f"{column} {op}"

        if op in LIST_OPERATORS:
            values = _sequence(self.value)
            if values is None:
                raise FilterError(
                    f"Operator {op} requires a list value, got {type(self.value).__name__}",
                    field=self.field,
                    value=self.value,
                    constraint="sequence",
                )
            if not values:
                raise FilterError(
                    f"Operator {op} requires at least one value",
                    field=self.field,
                    value=self.value,
                    constraint="non-empty",
                )
            base = allocator.next()
            placeholders = []
            for index, item in enumerate(values):
                name = f"{base}_{index}"
                params[name] = item
                placeholders.append(f":{name}")
            return f"{column} {op} ({', '.join(placeholders)})"

        if op in RANGE_OPERATORS:
            values = _sequence(self.value)
            if values is None or len(values) != 2:
                raise FilterError(
                    "Operator BETWEEN requires a list with exactly 2 values",
                    field=self.field,
                    value=self.value,
                    constraint="pair",
                )
            low, high = allocator.next(), allocator.next()
            params[low], params[high] = values
            return f"{column} BETWEEN :{low} AND :{high}"

        if op in COMPARISON_OPERATORS:
            name = allocator.next()
            params[name] = self.value
            return f"{column} {op} :{name}"

        raise FilterError(
            f"Unsupported operator: {self.operator!r}",
            field=self.field,
            constraint="operator",
        )


__all__ = [
    "OPERATORS",
    "LOGICAL_OPERATORS",
    "ParamAllocator",
    "QueryFilter",
    "escape_field",
]
