"""
PostgREST-style query parameter parsing.

Translates REST query strings into QueryBuilder chains:

    ?user_id=eq.student-1&session_date=gte.2024-01-01&order=session_date.desc&limit=5

Supported operators: eq, gte, lte, in. Reserved parameters: select, order,
limit. Operand text is read as JSON scalars where it parses (numbers,
true/false, null), otherwise kept as a string.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Tuple

from ..query import QueryBuilder

RESERVED_PARAMS = ("select", "order", "limit")
FILTER_OPERATORS = ("eq", "gte", "lte", "in")


def coerce_value(text: str) -> Any:
    """Read an operand as a JSON scalar when possible."""
    try:
        value = json.loads(text)
    except ValueError:
        return text
    if isinstance(value, (dict, list)):
        return text
    return value


def parse_in_list(text: str) -> List[Any]:
    """Parse ``(a,b,c)`` into a list of operands.

    Raises:
        ValueError: If the list is not parenthesized
    """
    if not (text.startswith("(") and text.endswith(")")):
        raise ValueError(f"in filter must look like (a,b): {text!r}")
    inner = text[1:-1]
    if not inner:
        return []
    return [coerce_value(item.strip()) for item in inner.split(",")]


def apply_filter(query: QueryBuilder, column: str, expression: str) -> QueryBuilder:
    """Apply one ``op.value`` expression to query.

    Raises:
        ValueError: If the operator is unknown
    """
    op, sep, operand = expression.partition(".")
    if not sep or op not in FILTER_OPERATORS:
        raise ValueError(f"Unsupported filter on '{column}': {expression!r}")
    if op == "eq":
        return query.eq(column, coerce_value(operand))
    if op == "gte":
        return query.gte(column, coerce_value(operand))
    if op == "lte":
        return query.lte(column, coerce_value(operand))
    return query.in_(column, parse_in_list(operand))


def apply_order(query: QueryBuilder, expression: str) -> QueryBuilder:
    column, _, direction = expression.partition(".")
    if not column or direction not in ("", "asc", "desc"):
        raise ValueError(f"Invalid order: {expression!r}")
    return query.order(column, ascending=direction != "desc")


def apply_params(query: QueryBuilder, params: Iterable[Tuple[str, str]]) -> QueryBuilder:
    """Apply every filter/order/limit/select parameter to query.

    Args:
        query: Starting builder
        params: (name, value) pairs, repeated names allowed

    Returns:
        New builder

    Raises:
        ValueError: On malformed parameters
    """
    for name, value in params:
        if name == "select":
            query = query.select(value)
        elif name == "order":
            query = apply_order(query, value)
        elif name == "limit":
            try:
                count = int(value)
            except ValueError:
                raise ValueError(f"limit must be an integer: {value!r}")
            query = query.limit(count)
        else:
            query = apply_filter(query, name, value)
    return query
