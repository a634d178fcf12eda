"""
Filter variants for the query builder.

A filter is one of Eq, Gte, Lte or In. Each is a frozen value holding its
column and operand, and knows how to test a single record. Filters in one
query are conjunctive.

Invariants:
    - A record missing the column never matches
    - Range filters never match None or values incomparable with the bound
    - Booleans only equal booleans (1 does not equal True)
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Union

Record = Dict[str, Any]

_MISSING = object()


def values_equal(stored: Any, expected: Any) -> bool:
    """Strict equality for JSON values."""
    if isinstance(stored, bool) or isinstance(expected, bool):
        return isinstance(stored, bool) and isinstance(expected, bool) and stored == expected
    return stored == expected


def _compare(stored: Any, bound: Any, op: Callable[[Any, Any], bool]) -> bool:
    if stored is _MISSING or stored is None or bound is None:
        return False
    try:
        return bool(op(stored, bound))
    except TypeError:
        return False


@dataclass(frozen=True)
class Eq:
    """column == value"""

    column: str
    value: Any

    def matches(self, record: Record) -> bool:
        stored = record.get(self.column, _MISSING)
        return stored is not _MISSING and values_equal(stored, self.value)


@dataclass(frozen=True)
class Gte:
    """column >= value"""

    column: str
    value: Any

    def matches(self, record: Record) -> bool:
        return _compare(record.get(self.column, _MISSING), self.value, operator.ge)


@dataclass(frozen=True)
class Lte:
    """column <= value"""

    column: str
    value: Any

    def matches(self, record: Record) -> bool:
        return _compare(record.get(self.column, _MISSING), self.value, operator.le)


@dataclass(frozen=True)
class In:
    """column in values"""

    column: str
    values: Tuple[Any, ...]

    def matches(self, record: Record) -> bool:
        stored = record.get(self.column, _MISSING)
        if stored is _MISSING:
            return False
        return any(values_equal(stored, v) for v in self.values)


Filter = Union[Eq, Gte, Lte, In]


def matches_all(record: Record, filters: Tuple[Filter, ...]) -> bool:
    return all(f.matches(record) for f in filters)
