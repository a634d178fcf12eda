"""
Immutable, awaitable query builder.

A QueryBuilder describes one operation (select, insert, update, delete)
against one collection. Chain methods return a new builder; nothing runs
until the builder is awaited or single() is awaited.

Example:
    >>> result = await (
    ...     client.collection("study_sessions")
    ...     .select("duration_hours, session_date")
    ...     .eq("user_id", "student-1")
    ...     .order("session_date", ascending=False)
    ...     .limit(5)
    ... )
    >>> result.data

Invariants:
    - Builders are never mutated; branching a builder is safe
    - Pipeline order is filter -> sort -> limit -> projection
    - Only one sort key is active; order() replaces the previous one
    - Sort is stable; ties keep insertion order in both directions

How to change safely:
    - New filter kinds go in filters.py and need a chain method here
    - Keep execution synchronous inside execute(); callers rely on each
      mutation completing without an await in the middle
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Generator,
    Iterable,
    List,
    Optional,
    Protocol,
    Tuple,
)

from ..errors import NoRowsFoundError, QueryError
from .filters import Eq, Filter, Gte, In, Lte, matches_all
from .response import APIResponse

if TYPE_CHECKING:
    from ..storage import Record


class Operation(str, Enum):
    """Kinds of query a builder can describe."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class OrderBy:
    """Active sort key."""

    column: str
    ascending: bool = True


class QueryExecutor(Protocol):
    """Anything that can run a built query."""

    def execute(self, query: QueryBuilder) -> APIResponse: ...


@dataclass(frozen=True)
class QueryBuilder:
    """Descriptor of one operation over one collection.

    Attributes:
        executor: Engine that runs the query
        collection: Collection name
        operation: Kind of operation
        payload: Insert records or update patch
        filters: Conjunctive filters
        order_by: Active sort key
        limit_count: Row cap after sorting
        columns: Projection; None on mutations means full records
    """

    executor: QueryExecutor = field(repr=False, compare=False)
    collection: str
    operation: Operation = Operation.SELECT
    payload: Any = field(default=None, repr=False)
    filters: Tuple[Filter, ...] = ()
    order_by: Optional[OrderBy] = None
    limit_count: Optional[int] = None
    columns: Optional[str] = "*"

    def _with_filter(self, f: Filter) -> QueryBuilder:
        return replace(self, filters=self.filters + (f,))

    def eq(self, column: str, value: Any) -> QueryBuilder:
        return self._with_filter(Eq(column, value))

    def gte(self, column: str, value: Any) -> QueryBuilder:
        return self._with_filter(Gte(column, value))

    def lte(self, column: str, value: Any) -> QueryBuilder:
        return self._with_filter(Lte(column, value))

    def in_(self, column: str, values: Iterable[Any]) -> QueryBuilder:
        return self._with_filter(In(column, tuple(values)))

    def order(self, column: str, *, ascending: bool = True) -> QueryBuilder:
        return replace(self, order_by=OrderBy(column, ascending))

    def limit(self, count: int) -> QueryBuilder:
        """Cap the result at the first ``count`` rows.

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"limit must be >= 0, got {count}")
        return replace(self, limit_count=count)

    def select(self, columns: str = "*") -> QueryBuilder:
        """Set the projection (or the returned representation on mutations)."""
        return replace(self, columns=columns)

    async def execute(self) -> APIResponse:
        return self.executor.execute(self)

    async def single(self) -> APIResponse:
        """Run the query and return its first row.

        Returns:
            APIResponse with one record, or NoRowsFoundError and data None
        """
        result = await self.execute()
        if result.error is not None:
            return result
        rows = result.data or []
        if not rows:
            return APIResponse(data=None, error=NoRowsFoundError(self.collection))
        return APIResponse(data=rows[0])

    def __await__(self) -> Generator[Any, None, APIResponse]:
        return self.execute().__await__()


def parse_columns(columns: Optional[str]) -> Optional[List[str]]:
    """Column list for a projection string, or None for all columns."""
    if columns is None:
        return None
    names = [c.strip() for c in columns.split(",") if c.strip()]
    if not names or "*" in names:
        return None
    return names


def project(records: List[Record], columns: Optional[str]) -> List[Record]:
    names = parse_columns(columns)
    if names is None:
        return [dict(r) for r in records]
    return [{name: r.get(name) for name in names} for r in records]


def sort_records(records: List[Record], order_by: OrderBy) -> List[Record]:
    """Stable sort on one column.

    None and missing values go last ascending and first descending.

    Raises:
        QueryError: If present values are not mutually comparable
    """
    column = order_by.column
    present = [r for r in records if r.get(column) is not None]
    absent = [r for r in records if r.get(column) is None]
    try:
        ordered = sorted(present, key=lambda r: r[column], reverse=not order_by.ascending)
    except TypeError as e:
        raise QueryError(f"Cannot order by '{column}': {e}", column=column) from e
    return ordered + absent if order_by.ascending else absent + ordered


def run_pipeline(records: List[Record], query: QueryBuilder) -> List[Record]:
    """Apply filter, sort and limit of query to records."""
    rows = [r for r in records if matches_all(r, query.filters)]
    if query.order_by is not None:
        rows = sort_records(rows, query.order_by)
    if query.limit_count is not None:
        rows = rows[: query.limit_count]
    return rows


def first_eq(filters: Tuple[Filter, ...], column: str) -> Optional[Eq]:
    for f in filters:
        if isinstance(f, Eq) and f.column == column:
            return f
    return None


def describe(query: QueryBuilder) -> Dict[str, Any]:
    """Loggable summary of a query (no payload)."""
    return {
        "collection": query.collection,
        "operation": query.operation.value,
        "filters": [f"{type(f).__name__.lower()}:{f.column}" for f in query.filters],
        "order": f"{query.order_by.column}:{'asc' if query.order_by.ascending else 'desc'}"
        if query.order_by
        else None,
        "limit": query.limit_count,
    }
