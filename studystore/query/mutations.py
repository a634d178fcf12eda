"""
Mutation engine and query execution.

The engine runs built queries against the collection store:
- select: filter -> sort -> limit -> projection
- insert: engine-assigned id and timestamps, append, persist
- update: single-key lookup, merge patch, bump updated_at, persist
- delete: remove by id, no cascade, NotFoundError for a missing id

Invariants:
    - Each mutation reads, modifies and rewrites its whole collection in one
      synchronous step; last write wins per collection across processes
    - created_at/updated_at are always set by the engine
    - update() looks up by exactly one key: id, else invitation_code
    - Errors are returned inside APIResponse, never raised

How to change safely:
    - Never add an await between read and write of a collection
    - Adding a lookup key to UPDATE_LOOKUP_KEYS widens what update() can hit
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..errors import NotFoundError, QueryError
from ..storage import CollectionStore, Record
from ..timeutil import to_iso, utc_now
from .builder import (
    Operation,
    QueryBuilder,
    describe,
    first_eq,
    project,
    run_pipeline,
)
from .ids import IdGenerator
from .response import APIResponse

logger = logging.getLogger(__name__)

UPDATE_LOOKUP_KEYS = ("id", "invitation_code")
ENGINE_FIELDS = ("created_at", "updated_at")

ProfileHook = Callable[[Record], None]


class MutationEngine:
    """Executes QueryBuilder descriptors against a CollectionStore.

    Attributes:
        store: Collection store
        ids: Id generator shared with the session manager
        on_profile_updated: Called with the new record after a profile update

    Example:
        >>> engine = MutationEngine(store, IdGenerator())
        >>> query = QueryBuilder(engine, "invitations", Operation.INSERT, {"status": "pending"})
        >>> result = await query
    """

    def __init__(
        self,
        store: CollectionStore,
        ids: IdGenerator,
        *,
        on_profile_updated: Optional[ProfileHook] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.ids = ids
        self.on_profile_updated = on_profile_updated
        self._clock = clock

    def execute(self, query: QueryBuilder) -> APIResponse:
        """Run a query.

        Args:
            query: Built query

        Returns:
            APIResponse with data or error
        """
        logger.debug("Executing query", extra=describe(query))
        try:
            if query.operation == Operation.SELECT:
                return self._select(query)
            if query.operation == Operation.INSERT:
                return self._insert(query)
            if query.operation == Operation.UPDATE:
                return self._update(query)
            if query.operation == Operation.DELETE:
                return self._delete(query)
        except QueryError as e:
            return APIResponse(error=e)
        return APIResponse(data=[])

    def _select(self, query: QueryBuilder) -> APIResponse:
        records = self.store.read_collection(query.collection)
        rows = run_pipeline(records, query)
        return APIResponse(data=project(rows, query.columns))

    def _insert(self, query: QueryBuilder) -> APIResponse:
        payload = query.payload
        items: List[Dict[str, Any]] = [payload] if isinstance(payload, dict) else list(payload or [])

        stamp = to_iso(self._clock())
        records = self.store.read_collection(query.collection)
        created = []
        for item in items:
            fields = {k: v for k, v in item.items() if k not in ENGINE_FIELDS and k != "id"}
            record = {
                "id": item.get("id") or self.ids.new_id(query.collection),
                "created_at": stamp,
                "updated_at": stamp,
                **fields,
            }
            records.append(record)
            created.append(record)
        self.store.write_collection(query.collection, records)

        logger.info(f"Inserted {len(created)} record(s) into {query.collection}")
        return APIResponse(data=project(created, query.columns))

    def _update(self, query: QueryBuilder) -> APIResponse:
        candidates = (first_eq(query.filters, key) for key in UPDATE_LOOKUP_KEYS)
        lookup = next((f for f in candidates if f is not None and f.value), None)
        if lookup is None:
            return APIResponse(error=NotFoundError(collection=query.collection))

        ignored = [f for f in query.filters if f is not lookup]
        if ignored:
            logger.warning(
                f"update on {query.collection} uses only '{lookup.column}'; "
                f"ignoring {len(ignored)} other filter(s)"
            )

        records = self.store.read_collection(query.collection)
        for idx, record in enumerate(records):
            if lookup.matches(record):
                patch = {k: v for k, v in (query.payload or {}).items() if k not in ENGINE_FIELDS}
                updated = {**record, **patch, "updated_at": to_iso(self._clock())}
                records[idx] = updated
                self.store.write_collection(query.collection, records)

                if query.collection == "profiles" and self.on_profile_updated is not None:
                    self.on_profile_updated(updated)

                return APIResponse(data=project([updated], query.columns))

        return APIResponse(
            error=NotFoundError(collection=query.collection, key=f"{lookup.column}={lookup.value}")
        )

    def _delete(self, query: QueryBuilder) -> APIResponse:
        by_id = first_eq(query.filters, "id")
        if by_id is None:
            raise QueryError("delete requires an id filter", column="id")

        records = self.store.read_collection(query.collection)
        kept = [r for r in records if not by_id.matches(r)]
        removed = [r for r in records if by_id.matches(r)]
        if not removed:
            return APIResponse(
                error=NotFoundError(collection=query.collection, key=f"id={by_id.value}")
            )
        self.store.write_collection(query.collection, kept)

        logger.info(f"Deleted {len(removed)} record(s) from {query.collection}")
        if query.columns is None:
            return APIResponse(data=None)
        return APIResponse(data=project(removed, query.columns))
