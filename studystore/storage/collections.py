"""
Collection store: named record lists on top of key-value storage.

Each collection is persisted as one JSON array under its storage key.
This is the single source of truth for every higher layer; there is
no in-memory cache, so every read reflects the latest write.

Invariants:
    - read() never raises on missing or corrupt data; it returns []
    - write() replaces the whole collection in one storage call
    - Records are plain JSON objects (dicts)

How to change safely:
    - Keep reads defensive; callers rely on [] for unusable data
    - Do not add caching without revisiting multi-process behavior
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from .base import KeyValueStorage, collection_key

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class CollectionStore:
    """Read and write whole collections as JSON arrays.

    Example:
        >>> store = CollectionStore(InMemoryStorage())
        >>> store.write("local_users", [{"id": "admin-1"}])
        >>> store.read("local_users")
        [{'id': 'admin-1'}]
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    @staticmethod
    def key_for(collection: str) -> str:
        """Storage key for a collection name."""
        return collection_key(collection)

    def read(self, key: str) -> List[Record]:
        """Return the list stored under key.

        Args:
            key: Storage key

        Returns:
            Stored records, or [] if absent, unparsable or not a list
        """
        raw = self.storage.get_item(key)
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Discarding unparsable collection {key}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Discarding non-list collection {key}")
            return []

        return [item for item in data if isinstance(item, dict)]

    def write(self, key: str, records: List[Record]) -> None:
        """Persist records under key, replacing prior contents."""
        self.storage.set_item(key, json.dumps(records))

    def read_collection(self, collection: str) -> List[Record]:
        return self.read(self.key_for(collection))

    def write_collection(self, collection: str, records: List[Record]) -> None:
        self.write(self.key_for(collection), records)

    def read_value(self, key: str) -> Optional[str]:
        """Raw string value for a scalar key."""
        return self.storage.get_item(key)

    def write_value(self, key: str, value: str) -> None:
        self.storage.set_item(key, value)

    def read_object(self, key: str) -> Optional[Record]:
        """JSON object stored under key, or None if absent or corrupt."""
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Discarding unparsable value {key}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def write_object(self, key: str, value: Record) -> None:
        self.storage.set_item(key, json.dumps(value))

    def remove(self, key: str) -> None:
        self.storage.remove_item(key)

    def clear(self) -> None:
        self.storage.clear()
