"""
Base protocol and key layout for key-value storage.

This module defines the KeyValueStorage protocol every backend implements,
along with the fixed storage keys the rest of the package reads and writes.

Invariants:
    - Values are strings; serialization happens above this layer
    - One key per collection, one for the version marker, one for the session
    - set_item replaces the previous value in a single call

How to change safely:
    - Renaming a key orphans existing data; bump the schema version with it
    - Protocol changes require updating all backends
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Iterator, Protocol, runtime_checkable

KEY_PREFIX = "local_"

COLLECTION_KEYS = {
    "profiles": "local_users",
    "study_sessions": "local_sessions",
    "invitations": "local_invitations",
    "organizations": "local_organizations",
}

CURRENT_USER_KEY = "local_current_user"
VERSION_KEY = "local_storage_version"


def collection_key(collection: str) -> str:
    """Map a collection name to its storage key.

    Known collections use their historical keys; anything else gets
    ``local_<name>`` so new collections are created on first write.
    """
    return COLLECTION_KEYS.get(collection, f"{KEY_PREFIX}{collection}")


@runtime_checkable
class KeyValueStorage(Protocol):
    """Protocol for flat string key-value storage.

    Shaped after browser local storage: synchronous, string values,
    whole-value replacement.
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value or None if absent."""
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""
        ...

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate stored keys."""
        ...
