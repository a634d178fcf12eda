"""
Storage layer for StudyStore.

This module provides:
- KeyValueStorage: Protocol for flat string storage
- InMemoryStorage: Dict-backed backend for tests
- SqliteStorage: File-backed backend
- CollectionStore: Named JSON record lists over a backend
- create_storage: Backend factory from settings
"""

from __future__ import annotations

from ..config import Settings, StorageBackend
from .base import (
    COLLECTION_KEYS,
    CURRENT_USER_KEY,
    VERSION_KEY,
    KeyValueStorage,
    collection_key,
)
from .collections import CollectionStore, Record
from .memory import InMemoryStorage
from .sqlite import SqliteStorage


def create_storage(settings: Settings) -> KeyValueStorage:
    """Create the storage backend named by settings.

    Args:
        settings: StudyStore settings

    Returns:
        Configured backend

    Raises:
        ValueError: If backend is not supported
    """
    if settings.storage_backend == StorageBackend.MEMORY:
        return InMemoryStorage()
    if settings.storage_backend == StorageBackend.SQLITE:
        return SqliteStorage(settings.storage_path)
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "SqliteStorage",
    "CollectionStore",
    "Record",
    "create_storage",
    "collection_key",
    "COLLECTION_KEYS",
    "CURRENT_USER_KEY",
    "VERSION_KEY",
]
