"""
In-memory key-value storage.

Used by unit tests and ephemeral runs. All data is lost when the
object is garbage collected.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """Dict-backed implementation of KeyValueStorage.

    Example:
        >>> storage = InMemoryStorage()
        >>> storage.set_item("local_users", "[]")
        >>> storage.get_item("local_users")
        '[]'
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()
        logger.debug("InMemoryStorage cleared")

    def keys(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
