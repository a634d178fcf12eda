"""
Result objects returned by queries and mutations.

Operations never raise StoreError subclasses; they return an APIResponse
whose ``error`` is set instead, mirroring a remote client's data/error pair.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import StoreError


@dataclass
class APIResponse:
    """Data/error pair for a query.

    Attributes:
        data: List of records, a single record (single()), or None
        error: Error value if the operation failed
    """

    data: Any = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> Any:
        """Raise the carried error, else return data."""
        if self.error is not None:
            raise self.error
        return self.data
