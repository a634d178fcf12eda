"""
StudyStore - local persistence and query emulation for a study tracker.

This package stands in for a hosted relational backend when none is
configured. It provides:
- Key-value storage backends (in-memory, SQLite) and a collection store
- A schema version guard that reseeds demo data on mismatch
- An immutable, awaitable query builder (eq, gte, lte, in_, order, limit, single)
- A mutation engine (insert, update, delete)
- A session manager (sign-in/up/out, identity, password, subscriptions)
- Invitation and report helpers, an HTTP gateway and a CLI

Example:
    >>> from studystore import create_client
    >>>
    >>> client = create_client()
    >>> await client.auth.sign_in_with_password(
    ...     email="admin@studyhabit.com", password="admin123"
    ... )
    >>> result = await client.collection("profiles").select("id, email").eq("role", "student")

Invariants:
    - Storage is the single source of truth; there is no cache layer
    - One version marker gates the whole dataset
    - Data and auth operations return results; they do not raise StoreError

Version: see _version.py.
"""

from ._version import __version__
from .client import CollectionRef, LocalClient, create_client
from .config import Settings
from .errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvitationError,
    NoRowsFoundError,
    NotAuthenticatedError,
    NotFoundError,
    QueryError,
    StoreError,
)
from .query import APIResponse, QueryBuilder

__all__ = [
    # Version
    "__version__",
    # Client
    "LocalClient",
    "CollectionRef",
    "create_client",
    "Settings",
    "QueryBuilder",
    "APIResponse",
    # Errors
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidCredentialsError",
    "NotAuthenticatedError",
    "NoRowsFoundError",
    "QueryError",
    "InvitationError",
]
