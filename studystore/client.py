"""
StudyStore client.

This module provides the facade UI collaborators use:
- LocalClient: one explicit value owning storage, version guard,
  query engine and session manager
- CollectionRef: entry point for select/insert/update/delete on a collection
- create_client: build a client from settings

Example:
    >>> client = create_client()
    >>> await client.auth.sign_in_with_password(
    ...     email="student@studyhabit.com", password="student123"
    ... )
    >>> result = await (
    ...     client.collection("study_sessions")
    ...     .select()
    ...     .eq("user_id", "student-1")
    ...     .order("session_date", ascending=False)
    ... )

Invariants:
    - The version guard runs exactly once per client, before anything else
      reads storage
    - Session state lives on the client's SessionManager, not in module state
    - Profile updates made through the client refresh the session
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterable, Optional, Union

from .auth import PasswordResetNotifier, SessionManager
from .config import Settings
from .query import IdGenerator, MutationEngine, Operation, QueryBuilder
from .schema import initialize
from .storage import CollectionStore, KeyValueStorage, create_storage

logger = logging.getLogger(__name__)


class CollectionRef:
    """Operations on one named collection."""

    def __init__(self, engine: MutationEngine, name: str) -> None:
        self._engine = engine
        self.name = name

    def select(self, columns: str = "*") -> QueryBuilder:
        return QueryBuilder(self._engine, self.name, Operation.SELECT, columns=columns)

    def insert(self, records: Union[Dict[str, Any], Iterable[Dict[str, Any]]]) -> QueryBuilder:
        payload = records if isinstance(records, dict) else list(records)
        return QueryBuilder(self._engine, self.name, Operation.INSERT, payload, columns=None)

    def update(self, patch: Dict[str, Any]) -> QueryBuilder:
        return QueryBuilder(self._engine, self.name, Operation.UPDATE, dict(patch), columns=None)

    def delete(self) -> QueryBuilder:
        return QueryBuilder(self._engine, self.name, Operation.DELETE, columns=None)


class LocalClient:
    """Local stand-in for the remote backend client.

    Attributes:
        settings: Effective settings
        store: Collection store over the storage backend
        ids: Shared id generator
        auth: Session manager
        engine: Query/mutation engine
        reseeded: Whether construction triggered a reseed
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        settings: Optional[Settings] = None,
        notifier: Optional[PasswordResetNotifier] = None,
    ) -> None:
        """Initialize the client and run the version guard.

        Args:
            storage: Key-value backend
            settings: Settings (defaults loaded from environment)
            notifier: Password reset delivery
        """
        self.settings = settings or Settings()
        self.store = CollectionStore(storage)
        self.reseeded = initialize(
            self.store,
            rng=random.Random(self.settings.seed_random_seed),
            version=self.settings.schema_version,
        )

        self.ids = IdGenerator()
        self.auth = SessionManager(self.store, self.ids, notifier=notifier)
        self.engine = MutationEngine(
            self.store,
            self.ids,
            on_profile_updated=self.auth.refresh_profile,
        )

    def collection(self, name: str) -> CollectionRef:
        return CollectionRef(self.engine, name)

    from_ = collection
    table = collection


def create_client(
    settings: Optional[Settings] = None,
    *,
    notifier: Optional[PasswordResetNotifier] = None,
) -> LocalClient:
    """Create a client with the storage backend named in settings."""
    settings = settings or Settings()
    storage = create_storage(settings)
    client = LocalClient(storage, settings=settings, notifier=notifier)
    logger.info(
        f"StudyStore client ready (backend={settings.storage_backend.value}, "
        f"reseeded={client.reseeded})"
    )
    return client
