"""
Shared fixtures for StudyStore tests.
"""

import random
from datetime import datetime, timezone

import pytest

from studystore.client import LocalClient
from studystore.config import Settings
from studystore.schema import reset
from studystore.storage import CollectionStore, InMemoryStorage

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Settings with a fixed seed and in-memory storage."""
    return Settings(storage_backend="memory", seed_random_seed=2024)


@pytest.fixture
def storage():
    """Create empty in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    """Collection store over empty storage."""
    return CollectionStore(storage)


@pytest.fixture
def client(storage, settings):
    """Client over fresh storage, reseeded at a fixed clock."""
    client = LocalClient(storage, settings=settings)
    reset(client.store, now=NOW, rng=random.Random(settings.seed_random_seed))
    return client


@pytest.fixture
def now():
    """Clock the client fixture was seeded at."""
    return NOW
