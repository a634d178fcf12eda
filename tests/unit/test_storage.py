"""
Unit tests for key-value storage and the collection store.

Tests cover:
- InMemoryStorage and SqliteStorage basics
- Collection key layout
- Defensive reads of missing and corrupt data
- Backend factory
"""

import os
import tempfile

import pytest

from studystore.config import Settings
from studystore.storage import (
    COLLECTION_KEYS,
    CURRENT_USER_KEY,
    CollectionStore,
    InMemoryStorage,
    KeyValueStorage,
    SqliteStorage,
    collection_key,
    create_storage,
)


class TestInMemoryStorage:
    """Tests for InMemoryStorage."""

    @pytest.fixture
    def storage(self):
        return InMemoryStorage()

    def test_get_missing_returns_none(self, storage):
        assert storage.get_item("local_users") is None

    def test_set_replaces_value(self, storage):
        storage.set_item("k", "a")
        storage.set_item("k", "b")
        assert storage.get_item("k") == "b"
        assert len(storage) == 1

    def test_remove_missing_is_ignored(self, storage):
        storage.remove_item("nothing")
        assert len(storage) == 0

    def test_clear(self, storage):
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.clear()
        assert list(storage.keys()) == []

    def test_satisfies_protocol(self, storage):
        assert isinstance(storage, KeyValueStorage)


class TestSqliteStorage:
    """Tests for SqliteStorage."""

    @pytest.fixture
    def db_path(self):
        """Create temporary database path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield os.path.join(tmpdir, "store.db")

    def test_round_trip_value(self, db_path):
        storage = SqliteStorage(db_path)
        storage.set_item("local_storage_version", "2.1")
        assert storage.get_item("local_storage_version") == "2.1"

    def test_upsert_replaces(self, db_path):
        storage = SqliteStorage(db_path)
        storage.set_item("k", "old")
        storage.set_item("k", "new")
        assert storage.get_item("k") == "new"
        assert list(storage.keys()) == ["k"]

    def test_persists_across_instances(self, db_path):
        SqliteStorage(db_path).set_item("local_users", "[]")
        assert SqliteStorage(db_path).get_item("local_users") == "[]"

    def test_remove_and_clear(self, db_path):
        storage = SqliteStorage(db_path)
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.remove_item("a")
        assert storage.get_item("a") is None
        storage.clear()
        assert list(storage.keys()) == []

    def test_satisfies_protocol(self, db_path):
        assert isinstance(SqliteStorage(db_path), KeyValueStorage)


class TestCollectionKeys:
    """Tests for the persisted key layout."""

    def test_known_collections(self):
        assert collection_key("profiles") == "local_users"
        assert collection_key("study_sessions") == "local_sessions"
        assert collection_key("invitations") == "local_invitations"
        assert collection_key("organizations") == "local_organizations"

    def test_unknown_collection_gets_own_key(self):
        assert collection_key("achievements") == "local_achievements"
        assert "achievements" not in COLLECTION_KEYS

    def test_current_user_key(self):
        assert CURRENT_USER_KEY == "local_current_user"


class TestCollectionStore:
    """Tests for CollectionStore."""

    @pytest.fixture
    def storage(self):
        return InMemoryStorage()

    @pytest.fixture
    def store(self, storage):
        return CollectionStore(storage)

    def test_missing_collection_is_empty(self, store):
        assert store.read_collection("profiles") == []

    def test_write_then_read(self, store, storage):
        store.write_collection("profiles", [{"id": "admin-1"}])
        assert store.read_collection("profiles") == [{"id": "admin-1"}]
        assert storage.get_item("local_users") == '[{"id": "admin-1"}]'

    def test_corrupt_json_reads_empty(self, store, storage):
        storage.set_item("local_sessions", "{not json")
        assert store.read_collection("study_sessions") == []

    def test_non_list_reads_empty(self, store, storage):
        storage.set_item("local_sessions", '{"id": "session-0"}')
        assert store.read_collection("study_sessions") == []

    def test_non_object_items_dropped(self, store, storage):
        storage.set_item("local_sessions", '[{"id": "session-0"}, 3, "x", null]')
        assert store.read_collection("study_sessions") == [{"id": "session-0"}]

    def test_corrupt_read_logs_warning(self, store, storage, caplog):
        storage.set_item("local_users", "[[[")
        with caplog.at_level("WARNING"):
            store.read("local_users")
        assert "local_users" in caplog.text

    def test_read_object(self, store, storage):
        store.write_object(CURRENT_USER_KEY, {"id": "admin-1", "email": "a@b.c"})
        assert store.read_object(CURRENT_USER_KEY) == {"id": "admin-1", "email": "a@b.c"}

        storage.set_item(CURRENT_USER_KEY, "[1, 2]")
        assert store.read_object(CURRENT_USER_KEY) is None

        storage.set_item(CURRENT_USER_KEY, "nope")
        assert store.read_object(CURRENT_USER_KEY) is None

    def test_no_cache_between_reads(self, store, storage):
        store.write_collection("profiles", [{"id": "a"}])
        storage.set_item("local_users", '[{"id": "b"}]')
        assert store.read_collection("profiles") == [{"id": "b"}]


class TestCreateStorage:
    """Tests for the backend factory."""

    def test_memory_backend(self):
        storage = create_storage(Settings(storage_backend="memory"))
        assert isinstance(storage, InMemoryStorage)

    def test_sqlite_backend(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "nested", "store.db")
            storage = create_storage(Settings(storage_backend="sqlite", storage_path=path))
            assert isinstance(storage, SqliteStorage)
            assert os.path.exists(path)
