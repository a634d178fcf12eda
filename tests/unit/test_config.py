"""
Unit tests for settings and logging setup.
"""

import json
import logging

import json_log_formatter
import pytest
from pydantic import ValidationError

from studystore.config import DEFAULT_SCHEMA_VERSION, Settings, StorageBackend, setup_logging


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("STUDYSTORE_STORAGE_BACKEND", raising=False)
        settings = Settings()
        assert settings.storage_backend == StorageBackend.MEMORY
        assert settings.schema_version == DEFAULT_SCHEMA_VERSION == "2.1"
        assert settings.seed_random_seed == 2024
        assert settings.invitation_expiry_days == 7

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("STUDYSTORE_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("STUDYSTORE_SEED_RANDOM_SEED", "7")
        settings = Settings()
        assert settings.storage_backend == StorageBackend.SQLITE
        assert settings.seed_random_seed == 7

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(storage_backend="redis")

    def test_expiry_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(invitation_expiry_days=0)


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_level_and_single_handler(self):
        setup_logging(Settings(log_level="debug"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_json_format(self):
        setup_logging(Settings(log_format="json"))
        formatter = logging.getLogger().handlers[0].formatter
        assert isinstance(formatter, json_log_formatter.JSONFormatter)

        record = logging.LogRecord("studystore", logging.INFO, __file__, 1, "hello", None, None)
        assert json.loads(formatter.format(record))["message"] == "hello"
