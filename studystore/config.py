"""
Configuration for StudyStore.

Settings are loaded from environment variables with the STUDYSTORE_ prefix,
using pydantic-settings. Every setting has a default suitable for local
development, so an empty environment gives a working in-memory store.

Invariants:
    - Defaults keep the demo dataset reproducible (fixed seed)
    - Passwords and record contents are never logged

How to change safely:
    - Add new settings with defaults that keep existing behavior
    - Bumping schema_version wipes every persisted collection on next start
"""

from __future__ import annotations

import logging
from enum import Enum

import json_log_formatter
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_VERSION = "2.1"


class StorageBackend(str, Enum):
    """Supported key-value storage backends."""

    MEMORY = "memory"
    SQLITE = "sqlite"


class Settings(BaseSettings):
    """StudyStore configuration loaded from environment."""

    # Storage
    storage_backend: StorageBackend = Field(
        default=StorageBackend.MEMORY, description="Key-value backend (memory, sqlite)"
    )
    storage_path: str = Field(
        default="studystore.db", description="SQLite file used by the sqlite backend"
    )

    # Seed / version guard
    schema_version: str = Field(
        default=DEFAULT_SCHEMA_VERSION, description="Expected storage version marker"
    )
    seed_random_seed: int = Field(default=2024, description="Seed for demo data generation")

    # Invitations
    invitation_expiry_days: int = Field(default=7, ge=1, description="Invitation lifetime")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (text, json)")

    # Gateway
    host: str = Field(default="127.0.0.1", description="Gateway bind host")
    port: int = Field(default=8000, description="Gateway bind port")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    model_config = {"env_prefix": "STUDYSTORE_"}

    def log_config(self) -> None:
        """Log the effective configuration."""
        logger.info(
            "StudyStore configuration loaded",
            extra={
                "storage_backend": self.storage_backend.value,
                "storage_path": self.storage_path
                if self.storage_backend == StorageBackend.SQLITE
                else None,
                "schema_version": self.schema_version,
                "log_level": self.log_level,
            },
        )


def setup_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Args:
        settings: StudyStore settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
