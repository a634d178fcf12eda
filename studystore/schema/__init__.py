"""
Schema for StudyStore.

This module provides:
- Entity models (Organization, Profile, Invitation, StudySession, Achievement)
- The version guard (initialize, needs_reseed, reset)
- Demo seed constants
"""

from .models import (
    ENTITY_MODELS,
    Achievement,
    Invitation,
    Organization,
    Profile,
    StoredRecord,
    StudySession,
)
from .seed import (
    DEMO_ACCOUNTS,
    DEMO_ADMIN_ID,
    DEMO_ORGANIZATION_ID,
    DEMO_STUDENT_ID,
    SCHEMA_VERSION,
    SEED_SUBJECTS,
    initialize,
    needs_reseed,
    reset,
)

__all__ = [
    "ENTITY_MODELS",
    "StoredRecord",
    "Organization",
    "Profile",
    "Invitation",
    "StudySession",
    "Achievement",
    "SCHEMA_VERSION",
    "DEMO_ACCOUNTS",
    "DEMO_ADMIN_ID",
    "DEMO_ORGANIZATION_ID",
    "DEMO_STUDENT_ID",
    "SEED_SUBJECTS",
    "initialize",
    "needs_reseed",
    "reset",
]
