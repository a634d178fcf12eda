"""
Schema version guard and demo data seeding.

On first use the guard compares the persisted version marker with the
expected version. On mismatch, or when the profiles collection is empty,
it wipes storage and writes a fresh demo dataset.

Invariants:
    - One marker gates the whole dataset; a mismatch invalidates everything
    - Reseed is destructive and unconditional once triggered
    - Seed output is fully determined by (now, rng seed)
    - The marker is written last, so an interrupted reseed retries next start

How to change safely:
    - Any change to stored record shapes must bump SCHEMA_VERSION
    - Keep the demo credentials stable; the login view advertises them
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import Optional

from ..config import DEFAULT_SCHEMA_VERSION
from ..storage import VERSION_KEY, CollectionStore
from ..timeutil import to_iso, utc_now
from .models import Organization, Profile, StudySession

logger = logging.getLogger(__name__)

SCHEMA_VERSION = DEFAULT_SCHEMA_VERSION

DEMO_ORGANIZATION_ID = "org-1"
DEMO_ADMIN_ID = "admin-1"
DEMO_STUDENT_ID = "student-1"

DEMO_ACCOUNTS = (
    ("admin@studyhabit.com", "admin123", "admin"),
    ("student@studyhabit.com", "student123", "student"),
)

SEED_SUBJECTS = ("Math", "Science", "History", "English")
SEED_SESSION_DAYS = 14
SEED_MIN_HOURS = 0.5
SEED_MAX_HOURS = 3.5


def needs_reseed(store: CollectionStore, version: str = SCHEMA_VERSION) -> bool:
    """Whether the stored dataset is stale or missing."""
    if store.read_value(VERSION_KEY) != version:
        return True
    return len(store.read_collection("profiles")) == 0


def initialize(
    store: CollectionStore,
    *,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    version: str = SCHEMA_VERSION,
) -> bool:
    """Run the version guard.

    Args:
        store: Collection store to check and seed
        now: Clock override for the seed timestamps
        rng: Random source for session subjects and durations
        version: Expected version marker

    Returns:
        True if a reseed happened
    """
    if not needs_reseed(store, version):
        logger.debug(f"Storage version {version} is current")
        return False

    logger.info("Initializing local storage with demo accounts...")
    reset(store, now=now, rng=rng, version=version)
    return True


def reset(
    store: CollectionStore,
    *,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    version: str = SCHEMA_VERSION,
) -> None:
    """Wipe storage and write the demo dataset.

    Args:
        store: Collection store to seed
        now: Clock override
        rng: Random source
        version: Version marker to persist
    """
    now = now or utc_now()
    rng = rng or random.Random()
    stamp = to_iso(now)

    store.clear()

    organization = Organization(
        id=DEMO_ORGANIZATION_ID,
        organization_name="Demo Organization",
        organization_type="University",
        expected_students="50-100",
        subscription_plan="monthly",
        subscription_status="active",
        trial_ends_at=None,
        created_at=stamp,
        updated_at=stamp,
    )
    store.write_collection("organizations", [organization.to_record()])

    admin = Profile(
        id=DEMO_ADMIN_ID,
        email=DEMO_ACCOUNTS[0][0],
        password=DEMO_ACCOUNTS[0][1],
        role="admin",
        full_name="Admin User",
        organization_id=DEMO_ORGANIZATION_ID,
        created_at=stamp,
        updated_at=stamp,
    )
    student = Profile(
        id=DEMO_STUDENT_ID,
        email=DEMO_ACCOUNTS[1][0],
        password=DEMO_ACCOUNTS[1][1],
        role="student",
        full_name="Demo Student",
        organization_id=DEMO_ORGANIZATION_ID,
        created_at=stamp,
        updated_at=stamp,
    )
    store.write_collection("profiles", [admin.to_record(), student.to_record()])

    sessions = []
    for i in range(SEED_SESSION_DAYS):
        hours = round(rng.uniform(SEED_MIN_HOURS, SEED_MAX_HOURS), 1)
        session = StudySession(
            id=f"session-{i}",
            user_id=DEMO_STUDENT_ID,
            subject=rng.choice(SEED_SUBJECTS),
            duration_hours=hours,
            notes="Demo session",
            session_date=to_iso(now - timedelta(days=i)),
            created_at=stamp,
            updated_at=stamp,
        )
        sessions.append(session.to_record())
    store.write_collection("study_sessions", sessions)

    store.write_collection("invitations", [])

    store.write_value(VERSION_KEY, version)

    logger.info(
        "Demo accounts created: %s",
        ", ".join(f"{role.title()}: {email}" for email, _, role in DEMO_ACCOUNTS),
    )
