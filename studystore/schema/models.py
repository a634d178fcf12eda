"""
Entity models for StudyStore collections.

These pydantic models describe the record shapes stored in each
collection. The engine stores plain dicts; the models are used to build
seed data and to give typed access where callers want it.

Invariants:
    - Field names match the stored JSON keys exactly
    - created_at/updated_at are engine-assigned ISO strings
    - References between entities are weak (no enforcement)
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["admin", "student"]
InvitationStatus = Literal["pending", "accepted", "expired"]
SubscriptionPlan = Literal["monthly", "yearly"]
SubscriptionStatus = Literal["active", "inactive", "trial", "cancelled"]


class StoredRecord(BaseModel):
    """Fields every stored record carries."""

    id: str
    created_at: str
    updated_at: str

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class Organization(StoredRecord):
    """A tenant grouping of profiles and invitations."""

    organization_name: str
    organization_type: str
    expected_students: str
    subscription_plan: SubscriptionPlan = "monthly"
    subscription_status: SubscriptionStatus = "active"
    trial_ends_at: Optional[str] = None


class Profile(StoredRecord):
    """A user record. Passwords are stored in plaintext in this design."""

    email: str
    full_name: str
    role: Role = "student"
    organization_id: Optional[str] = None
    avatar_url: Optional[str] = None
    password: str


class Invitation(StoredRecord):
    """A pending sign-up grant bound to a one-time code."""

    organization_id: str
    invitation_code: str
    student_name: str
    student_email: str
    status: InvitationStatus = "pending"
    created_by: str
    expires_at: str
    accepted_at: Optional[str] = None


class StudySession(StoredRecord):
    """A logged interval of study time."""

    user_id: str
    subject: str
    duration_hours: float = Field(ge=0)
    notes: Optional[str] = None
    session_date: str


class Achievement(StoredRecord):
    """A badge earned by a profile."""

    user_id: str
    badge_type: str
    badge_name: str
    earned_at: str


ENTITY_MODELS: Dict[str, type[StoredRecord]] = {
    "organizations": Organization,
    "profiles": Profile,
    "invitations": Invitation,
    "study_sessions": StudySession,
    "achievements": Achievement,
}
