"""
Invitation lifecycle for organization admins.

Admins invite students by email; each invitation carries a one-time code.
A student redeems the code to create an account inside the organization.

Invariants:
    - Codes are 8 uppercase alphanumerics from the secrets module
    - Only pending, unexpired invitations can be accepted
    - Acceptance marks the invitation by its code, not its id
    - Every helper returns an APIResponse; none raise StoreError
"""

from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from .client import LocalClient
from .errors import InvitationError, NoRowsFoundError
from .query import APIResponse
from .timeutil import parse_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

INVITATIONS = "invitations"
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def generate_invitation_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _expiry(client: LocalClient, now: datetime, days: Optional[int]) -> str:
    return to_iso(now + timedelta(days=days or client.settings.invitation_expiry_days))


async def create_invitation(
    client: LocalClient,
    *,
    organization_id: str,
    student_name: str,
    student_email: str,
    created_by: str,
    expires_in_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> APIResponse:
    """Create a pending invitation with a fresh code.

    Args:
        client: StudyStore client
        organization_id: Organization the student will join
        student_name: Invitee display name
        student_email: Invitee email (becomes the login email)
        created_by: Admin profile id
        expires_in_days: Lifetime override
        now: Clock override

    Returns:
        APIResponse with the invitation record
    """
    now = now or utc_now()
    result = await (
        client.collection(INVITATIONS)
        .insert(
            {
                "organization_id": organization_id,
                "invitation_code": generate_invitation_code(),
                "student_name": student_name,
                "student_email": student_email,
                "status": "pending",
                "created_by": created_by,
                "expires_at": _expiry(client, now, expires_in_days),
                "accepted_at": None,
            }
        )
        .single()
    )
    if result.ok:
        logger.info(f"Created invitation {result.data['id']} for organization {organization_id}")
    return result


async def list_invitations(client: LocalClient, organization_id: str) -> APIResponse:
    """Invitations of an organization, newest first."""
    return await (
        client.collection(INVITATIONS)
        .select()
        .eq("organization_id", organization_id)
        .order("created_at", ascending=False)
    )


async def find_by_code(client: LocalClient, code: str) -> APIResponse:
    return await client.collection(INVITATIONS).select().eq("invitation_code", code).single()


async def resend_invitation(
    client: LocalClient,
    invitation_id: str,
    *,
    expires_in_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> APIResponse:
    """Issue a new code and expiry and put the invitation back to pending."""
    now = now or utc_now()
    return await (
        client.collection(INVITATIONS)
        .update(
            {
                "invitation_code": generate_invitation_code(),
                "expires_at": _expiry(client, now, expires_in_days),
                "status": "pending",
            }
        )
        .eq("id", invitation_id)
        .single()
    )


async def delete_invitation(client: LocalClient, invitation_id: str) -> APIResponse:
    return await client.collection(INVITATIONS).delete().eq("id", invitation_id)


async def accept_invitation(
    client: LocalClient,
    code: str,
    *,
    password: str,
    full_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> APIResponse:
    """Redeem an invitation code and create the student's profile.

    The new profile is not signed in.

    Args:
        client: StudyStore client
        code: Invitation code
        password: Password for the new account
        full_name: Name override (defaults to the invitation's student_name)
        now: Clock override

    Returns:
        APIResponse with {"invitation": record, "user_id": id}, or an error
    """
    now = now or utc_now()
    found = await find_by_code(client, code)
    if isinstance(found.error, NoRowsFoundError):
        return APIResponse(error=InvitationError("Invitation code not found", code))
    if found.error is not None:
        return found

    invitation = found.data
    if invitation.get("status") != "pending":
        return APIResponse(error=InvitationError("Invitation is no longer pending", code))

    if parse_iso(invitation["expires_at"]) < now:
        await client.collection(INVITATIONS).update({"status": "expired"}).eq("invitation_code", code)
        return APIResponse(error=InvitationError("Invitation has expired", code))

    signed_up = await client.auth.sign_up(
        email=invitation["student_email"],
        password=password,
        data={
            "full_name": full_name or invitation.get("student_name"),
            "role": "student",
            "organization_id": invitation.get("organization_id"),
        },
    )
    if signed_up.error is not None:
        return APIResponse(error=signed_up.error)

    accepted = await (
        client.collection(INVITATIONS)
        .update({"status": "accepted", "accepted_at": to_iso(now)})
        .eq("invitation_code", code)
        .single()
    )
    if accepted.error is not None:
        return accepted

    logger.info(f"Invitation {invitation['id']} accepted by {signed_up.user.id}")
    return APIResponse(data={"invitation": accepted.data, "user_id": signed_up.user.id})
