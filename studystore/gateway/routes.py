"""
API routes for the StudyStore HTTP gateway.

Exposes the local client over REST so browser views can talk to it the
way they would talk to a hosted backend:
- /auth/*: session state machine
- /rest/{collection}: PostgREST-style select/insert/update/delete
- /invitations/*: invitation lifecycle
- /reports/*: admin and leaderboard figures

Rows returned from /rest never include fields listed in HIDDEN_FIELDS
(profile passwords), whatever the select list asks for.
"""

import logging
from dataclasses import asdict
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field

from .. import invitations, reports
from ..auth import AuthResponse
from ..client import LocalClient
from ..errors import InvalidCredentialsError, NoRowsFoundError, StoreError
from ..query import APIResponse, QueryBuilder
from .params import apply_params

logger = logging.getLogger(__name__)

router = APIRouter(tags=["StudyStore Gateway"])

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

# Fields never sent over HTTP, per collection
HIDDEN_FIELDS = {
    "profiles": ("password",),
}

# Result errors whose HTTP status differs from their own status attribute
HTTP_STATUS_OVERRIDES = {
    InvalidCredentialsError: 401,
    NoRowsFoundError: 404,
}


# --- Request Models ---


class CredentialsRequest(BaseModel):
    """Email/password pair."""

    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Password")


class SignUpRequest(CredentialsRequest):
    """Sign-up request with optional profile data."""

    data: dict[str, Any] = Field(default_factory=dict, description="full_name, role, organization_id")


class UpdateUserRequest(BaseModel):
    password: Optional[str] = Field(None, description="New password")


class RecoverRequest(BaseModel):
    email: str = Field(..., description="Account email")
    redirect_to: Optional[str] = Field(None, description="Link target for the reset email")


class InvitationCreateRequest(BaseModel):
    organization_id: str
    student_name: str
    student_email: str
    created_by: str
    expires_in_days: Optional[int] = Field(None, ge=1)


class InvitationAcceptRequest(BaseModel):
    code: str
    password: str
    full_name: Optional[str] = None


# --- Dependencies / helpers ---


def get_client(request: Request) -> LocalClient:
    """Get the StudyStore client from app state."""
    return request.app.state.client


def raise_store_error(error: StoreError) -> None:
    status = HTTP_STATUS_OVERRIDES.get(type(error), error.status)
    raise HTTPException(status_code=status, detail=error.to_dict())


def unwrap(result: APIResponse) -> Any:
    if result.error is not None:
        raise_store_error(result.error)
    return result.data


def redact(collection: str, data: Any) -> Any:
    """Drop hidden fields from a row or list of rows."""
    hidden = HIDDEN_FIELDS.get(collection)
    if not hidden or data is None:
        return data
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if k not in hidden}
    return [redact(collection, row) for row in data]


def auth_payload(result: AuthResponse) -> dict[str, Any]:
    if result.error is not None:
        raise_store_error(result.error)
    return {
        "user": asdict(result.user) if result.user else None,
        "session": asdict(result.session) if result.session else None,
    }


def build_query(query: QueryBuilder, request: Request) -> QueryBuilder:
    try:
        return apply_params(query, request.query_params.multi_items())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def wants_single(request: Request) -> bool:
    return SINGLE_OBJECT_MEDIA_TYPE in request.headers.get("accept", "")


# --- Auth Routes ---


@router.post("/auth/sign-in")
async def sign_in(body: CredentialsRequest, client: LocalClient = Depends(get_client)):
    """Sign in with email and password."""
    result = await client.auth.sign_in_with_password(email=body.email, password=body.password)
    return auth_payload(result)


@router.post("/auth/sign-up", status_code=201)
async def sign_up(body: SignUpRequest, client: LocalClient = Depends(get_client)):
    """Create an account. Does not sign in."""
    result = await client.auth.sign_up(email=body.email, password=body.password, data=body.data)
    return auth_payload(result)


@router.post("/auth/sign-out")
async def sign_out(client: LocalClient = Depends(get_client)):
    return auth_payload(await client.auth.sign_out())


@router.get("/auth/user")
async def get_user(client: LocalClient = Depends(get_client)):
    result = await client.auth.get_user()
    return {"user": asdict(result.user) if result.user else None}


@router.put("/auth/user")
async def update_user(body: UpdateUserRequest, client: LocalClient = Depends(get_client)):
    result = await client.auth.update_user(password=body.password)
    if result.error is not None:
        raise_store_error(result.error)
    return {"user": asdict(result.user)}


@router.post("/auth/recover")
async def recover(body: RecoverRequest, client: LocalClient = Depends(get_client)):
    """Request a password reset email."""
    unwrap(await client.auth.reset_password_for_email(body.email, redirect_to=body.redirect_to))
    return {}


# --- Collection Routes ---


@router.get("/rest/{collection}")
async def select_rows(collection: str, request: Request, client: LocalClient = Depends(get_client)):
    """
    Select rows with PostgREST-style filters.

    Send ``Accept: application/vnd.pgrst.object+json`` to get a single object.
    """
    query = build_query(client.collection(collection).select(), request)
    if wants_single(request):
        return redact(collection, unwrap(await query.single()))
    return redact(collection, unwrap(await query))


@router.post("/rest/{collection}", status_code=201)
async def insert_rows(
    collection: str,
    body: Union[dict[str, Any], list[dict[str, Any]]],
    client: LocalClient = Depends(get_client),
):
    return redact(collection, unwrap(await client.collection(collection).insert(body)))


@router.patch("/rest/{collection}")
async def update_rows(
    collection: str,
    body: dict[str, Any],
    request: Request,
    client: LocalClient = Depends(get_client),
):
    """Update the row matched by an id or invitation_code filter."""
    query = build_query(client.collection(collection).update(body), request)
    return redact(collection, unwrap(await query))


@router.delete("/rest/{collection}")
async def delete_rows(collection: str, request: Request, client: LocalClient = Depends(get_client)):
    """Delete by id filter. Returns the removed rows."""
    query = build_query(client.collection(collection).delete().select(), request)
    return redact(collection, unwrap(await query))


# --- Invitation Routes ---


@router.post("/invitations", status_code=201)
async def create_invitation(body: InvitationCreateRequest, client: LocalClient = Depends(get_client)):
    return unwrap(await invitations.create_invitation(client, **body.model_dump()))


@router.get("/invitations")
async def list_invitations(
    organization_id: str = Query(..., description="Organization id"),
    client: LocalClient = Depends(get_client),
):
    return unwrap(await invitations.list_invitations(client, organization_id))


@router.post("/invitations/accept")
async def accept_invitation(body: InvitationAcceptRequest, client: LocalClient = Depends(get_client)):
    result = await invitations.accept_invitation(
        client, body.code, password=body.password, full_name=body.full_name
    )
    return unwrap(result)


@router.post("/invitations/{invitation_id}/resend")
async def resend_invitation(invitation_id: str, client: LocalClient = Depends(get_client)):
    return unwrap(await invitations.resend_invitation(client, invitation_id))


@router.delete("/invitations/{invitation_id}", status_code=204)
async def delete_invitation(invitation_id: str, client: LocalClient = Depends(get_client)):
    unwrap(await invitations.delete_invitation(client, invitation_id))
    return Response(status_code=204)


# --- Report Routes ---


@router.get("/reports/students")
async def student_report(
    organization_id: str = Query(..., description="Organization id"),
    client: LocalClient = Depends(get_client),
):
    """Per-student stats plus organization totals."""
    stats = await reports.student_stats(client, organization_id)
    return {
        "students": [asdict(s) for s in stats],
        "summary": asdict(reports.organization_summary(stats)),
    }


@router.get("/reports/activity")
async def activity_report(
    months: int = Query(7, ge=1, le=24, description="Number of months"),
    client: LocalClient = Depends(get_client),
):
    return [asdict(m) for m in await reports.monthly_activity(client, months=months)]


@router.get("/reports/leaderboard")
async def leaderboard_report(
    organization_id: str = Query(..., description="Organization id"),
    timeframe: reports.Timeframe = Query(reports.Timeframe.WEEKLY),
    limit: int = Query(10, ge=1, le=100),
    client: LocalClient = Depends(get_client),
):
    entries = await reports.leaderboard(client, organization_id, timeframe, limit=limit)
    return [asdict(e) for e in entries]
