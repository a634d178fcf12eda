"""
Auth result and event types.

Attributes follow the remote auth client's response shapes so callers can
switch between the local store and a real backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..errors import StoreError

LOCAL_ACCESS_TOKEN = "local-token"


class AuthEvent(str, Enum):
    """Events delivered to auth state subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True)
class User:
    """Minimal identity of a profile.

    Attributes:
        id: Profile id
        email: Profile email
    """

    id: str
    email: str

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> User:
        return cls(id=profile["id"], email=profile["email"])


@dataclass(frozen=True)
class AuthSession:
    """The authenticated session held by the session manager."""

    user: User
    access_token: str = LOCAL_ACCESS_TOKEN
    token_type: str = "bearer"


@dataclass
class AuthResponse:
    """Result of sign-in, sign-up and sign-out."""

    user: Optional[User] = None
    session: Optional[AuthSession] = None
    error: Optional[StoreError] = None


@dataclass
class UserResponse:
    """Result of get_user and update_user."""

    user: Optional[User] = None
    error: Optional[StoreError] = None


AuthCallback = Callable[[AuthEvent, Optional[AuthSession]], Any]


@dataclass
class Subscription:
    """Handle returned by on_auth_state_change."""

    id: int
    _unsubscribe: Callable[[int], None] = field(repr=False)

    def unsubscribe(self) -> None:
        self._unsubscribe(self.id)
