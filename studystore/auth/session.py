"""
Session manager: the local authentication state machine.

States are SignedOut and SignedIn(profile). The signed-in profile is cached
in memory and persisted under the current-user key, so a new manager over
the same storage resumes the session.

Invariants:
    - At most one session exists at a time
    - The cached profile is refreshed whenever its record is updated
    - Failed sign-in leaves the state unchanged
    - Sign-up never signs in
    - Subscribers get exactly one replay of the state when they register;
      later events only come from this manager's own transitions
    - Results carry errors; nothing here raises StoreError

How to change safely:
    - Keep error messages field-agnostic for credential failures
    - Never log passwords
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime
from functools import partial
from typing import Any, Callable, Dict, Optional, Protocol

from ..errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    NotAuthenticatedError,
    NotFoundError,
)
from ..query.ids import IdGenerator
from ..query.response import APIResponse
from ..storage import CURRENT_USER_KEY, CollectionStore, Record
from ..timeutil import to_iso, utc_now
from .types import (
    AuthCallback,
    AuthEvent,
    AuthResponse,
    AuthSession,
    Subscription,
    User,
    UserResponse,
)

logger = logging.getLogger(__name__)

PROFILES = "profiles"


class PasswordResetNotifier(Protocol):
    """Delivers password reset messages. Delivery lives outside the store."""

    def send_password_reset(self, email: str, redirect_to: Optional[str]) -> None: ...


class LoggingResetNotifier:
    """Notifier that only records the request in the log."""

    def send_password_reset(self, email: str, redirect_to: Optional[str]) -> None:
        logger.info(f"Password reset email would be sent to: {email}")


class SessionManager:
    """Tracks the authenticated identity on top of the profiles collection.

    Example:
        >>> auth = SessionManager(store, IdGenerator())
        >>> result = await auth.sign_in_with_password(
        ...     email="admin@studyhabit.com", password="admin123"
        ... )
        >>> (await auth.get_user()).user.id
        'admin-1'
    """

    def __init__(
        self,
        store: CollectionStore,
        ids: IdGenerator,
        *,
        notifier: Optional[PasswordResetNotifier] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize and restore any persisted session.

        Args:
            store: Collection store holding profiles and the session copy
            ids: Id generator for new profiles
            notifier: Password reset delivery
            clock: Timestamp source
        """
        self.store = store
        self.ids = ids
        self.notifier = notifier or LoggingResetNotifier()
        self._clock = clock
        self._current: Optional[Record] = store.read_object(CURRENT_USER_KEY)
        self._subscribers: Dict[int, AuthCallback] = {}
        self._next_subscription = 0
        self._pending: set[asyncio.Future[Any]] = set()

        if self._current is not None and not self._current.keys() >= {"id", "email"}:
            logger.warning("Discarding persisted session without id/email")
            self._current = None

    @property
    def is_signed_in(self) -> bool:
        return self._current is not None

    @property
    def current_profile(self) -> Optional[Record]:
        """Copy of the signed-in profile, or None."""
        return dict(self._current) if self._current is not None else None

    @property
    def session(self) -> Optional[AuthSession]:
        if self._current is None:
            return None
        return AuthSession(user=User.from_profile(self._current))

    async def sign_in_with_password(self, *, email: str, password: str) -> AuthResponse:
        """Sign in by exact email and password match.

        Returns:
            AuthResponse with user and session, or InvalidCredentialsError
        """
        profiles = self.store.read_collection(PROFILES)
        profile = next(
            (p for p in profiles if p.get("email") == email and p.get("password") == password),
            None,
        )
        if profile is None:
            logger.info("Sign-in failed")
            return AuthResponse(error=InvalidCredentialsError())

        self._set_current(profile)
        logger.info(f"Signed in {profile['id']} (role={profile.get('role')})")
        self._emit(AuthEvent.SIGNED_IN)
        return AuthResponse(user=User.from_profile(profile), session=self.session)

    async def sign_up(
        self,
        *,
        email: str,
        password: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> AuthResponse:
        """Create a profile. Does not sign in.

        Args:
            email: Login email, must be unused
            password: Plaintext password
            data: Optional full_name, role, organization_id

        Returns:
            AuthResponse with the new user and no session, or AlreadyExistsError
        """
        profiles = self.store.read_collection(PROFILES)
        if any(p.get("email") == email for p in profiles):
            return AuthResponse(error=AlreadyExistsError(email))

        data = data or {}
        stamp = to_iso(self._clock())
        profile = {
            "id": self.ids.new_id("user"),
            "email": email,
            "password": password,
            "full_name": data.get("full_name") or email.split("@")[0],
            "role": data.get("role") or "student",
            "organization_id": data.get("organization_id"),
            "avatar_url": None,
            "created_at": stamp,
            "updated_at": stamp,
        }
        profiles.append(profile)
        self.store.write_collection(PROFILES, profiles)

        logger.info(f"Created profile {profile['id']} (role={profile['role']})")
        return AuthResponse(user=User.from_profile(profile), session=None)

    async def sign_out(self) -> AuthResponse:
        """Clear the session. Safe to call when already signed out."""
        was_signed_in = self._current is not None
        self._set_current(None)
        if was_signed_in:
            logger.info("Signed out")
            self._emit(AuthEvent.SIGNED_OUT)
        return AuthResponse()

    async def get_user(self) -> UserResponse:
        if self._current is None:
            return UserResponse(user=None)
        return UserResponse(user=User.from_profile(self._current))

    async def get_session(self) -> Optional[AuthSession]:
        return self.session

    async def update_user(self, *, password: Optional[str] = None) -> UserResponse:
        """Change the signed-in user's password.

        Returns:
            UserResponse with the user, or NotAuthenticatedError
        """
        if self._current is None:
            return UserResponse(error=NotAuthenticatedError())

        if password:
            profiles = self.store.read_collection(PROFILES)
            for idx, profile in enumerate(profiles):
                if profile.get("id") == self._current["id"]:
                    profiles[idx] = {
                        **profile,
                        "password": password,
                        "updated_at": to_iso(self._clock()),
                    }
                    self.store.write_collection(PROFILES, profiles)
                    self._set_current(profiles[idx])
                    logger.info(f"Password updated for {profile['id']}")
                    self._emit(AuthEvent.USER_UPDATED)
                    break

        return UserResponse(user=User.from_profile(self._current))

    async def reset_password_for_email(
        self, email: str, *, redirect_to: Optional[str] = None
    ) -> APIResponse:
        """Validate email and hand the reset off to the notifier.

        Returns:
            APIResponse with {} or NotFoundError("User not found")
        """
        profiles = self.store.read_collection(PROFILES)
        if not any(p.get("email") == email for p in profiles):
            return APIResponse(error=NotFoundError("User not found", collection=PROFILES))

        self.notifier.send_password_reset(email, redirect_to)
        return APIResponse(data={})

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        """Register a subscriber.

        The current state is replayed once as INITIAL_SESSION on the next
        loop iteration. Must be called with a running event loop.

        Args:
            callback: Called with (event, session); may be a coroutine function

        Returns:
            Subscription handle
        """
        loop = asyncio.get_running_loop()
        sub_id = self._next_subscription
        self._next_subscription += 1
        self._subscribers[sub_id] = callback
        loop.call_soon(self._dispatch, sub_id, AuthEvent.INITIAL_SESSION, self.session)
        return Subscription(id=sub_id, _unsubscribe=self._unsubscribe)

    def refresh_profile(self, profile: Record) -> None:
        """Replace the cached profile if it is the signed-in one."""
        if self._current is None or self._current.get("id") != profile.get("id"):
            return
        self._set_current(profile)
        self._emit(AuthEvent.USER_UPDATED)

    def _set_current(self, profile: Optional[Record]) -> None:
        if profile is None:
            self._current = None
            self.store.remove(CURRENT_USER_KEY)
        else:
            self._current = dict(profile)
            self.store.write_object(CURRENT_USER_KEY, self._current)

    def _unsubscribe(self, sub_id: int) -> None:
        self._subscribers.pop(sub_id, None)

    def _emit(self, event: AuthEvent) -> None:
        if not self._subscribers:
            return
        loop = asyncio.get_running_loop()
        session = self.session
        for sub_id in list(self._subscribers):
            loop.call_soon(self._dispatch, sub_id, event, session)

    def _dispatch(self, sub_id: int, event: AuthEvent, session: Optional[AuthSession]) -> None:
        callback = self._subscribers.get(sub_id)
        if callback is None:
            return
        try:
            result = callback(event, session)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(partial(self._finish_callback, sub_id, event))
        except Exception:
            logger.exception(f"Auth subscriber {sub_id} failed on {event.value}")

    def _finish_callback(self, sub_id: int, event: AuthEvent, task: asyncio.Future[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Auth subscriber {sub_id} failed on {event.value}",
                exc_info=(type(error), error, error.__traceback__),
            )
