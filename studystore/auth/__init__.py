"""
Authentication for StudyStore.

This module provides:
- SessionManager: sign-in/up/out, identity lookup, password update,
  state-change subscriptions
- Result types (AuthResponse, UserResponse) and AuthEvent
- PasswordResetNotifier protocol for external delivery
"""

from .session import LoggingResetNotifier, PasswordResetNotifier, SessionManager
from .types import (
    AuthEvent,
    AuthResponse,
    AuthSession,
    Subscription,
    User,
    UserResponse,
)

__all__ = [
    "SessionManager",
    "PasswordResetNotifier",
    "LoggingResetNotifier",
    "AuthEvent",
    "AuthResponse",
    "AuthSession",
    "Subscription",
    "User",
    "UserResponse",
]
