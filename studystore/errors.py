"""
Error types for StudyStore.

This module defines the error values carried by query and auth results:
- StoreError: Base error
- NotFoundError: Update/delete target or user missing
- AlreadyExistsError: Sign-up email collision
- InvalidCredentialsError: Sign-in mismatch
- NotAuthenticatedError: Identity mutation without a session
- NoRowsFoundError: single() over zero matches
- QueryError: Malformed or unevaluable query
- InvitationError: Invitation code unusable

Invariants:
    - All errors inherit from StoreError
    - Data and auth operations return these inside result objects,
      they do not raise them
    - NoRowsFoundError keeps the remote backend's code (PGRST116) so
      callers can tell it apart from NotFoundError
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StoreError(Exception):
    """Base error for all StudyStore failures.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        status: HTTP-like status code
        details: Additional error context
    """

    default_code = "STORE_ERROR"
    default_status = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status = status or self.default_status
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape used by the gateway."""
        return {
            "message": self.message,
            "code": self.code,
            "status": self.status,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NotFoundError(StoreError):
    """Target record does not exist.

    Raised when:
    - update() finds no record for its lookup key
    - delete() finds no record with the requested id
    - reset_password_for_email() gets an unknown email
    """

    default_code = "NOT_FOUND"
    default_status = 404

    def __init__(
        self,
        message: str = "Not found",
        collection: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        super().__init__(message, details={"collection": collection, "key": key})
        self.collection = collection
        self.key = key


class AlreadyExistsError(StoreError):
    """A profile with this email already exists."""

    default_code = "ALREADY_EXISTS"
    default_status = 400

    def __init__(self, email: str) -> None:
        super().__init__("User already exists", details={"email": email})
        self.email = email


class InvalidCredentialsError(StoreError):
    """Email/password pair did not match.

    The message is the same whichever field was wrong.
    """

    default_code = "INVALID_CREDENTIALS"
    default_status = 400

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class NotAuthenticatedError(StoreError):
    """Operation requires an active session."""

    default_code = "NOT_AUTHENTICATED"
    default_status = 401

    def __init__(self) -> None:
        super().__init__("Not authenticated")


class NoRowsFoundError(StoreError):
    """single() matched zero rows."""

    default_code = "PGRST116"
    default_status = 406

    def __init__(self, collection: Optional[str] = None) -> None:
        super().__init__("No rows found", details={"collection": collection})
        self.collection = collection


class QueryError(StoreError):
    """Query could not be evaluated.

    Raised when:
    - delete() has no id filter
    - Sort values in a column are not mutually comparable
    """

    default_code = "INVALID_QUERY"
    default_status = 400

    def __init__(self, message: str, column: Optional[str] = None) -> None:
        super().__init__(message, details={"column": column})
        self.column = column


class InvitationError(StoreError):
    """Invitation code is unknown, already used, or expired."""

    default_code = "INVALID_INVITATION"
    default_status = 400

    def __init__(self, message: str, invitation_code: Optional[str] = None) -> None:
        super().__init__(message, details={"invitation_code": invitation_code})
        self.invitation_code = invitation_code
