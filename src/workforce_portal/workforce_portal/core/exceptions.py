from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``status_code`` is the HTTP status the API layer answers with, ``code`` a
    stable machine-readable reason (e.g. ``DuplicateAttendance``).
    """

    status_code = 400
    default_code = "DomainError"

    def __init__(self, message: str = "", *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    default_code = "ValidationError"


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are invalid."""

    status_code = 401
    default_code = "AuthError"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    default_code = "Forbidden"


class NotFoundError(DomainError):
    """Raised when a record is absent or deliberately hidden from the caller."""

    status_code = 404
    default_code = "NotFound"


class ConflictError(DomainError):
    """Raised when a write collides with a uniqueness constraint."""

    status_code = 409
    default_code = "Conflict"


class StateError(DomainError):
    """Raised when a workflow transition is not valid for the current state."""

    default_code = "InvalidState"


AuthError = AuthenticationError
ForbiddenError = AuthorizationError
