"""Application error types.

Each error maps to one HTTP status code; the handlers in ``grocery.main``
render them as the standard JSON envelope.
"""

from typing import Any


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def name(self) -> str:
        return type(self).__name__


class ValidationError(AppError):
    """Malformed or semantically invalid input."""

    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    """Missing or invalid credentials."""

    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(AppError):
    """Insufficient permission or locked resource."""

    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    """Missing list, category, item, suggestion or comment."""

    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    """Duplicate names, already-reviewed suggestions, repeated transitions."""

    status_code = 409
    default_message = "Resource conflict"


class DatabaseError(AppError):
    """Unexpected storage failure."""

    status_code = 500
    default_message = "Database operation failed"


class AccountLockedError(AppError):
    """Login blocked after too many failed attempts."""

    status_code = 423
    default_message = "Account temporarily locked"


class RateLimitError(AppError):
    """Too many requests from one client."""

    status_code = 429
    default_message = "Too many requests. Please try again later."
