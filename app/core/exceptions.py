"""
Domain errors - raised by the service layer, translated to HTTP in app/api/errors.py.
Challenge: Clients branch on a stable code, never on message text.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable codes returned in every error body."""

    USER_NOT_FOUND = "USER_NOT_FOUND"
    DUPLICATE_USER = "DUPLICATE_USER"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Generic (boundary-level) codes
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"


class ErrorKind(str, Enum):
    """Failure category. The HTTP layer maps each kind to exactly one status."""

    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    VALIDATION = "validation"


class UserServiceError(Exception):
    """Base for all domain failures. Carries kind, code, message and creation time."""

    kind: ErrorKind
    code: ErrorCode

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.timestamp = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.code.value}, message={self.message!r})>"


class UserNotFoundError(UserServiceError):
    """A user required by a write path (or an HTTP lookup) does not exist."""

    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.USER_NOT_FOUND

    @classmethod
    def with_id(cls, user_id: int) -> "UserNotFoundError":
        return cls(f"User not found with id: {user_id}")

    @classmethod
    def with_email(cls, email: str) -> "UserNotFoundError":
        return cls(f"User not found with email: {email}")

    @classmethod
    def with_username(cls, username: str) -> "UserNotFoundError":
        return cls(f"User not found with username: {username}")


class DuplicateUserError(UserServiceError):
    """A write would break email or username uniqueness."""

    kind = ErrorKind.DUPLICATE
    code = ErrorCode.DUPLICATE_USER

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    @classmethod
    def with_email(cls, email: str) -> "DuplicateUserError":
        return cls(f"User with email '{email}' already exists", field="email")

    @classmethod
    def with_username(cls, username: str) -> "DuplicateUserError":
        return cls(f"User with username '{username}' already exists", field="username")


class ValidationError(UserServiceError):
    """Malformed or missing input detected by business rules (not by pydantic)."""

    kind = ErrorKind.VALIDATION
    code = ErrorCode.VALIDATION_ERROR

    @classmethod
    def invalid_input(cls, field: str, value: Any) -> "ValidationError":
        return cls(f"Invalid input for field '{field}': {value}", details={field: "invalid value"})

    @classmethod
    def required_field(cls, field: str) -> "ValidationError":
        return cls(f"Required field '{field}' is missing or empty", details={field: "required"})
