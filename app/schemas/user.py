"""User request/response schemas - API contract and validation.

The wire format is camelCase (firstName, createdAt); snake_case is accepted on input.
This module is the only place where a password crosses the boundary, and it only
ever goes inward.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.networks import validate_email

from app.core.security import hash_password
from app.db.models.user import User

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


def normalize_email(value: str) -> str:
    """Same normalization EmailStr applies on input (domain lowercased).

    Unparseable values are returned unchanged; they can never match a stored address.
    """
    try:
        return validate_email(value)[1]
    except ValueError:
        return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserBase(CamelModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class UserCreate(UserBase):
    # bcrypt accepts max 72 bytes; longer passwords cause 500. Validate here for a clear 400.
    password: str = Field(..., min_length=6, max_length=72)

    def to_model(self) -> User:
        """New (unsaved) entity with the password already hashed."""
        return User(
            username=self.username,
            email=self.email,
            hashed_password=hash_password(self.password),
            first_name=self.first_name,
            last_name=self.last_name,
        )


class UserUpdate(UserBase):
    """Full replacement of the mutable profile fields. A password in the body is ignored."""

    def to_model(self) -> User:
        """Transient entity carrying only the changes; never added to a session."""
        return User(
            username=self.username,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
        )


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive UTC; always emit an explicit offset
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls.model_validate(user)


class ErrorResponse(CamelModel):
    """Body of every non-2xx response."""

    timestamp: str
    status: int
    error: str
    code: str
    message: str
    path: str
    details: dict[str, str] | None = None
