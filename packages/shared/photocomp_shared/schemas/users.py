"""User account schemas: registration, login, password change."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, model_validator

from .common import CamelModel, UserRole

MIN_PASSWORD_LENGTH = 8


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)

    @model_validator(mode="after")
    def _new_password_differs(self) -> "ChangePasswordRequest":
        if self.new_password == self.current_password:
            raise ValueError("New password must be different from current password")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserResponse(CamelModel):
    """A user as returned to clients. Never carries the password hash."""

    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.USER
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserDetails(CamelModel):
    """Short user card attached to member, request and tag listings."""

    id: str
    email: str
    first_name: str
    last_name: str


class AuthResponse(CamelModel):
    user: UserResponse
    token: str
