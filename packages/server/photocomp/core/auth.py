"""
Authentication for PhotoComp.

Supports:
- bcrypt password hashing
- signed bearer tokens carrying {id, email, role}
- the ``get_current_user`` FastAPI dependency
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from photocomp.core.config import Settings, get_settings
from photocomp.core.errors import AppError
from photocomp_shared.schemas.common import UserRole

log = structlog.get_logger()

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_token(
    user_id: str,
    email: str,
    role: str,
    *,
    settings: Optional[Settings] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed token embedding the user's id, email and role."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes)),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, *, settings: Optional[Settings] = None) -> dict:
    """Decode and verify a token. Raises jwt.PyJWTError on failure."""
    settings = settings or get_settings()
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for the token's user, plus their membership once resolved."""

    def __init__(self, user_id: str, email: str, role: str, membership: Optional[dict] = None):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.membership = membership

    def __repr__(self) -> str:
        return f"AuthenticatedUser(user_id={self.user_id!r}, role={self.role!r})"


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
) -> AuthenticatedUser:
    """Resolve the caller from ``Authorization: Bearer <token>``."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AppError("Authentication required", 401)

    token = authorization[7:].strip()
    if not token:
        raise AppError("Authentication token missing", 401)

    try:
        payload = decode_token(token, settings=getattr(request.app.state, "settings", None))
    except jwt.PyJWTError:
        raise AppError("Invalid authentication token", 401)

    if "id" not in payload:
        raise AppError("Invalid authentication token", 401)

    return AuthenticatedUser(
        user_id=payload["id"],
        email=payload.get("email", ""),
        role=payload.get("role", UserRole.USER.value),
    )
