"""
Authentication endpoints.

POST   /api/auth/register      Create an account, returns {user, token}
POST   /api/auth/login         Exchange credentials for a token
PATCH  /api/auth/password      Change the caller's password
DELETE /api/auth/users/{id}    Delete an account (self or global admin)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from photocomp.api.deps import get_user_service
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser, get_current_user
from photocomp.core.errors import AppError
from photocomp.core.policy import Action, Actor, Resource, evaluate_policy
from photocomp.services.users import UserService
from photocomp_shared.schemas.users import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)

log = structlog.get_logger()
router = APIRouter()


def _auth_payload(user: dict, token: str) -> dict:
    body = AuthResponse(user=UserResponse.model_validate(user), token=token)
    return body.model_dump(by_alias=True, mode="json")


@router.post("/register", status_code=201, tags=["Authentication"])
async def register(body: RegisterRequest, users: UserService = Depends(get_user_service)):
    user, token = await users.register(body.email, body.password, body.first_name, body.last_name)
    return success(_auth_payload(user, token), "User registered successfully")


@router.post("/login", tags=["Authentication"])
async def login(body: LoginRequest, users: UserService = Depends(get_user_service)):
    user, token = await users.login(body.email, body.password)
    return success(_auth_payload(user, token), "Login successful")


@router.patch("/password", tags=["Authentication"])
async def change_password(
    body: ChangePasswordRequest,
    auth: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.change_password(auth.user_id, body.current_password, body.new_password)
    return success(message="Password changed successfully")


@router.delete("/users/{user_id}", tags=["Authentication"])
async def delete_user(
    user_id: str,
    auth: AuthenticatedUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Delete an account with its memberships and attendance records."""
    decision = evaluate_policy(
        Actor(user_id=auth.user_id, role=auth.role),
        Action.DELETE_ACCOUNT,
        Resource(owner_id=user_id),
    )
    if not decision:
        raise AppError(decision.reason, 403)

    if not await users.delete_user(user_id):
        raise AppError("Failed to delete user", 500)
    log.info("user.account_deleted", user_id=user_id, deleted_by=auth.user_id)
    return success(message="User deleted successfully")
