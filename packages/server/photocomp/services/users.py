"""
User account service: registration, login, password change, account deletion.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from photocomp.core.auth import create_token, hash_password, verify_password
from photocomp.core.config import Settings
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.base import public_view
from photocomp.models.user import new_user_item, user_details
from photocomp.repositories.events import EventRepository
from photocomp.repositories.organizations import OrgRepository
from photocomp.repositories.users import UserRepository

log = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    def __init__(
        self,
        users: UserRepository,
        events: EventRepository,
        orgs: OrgRepository,
        settings: Settings,
    ):
        self.users = users
        self.events = events
        self.orgs = orgs
        self.settings = settings

    def issue_token(self, user: dict) -> str:
        return create_token(user["id"], user["email"], user["role"], settings=self.settings)

    @wrap_errors("register user")
    async def register(self, email: str, password: str, first_name: str, last_name: str) -> tuple[dict, str]:
        """Create a USER-role account. Returns (user without password, token)."""
        if await self.users.get_user_by_email(email):
            raise AppError("Email already in use", 409)

        item = new_user_item(
            user_id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        await self.users.create_user(item)
        log.info("user.registered", user_id=item["id"])
        return public_view(item), self.issue_token(item)

    @wrap_errors("login")
    async def login(self, email: str, password: str) -> tuple[dict, str]:
        user = await self.users.get_user_by_email(email)
        # Same message whichever check fails
        if not user or not verify_password(password, user.get("password", "")):
            raise AppError(INVALID_CREDENTIALS, 401)
        log.info("user.logged_in", user_id=user["id"])
        return public_view(user), self.issue_token(user)

    @wrap_errors("change password")
    async def change_password(self, user_id: str, current_password: str, new_password: str) -> bool:
        user = await self.users.get_user_by_id(user_id)
        if not user:
            raise AppError("User not found", 404)
        if not verify_password(current_password, user.get("password", "")):
            raise AppError("Current password is incorrect", 401)

        updated = await self.users.update_password(user_id, hash_password(new_password))
        log.info("user.password_changed", user_id=user_id)
        return updated

    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        return await self.users.get_user_by_id(user_id)

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        return await self.users.get_user_by_email(email)

    @wrap_errors("delete user")
    async def delete_user(self, user_id: str) -> bool:
        """Delete attendance, then memberships, then the user row."""
        if not await self.users.get_user_by_id(user_id):
            raise AppError("User not found", 404)

        attendance_deleted = await self.events.delete_user_attendance(user_id)
        memberships_deleted = await self.orgs.delete_user_memberships(user_id)
        user_deleted = await self.users.delete_user(user_id)

        deleted = bool(attendance_deleted and memberships_deleted and user_deleted)
        log.info("user.deleted", user_id=user_id, complete=deleted)
        return deleted

    async def attach_user_details(self, rows: list[dict]) -> list[dict]:
        """Attach ``{id, email, firstName, lastName}`` under ``user`` to each row."""
        result = []
        for row in rows:
            user = await self.users.get_user_by_id(row["userId"])
            result.append({**public_view(row), "user": user_details(user) if user else None})
        return result
