"""User persistence."""

from __future__ import annotations

from typing import Optional

import structlog

from photocomp.core.dynamodb import GSI1, ConditionalWriteError, DynamoGateway
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.base import ENTITY, utcnow_iso
from photocomp.models.user import email_gsi, user_pk

log = structlog.get_logger()


class UserRepository:
    def __init__(self, db: DynamoGateway):
        self.db = db

    @wrap_errors("create user")
    async def create_user(self, item: dict) -> dict:
        try:
            return await self.db.put_new(item)
        except ConditionalWriteError:
            raise AppError("User already exists", 409)

    @wrap_errors("get user by email")
    async def get_user_by_email(self, email: str) -> Optional[dict]:
        page = await self.db.query(email_gsi(email), index=GSI1, limit=1)
        return page.items[0] if page.items else None

    @wrap_errors("get user by id")
    async def get_user_by_id(self, user_id: str) -> Optional[dict]:
        return await self.db.get(user_pk(user_id), ENTITY)

    @wrap_errors("update user password")
    async def update_password(self, user_id: str, password_hash: str) -> bool:
        updated = await self.db.update(
            user_pk(user_id), ENTITY, {"password": password_hash, "updatedAt": utcnow_iso()}
        )
        return updated is not None

    @wrap_errors("delete user")
    async def delete_user(self, user_id: str) -> bool:
        await self.db.delete(user_pk(user_id), ENTITY)
        return True
