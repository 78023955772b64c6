"""Tag persistence (``TAG#<userId>`` / ``PHOTO#<photoId>``, GSI1 by photo)."""

from __future__ import annotations

from typing import Optional

from photocomp.core.dynamodb import GSI1, DynamoGateway
from photocomp.core.errors import wrap_errors
from photocomp.models.photo import photo_pk, tag_pk


class TagRepository:
    def __init__(self, db: DynamoGateway):
        self.db = db

    @wrap_errors("create tags")
    async def batch_create_tags(self, items: list[dict]) -> list[dict]:
        await self.db.batch_put(items)
        return items

    @wrap_errors("check tag")
    async def is_user_tagged(self, user_id: str, photo_id: str) -> bool:
        return await self.db.get(tag_pk(user_id), photo_pk(photo_id)) is not None

    @wrap_errors("get photo tags")
    async def get_photo_tags(self, photo_id: str) -> list[dict]:
        return await self.db.query_all(photo_pk(photo_id), index=GSI1, sort_prefix="TAG#")

    @wrap_errors("get user tags")
    async def get_user_tags(self, user_id: str) -> list[dict]:
        return await self.db.query_all(tag_pk(user_id), sort_prefix="PHOTO#")

    @wrap_errors("find tag")
    async def find_tag(self, user_id: str, photo_id: str) -> Optional[dict]:
        return await self.db.get(tag_pk(user_id), photo_pk(photo_id))

    @wrap_errors("remove tag")
    async def delete_tag(self, user_id: str, photo_id: str) -> bool:
        await self.db.delete(tag_pk(user_id), photo_pk(photo_id))
        return True

    @wrap_errors("delete photo tags")
    async def delete_photo_tags(self, photo_id: str) -> int:
        tags = await self.get_photo_tags(photo_id)
        await self.db.batch_delete(tags)
        return len(tags)
