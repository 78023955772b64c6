"""Photo persistence; photos are indexed under their event through GSI2."""

from __future__ import annotations

from typing import Optional

from photocomp.core.dynamodb import GSI2, DynamoGateway
from photocomp.core.errors import wrap_errors
from photocomp.models.base import ENTITY
from photocomp.models.event import event_pk
from photocomp.models.photo import photo_pk


class PhotoRepository:
    def __init__(self, db: DynamoGateway):
        self.db = db

    @wrap_errors("create photo")
    async def create_photo(self, item: dict) -> dict:
        return await self.db.put(item)

    @wrap_errors("get photo")
    async def get_photo_by_id(self, photo_id: str) -> Optional[dict]:
        return await self.db.get(photo_pk(photo_id), ENTITY)

    @wrap_errors("get event photos")
    async def get_photos_by_event(self, event_id: str) -> list[dict]:
        return await self.db.query_all(event_pk(event_id), index=GSI2, sort_prefix="PHOTO#")

    @wrap_errors("delete photo")
    async def delete_photo(self, photo_id: str) -> bool:
        await self.db.delete(photo_pk(photo_id), ENTITY)
        return True
