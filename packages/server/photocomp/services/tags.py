"""
Photo tagging.

Only event attendees can be tagged, and at most once per photo. Tagging a
batch of users is a partial-success operation: invalid entries are skipped
with a warning and only the tags actually written are returned, so callers
compare lengths to detect skips.
"""

from __future__ import annotations

import uuid

import structlog

from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.base import public_view
from photocomp.models.photo import new_tag_item
from photocomp.models.user import user_details
from photocomp.repositories.events import EventRepository
from photocomp.repositories.photos import PhotoRepository
from photocomp.repositories.tags import TagRepository
from photocomp.repositories.users import UserRepository
from photocomp.services.photos import PhotoService
from photocomp_shared.schemas.photos import TagRequest

log = structlog.get_logger()


class TagService:
    def __init__(
        self,
        tags: TagRepository,
        photos: PhotoRepository,
        events: EventRepository,
        users: UserRepository,
        photo_service: PhotoService,
    ):
        self.tags = tags
        self.photos = photos
        self.events = events
        self.users = users
        self.photo_service = photo_service

    async def _get_event_photo(self, event_id: str, photo_id: str) -> dict:
        photo = await self.photos.get_photo_by_id(photo_id)
        if not photo:
            raise AppError("Photo not found", 404)
        if photo.get("eventId") != event_id:
            raise AppError("Photo does not belong to the specified event", 400)
        return photo

    @wrap_errors("tag users in photo")
    async def tag_users_in_photo(
        self, event_id: str, photo_id: str, request: TagRequest, tagged_by: str
    ) -> list[dict]:
        await self._get_event_photo(event_id, photo_id)

        items = []
        for user_id in dict.fromkeys(request.user_ids):
            if not await self.users.get_user_by_id(user_id):
                log.warning("tag.skipped", reason="user_not_found", user_id=user_id, photo_id=photo_id)
                continue
            if not await self.events.find_event_user(event_id, user_id):
                log.warning("tag.skipped", reason="not_attendee", user_id=user_id, photo_id=photo_id)
                continue
            if await self.tags.is_user_tagged(user_id, photo_id):
                log.warning("tag.skipped", reason="already_tagged", user_id=user_id, photo_id=photo_id)
                continue
            items.append(new_tag_item(str(uuid.uuid4()), user_id, photo_id, event_id, tagged_by))

        if items:
            await self.tags.batch_create_tags(items)
        log.info(
            "tag.created",
            photo_id=photo_id,
            requested=len(request.user_ids),
            created=len(items),
        )
        return [public_view(item) for item in items]

    @wrap_errors("get photo tags")
    async def get_photo_tags(self, event_id: str, photo_id: str) -> list[dict]:
        await self._get_event_photo(event_id, photo_id)
        result = []
        for tag in await self.tags.get_photo_tags(photo_id):
            user = await self.users.get_user_by_id(tag["userId"])
            result.append({**public_view(tag), "user": user_details(user) if user else None})
        return result

    @wrap_errors("remove tag")
    async def remove_tag(self, event_id: str, photo_id: str, user_id: str) -> bool:
        await self._get_event_photo(event_id, photo_id)
        if not await self.tags.find_tag(user_id, photo_id):
            raise AppError("User is not tagged in this photo", 404)
        await self.tags.delete_tag(user_id, photo_id)
        log.info("tag.removed", user_id=user_id, photo_id=photo_id)
        return True

    @wrap_errors("get tagged photos")
    async def get_user_tagged_photos(self, user_id: str) -> list[dict]:
        """Photos the user is tagged in; tags pointing at deleted photos are skipped."""
        photos = []
        for tag in await self.tags.get_user_tags(user_id):
            photo = await self.photos.get_photo_by_id(tag["photoId"])
            if not photo:
                log.warning("tag.photo_missing", user_id=user_id, photo_id=tag["photoId"])
                continue
            photo = await self.photo_service.refresh_photo_urls(photo)
            photos.append({
                **public_view(photo),
                "tag": {"taggedBy": tag.get("taggedBy"), "taggedAt": tag.get("taggedAt")},
            })
        return photos
