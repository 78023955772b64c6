"""
Photo service: upload with size variants, presigned URL refresh, deletion,
downloads and organization-wide photo listings.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

import structlog

from photocomp.core.batch import BatchSummary, run_best_effort
from photocomp.core.enrichment import enrich
from photocomp.core.errors import AppError, wrap_errors
from photocomp.core.storage import BlobStore, key_from_url
from photocomp.models.photo import new_photo_item, photo_object_key
from photocomp.repositories.events import EventRepository
from photocomp.repositories.organizations import OrgRepository
from photocomp.repositories.photos import PhotoRepository
from photocomp.repositories.tags import TagRepository
from photocomp.services.images import ImageProcessor
from photocomp_shared.schemas.common import PhotoSize
from photocomp_shared.schemas.photos import PhotoUrls

log = structlog.get_logger()


def resolve_photo_keys(photo: dict, bucket: Optional[str] = None) -> dict[str, str]:
    """Find a photo's object keys, newest metadata shape first.

    1. ``metadata.s3Keys`` (one key per size)
    2. ``metadata.s3Key`` (single original key)
    3. the key embedded in the stored ``url``
    """
    metadata = photo.get("metadata") or {}
    if metadata.get("s3Keys"):
        return {size: key for size, key in metadata["s3Keys"].items() if key}
    if metadata.get("s3Key"):
        return {PhotoSize.ORIGINAL.value: metadata["s3Key"]}
    key = key_from_url(photo.get("url", ""), bucket)
    return {PhotoSize.ORIGINAL.value: key} if key else {}


def download_filename(photo: dict, key: str) -> str:
    extension = key.rsplit(".", 1)[-1] if "." in key else "jpg"
    title = ((photo.get("metadata") or {}).get("title") or "").strip()
    if title:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "_", title).strip("_")
        if safe:
            return f"{safe}.{extension}"
    return f"photo-{photo['id']}.{extension}"


class PhotoService:
    def __init__(
        self,
        photos: PhotoRepository,
        events: EventRepository,
        orgs: OrgRepository,
        tags: TagRepository,
        blobs: BlobStore,
        images: ImageProcessor,
    ):
        self.photos = photos
        self.events = events
        self.orgs = orgs
        self.tags = tags
        self.blobs = blobs
        self.images = images

    # -- URLs -------------------------------------------------------------------

    async def _presign_all(self, keys: dict[str, str]) -> dict[str, str]:
        return {size: await self.blobs.presign(key) for size, key in keys.items()}

    async def refresh_photo_urls(self, photo: dict) -> dict:
        """Return the photo with freshly presigned URLs; nothing is persisted.

        When presigning fails the photo comes back with its stored URLs.
        """
        keys = resolve_photo_keys(photo, self.blobs.bucket)
        if not keys:
            log.warning("photo.keys_missing", photo_id=photo.get("id"))
            return photo
        urls = await enrich("photo.url_refresh", self._presign_all(keys), photo_id=photo.get("id"))
        if not urls:
            return photo
        original = urls.get(PhotoSize.ORIGINAL.value) or next(iter(urls.values()))
        return {**photo, "url": original, "urls": urls}

    # -- upload -----------------------------------------------------------------

    @wrap_errors("upload photo")
    async def upload_photo(
        self,
        photo_id: str,
        event_id: str,
        data: bytes,
        mime_type: str,
        uploader_id: str,
        metadata: Optional[dict] = None,
    ) -> dict:
        if not await self.events.find_event_by_id(event_id):
            raise AppError("Event not found", 404)

        processed = await self.images.generate_sizes(data, mime_type)

        keys: dict[str, str] = {}
        urls: dict[str, str] = {}
        for size, variant in processed.variants.items():
            suffix = None if size is PhotoSize.ORIGINAL else size.value
            key = photo_object_key(event_id, photo_id, variant.extension, suffix)
            await self.blobs.upload(key, variant.data, variant.content_type)
            keys[size.value] = key
            urls[size.value] = await self.blobs.presign(key)

        metadata = metadata or {}
        item = new_photo_item(
            photo_id=photo_id,
            event_id=event_id,
            uploaded_by=uploader_id,
            urls=PhotoUrls(**urls).model_dump(exclude_none=True),
            metadata={
                "title": metadata.get("title"),
                "description": metadata.get("description"),
                "size": len(data),
                "mimeType": mime_type,
                "s3Key": keys[PhotoSize.ORIGINAL.value],
                "s3Keys": keys,
                "width": processed.width,
                "height": processed.height,
            },
        )
        await self.photos.create_photo(item)
        log.info("photo.uploaded", photo_id=photo_id, event_id=event_id, variants=sorted(keys))
        return item

    async def upload_photos(
        self,
        event_id: str,
        files: list[tuple[bytes, str]],
        uploader_id: str,
        metadata: Optional[dict] = None,
    ) -> list[dict]:
        """Upload several files to one event, each under a fresh photo id."""
        return [
            await self.upload_photo(str(uuid.uuid4()), event_id, data, mime_type, uploader_id, metadata)
            for data, mime_type in files
        ]

    # -- reads ------------------------------------------------------------------

    @wrap_errors("get event photos")
    async def get_event_photos(self, event_id: str) -> list[dict]:
        if not await self.events.find_event_by_id(event_id):
            raise AppError("Event not found", 404)
        photos = await self.photos.get_photos_by_event(event_id)
        return [await self.refresh_photo_urls(p) for p in photos]

    async def _get_event_photo(self, photo_id: str, event_id: str) -> dict:
        photo = await self.photos.get_photo_by_id(photo_id)
        if not photo:
            raise AppError("Photo not found", 404)
        if photo.get("eventId") != event_id:
            raise AppError("Photo does not belong to the specified event", 400)
        return photo

    async def validate_user_event_access(self, event_id: str, user_id: str) -> bool:
        """True only when an attendance record is positively found."""
        try:
            return await self.events.find_event_user(event_id, user_id) is not None
        except Exception as exc:
            log.warning("photo.access_check_failed", event_id=event_id, user_id=user_id, error=str(exc))
            return False

    @wrap_errors("generate download URL")
    async def get_photo_download_url(self, photo_id: str, event_id: str, size: str = "original") -> str:
        try:
            size = PhotoSize(size).value
        except ValueError:
            raise AppError(
                "Invalid size parameter. Must be one of: original, thumbnail, medium, large", 400
            )

        photo = await self._get_event_photo(photo_id, event_id)
        keys = resolve_photo_keys(photo, self.blobs.bucket)
        key = keys.get(size) or keys.get(PhotoSize.ORIGINAL.value)
        if not key:
            raise AppError("Photo S3 key not found", 500)

        return await self.blobs.presign(key, download_filename=download_filename(photo, key))

    @wrap_errors("get organization photos")
    async def get_all_organization_photos(self, org_name: str, user_id: str) -> tuple[list[dict], dict[str, dict]]:
        """All photos across the organization's events, plus the events by id."""
        if not await self.orgs.find_membership(org_name, user_id):
            raise AppError("You must be a member of this organization to view its photos", 403)

        events = {e["id"]: e for e in await self.events.get_org_events(org_name)}
        photos: list[dict] = []
        for event_id in events:
            for photo in await self.photos.get_photos_by_event(event_id):
                photos.append(await self.refresh_photo_urls(photo))
        return photos, events

    # -- deletion ---------------------------------------------------------------

    async def purge_photo(self, photo: dict) -> BatchSummary:
        """Delete the photo row, then every stored size. Blob failures are only logged."""
        await self.photos.delete_photo(photo["id"])
        keys = sorted(set(resolve_photo_keys(photo, self.blobs.bucket).values()))
        return await run_best_effort(
            "photo.s3_delete",
            [(key, lambda key=key: self.blobs.delete(key)) for key in keys],
        )

    @wrap_errors("delete photo")
    async def delete_photo(self, photo_id: str, event_id: str) -> BatchSummary:
        """Delete the photo's tags, its row and its stored sizes."""
        photo = await self._get_event_photo(photo_id, event_id)
        summary = await run_best_effort(
            "photo.tag_delete",
            [(f"tags:{photo_id}", lambda: self.tags.delete_photo_tags(photo_id))],
        )
        summary.merge(await self.purge_photo(photo))
        log.info("photo.deleted", photo_id=photo_id, event_id=event_id, failures=len(summary.failures))
        return summary
