"""
Photo endpoints, scoped to ``/organizations/{org_id}/events/{event_id}/photos``.

POST   ""                        Upload one or several ``photo`` files (admin)
GET    ""                        Event photos with fresh URLs (attendees and admins)
DELETE /{photo_id}               Delete a photo and its stored sizes (admin)
GET    /{photo_id}/download      Presigned download URL for one size (attendees)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from photocomp.api.deps import (
    get_app_settings,
    get_event_service,
    get_photo_service,
    org_permission,
    read_upload,
    require_org_member,
)
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser, get_current_user
from photocomp.core.config import Settings
from photocomp.core.errors import AppError
from photocomp.core.policy import Action, Actor, Resource, evaluate_policy
from photocomp.models.base import public_view
from photocomp.services.events import EventService
from photocomp.services.photos import PhotoService
from photocomp_shared.schemas.common import PhotoSize
from photocomp_shared.schemas.photos import DownloadUrlResponse, PhotoMetadata

router = APIRouter()

require_photo_admin = org_permission(Action.MANAGE_PHOTOS)


async def _check_event_access(
    action: Action,
    auth: AuthenticatedUser,
    org_id: str,
    event_id: str,
    photos: PhotoService,
) -> None:
    is_attendee = await photos.validate_user_event_access(event_id, auth.user_id)
    decision = evaluate_policy(
        Actor(user_id=auth.user_id, role=auth.role, membership=auth.membership),
        action,
        Resource(org_name=org_id, is_attendee=is_attendee),
    )
    if not decision:
        raise AppError(decision.reason, 403)


@router.post("", status_code=201, tags=["Photos"])
async def upload_photos(
    org_id: str,
    event_id: str,
    photo: Optional[list[UploadFile]] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    auth: AuthenticatedUser = Depends(require_photo_admin),
    events: EventService = Depends(get_event_service),
    photos: PhotoService = Depends(get_photo_service),
    settings: Settings = Depends(get_app_settings),
):
    files = [f for f in (photo or []) if f.filename]
    if not files:
        raise AppError("No photo file uploaded", 400)

    await events.get_org_event(org_id, event_id)
    metadata = PhotoMetadata(title=title, description=description).model_dump()
    payloads = [(await read_upload(f, settings), f.content_type or "image/jpeg") for f in files]
    created = await photos.upload_photos(event_id, payloads, auth.user_id, metadata)

    if len(created) == 1:
        return success({"photo": public_view(created[0])}, "Photo uploaded successfully")
    return success(
        {"photos": [public_view(p) for p in created], "count": len(created)},
        f"{len(created)} photos uploaded successfully",
    )


@router.get("", tags=["Photos"])
async def list_event_photos(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    events: EventService = Depends(get_event_service),
    photos: PhotoService = Depends(get_photo_service),
):
    await events.get_org_event(org_id, event_id)
    await _check_event_access(Action.VIEW_EVENT_PHOTOS, auth, org_id, event_id, photos)
    items = await photos.get_event_photos(event_id)
    return success({"photos": [public_view(p) for p in items], "count": len(items)})


@router.delete("/{photo_id}", tags=["Photos"])
async def delete_photo(
    org_id: str,
    event_id: str,
    photo_id: str,
    auth: AuthenticatedUser = Depends(require_photo_admin),
    events: EventService = Depends(get_event_service),
    photos: PhotoService = Depends(get_photo_service),
):
    await events.get_org_event(org_id, event_id)
    await photos.delete_photo(photo_id, event_id)
    return success(message="Photo deleted successfully")


@router.get("/{photo_id}/download", tags=["Photos"])
async def download_photo(
    org_id: str,
    event_id: str,
    photo_id: str,
    size: str = Query(PhotoSize.ORIGINAL.value),
    auth: AuthenticatedUser = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
    photos: PhotoService = Depends(get_photo_service),
):
    """Presigned URL that downloads the requested size with a readable filename."""
    await events.get_org_event(org_id, event_id)
    await _check_event_access(Action.DOWNLOAD_PHOTO, auth, org_id, event_id, photos)

    url = await photos.get_photo_download_url(photo_id, event_id, size)
    body = DownloadUrlResponse(download_url=url, size=PhotoSize(size))
    return success(body.model_dump(by_alias=True, mode="json"))
