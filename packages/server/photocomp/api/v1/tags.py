"""
Photo tag endpoints, scoped to
``/organizations/{org_id}/events/{event_id}/photos/{photo_id}/tags``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from photocomp.api.deps import get_event_service, get_tag_service, org_permission, require_org_member
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser
from photocomp.core.policy import Action
from photocomp.services.events import EventService
from photocomp.services.tags import TagService
from photocomp_shared.schemas.photos import TagRequest

router = APIRouter()

require_tagger = org_permission(Action.TAG_PHOTOS)


@router.get("", tags=["Tags"])
async def list_photo_tags(
    org_id: str,
    event_id: str,
    photo_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    events: EventService = Depends(get_event_service),
    tags: TagService = Depends(get_tag_service),
):
    await events.get_org_event(org_id, event_id)
    items = await tags.get_photo_tags(event_id, photo_id)
    return success({"tags": items, "count": len(items)})


@router.post("", status_code=201, tags=["Tags"])
async def tag_users(
    org_id: str,
    event_id: str,
    photo_id: str,
    body: TagRequest,
    auth: AuthenticatedUser = Depends(require_tagger),
    events: EventService = Depends(get_event_service),
    tags: TagService = Depends(get_tag_service),
):
    """Tag attendees; users who cannot be tagged are skipped, not rejected."""
    await events.get_org_event(org_id, event_id)
    created = await tags.tag_users_in_photo(event_id, photo_id, body, auth.user_id)
    return success({"tags": created, "count": len(created)}, f"Tagged {len(created)} users in photo")


@router.delete("/{user_id}", tags=["Tags"])
async def untag_user(
    org_id: str,
    event_id: str,
    photo_id: str,
    user_id: str,
    auth: AuthenticatedUser = Depends(require_tagger),
    events: EventService = Depends(get_event_service),
    tags: TagService = Depends(get_tag_service),
):
    await events.get_org_event(org_id, event_id)
    await tags.remove_tag(event_id, photo_id, user_id)
    return success(message="User untagged from photo successfully")
