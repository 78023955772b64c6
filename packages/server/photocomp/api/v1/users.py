"""
Caller-centric endpoints.

GET /users/{user_id}/tagged-photos    Photos the user is tagged in (self only)
GET /events/mine                      Events the caller attends
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from photocomp.api.deps import get_event_service, get_tag_service
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser, get_current_user
from photocomp.core.errors import AppError
from photocomp.core.policy import Action, Actor, Resource, evaluate_policy
from photocomp.models.base import public_view
from photocomp.services.events import EventService
from photocomp.services.tags import TagService

router = APIRouter()


@router.get("/users/{user_id}/tagged-photos", tags=["Tags"])
async def list_tagged_photos(
    user_id: str,
    auth: AuthenticatedUser = Depends(get_current_user),
    tags: TagService = Depends(get_tag_service),
):
    decision = evaluate_policy(
        Actor(user_id=auth.user_id, role=auth.role),
        Action.VIEW_TAGGED_PHOTOS,
        Resource(owner_id=user_id),
    )
    if not decision:
        raise AppError(decision.reason, 403)

    photos = await tags.get_user_tagged_photos(user_id)
    return success({"photos": photos, "count": len(photos)})


@router.get("/events/mine", tags=["Attendance"])
async def list_my_events(
    auth: AuthenticatedUser = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
):
    items = await events.get_all_user_events(auth.user_id)
    return success({"events": [public_view(e) for e in items], "count": len(items)})
