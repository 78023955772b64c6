"""
API router.

Organization-scoped resources hang off ``/organizations/{org_id}``; events,
photos and tags nest beneath it.
"""

from fastapi import APIRouter

from . import auth, events, guests, members, memberships, organizations, photos, tags, users

ORG = "/organizations/{org_id}"
EVENT = f"{ORG}/events/{{event_id}}"
PHOTO = f"{EVENT}/photos/{{photo_id}}"

router = APIRouter()

router.include_router(auth.router, prefix="/api/auth")
router.include_router(guests.router, prefix="/guests")
router.include_router(users.router)

router.include_router(organizations.router, prefix="/organizations")
router.include_router(members.router, prefix=f"{ORG}/members")
router.include_router(memberships.router, prefix=f"{ORG}/requests")
router.include_router(events.router, prefix=f"{ORG}/events")
router.include_router(photos.router, prefix=f"{EVENT}/photos")
router.include_router(tags.router, prefix=f"{PHOTO}/tags")
