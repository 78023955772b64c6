"""
Authorization policy.

Every role check in the API goes through ``evaluate_policy`` so the rules
for who may do what live in one table instead of in each route.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from photocomp.models.organization import validate_user_org_admin, validate_user_org_member
from photocomp_shared.schemas.common import UserRole


class Action(str, Enum):
    # Org admin
    MANAGE_ORGANIZATION = "organization:manage"
    MANAGE_MEMBERS = "members:manage"
    REVIEW_REQUESTS = "requests:review"
    MANAGE_EVENTS = "events:manage"
    MANAGE_PHOTOS = "photos:manage"
    TAG_PHOTOS = "photos:tag"
    # Org member
    VIEW_ORGANIZATION = "organization:view"
    # Self
    DELETE_ACCOUNT = "account:delete"
    VIEW_TAGGED_PHOTOS = "tags:view_own"
    LEAVE_ORGANIZATION = "organization:leave"
    # Attendee
    DOWNLOAD_PHOTO = "photos:download"
    VIEW_EVENT_PHOTOS = "photos:view"


ADMIN_ACTIONS = frozenset({
    Action.MANAGE_ORGANIZATION,
    Action.MANAGE_MEMBERS,
    Action.REVIEW_REQUESTS,
    Action.MANAGE_EVENTS,
    Action.MANAGE_PHOTOS,
    Action.TAG_PHOTOS,
})

MEMBER_ACTIONS = frozenset({Action.VIEW_ORGANIZATION})


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: str = UserRole.USER.value
    membership: Optional[dict] = None


@dataclass(frozen=True)
class Resource:
    org_name: Optional[str] = None
    owner_id: Optional[str] = None
    is_attendee: bool = False


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _membership_in(actor: Actor, resource: Resource) -> Optional[dict]:
    membership = actor.membership
    if not membership or not resource.org_name:
        return None
    if membership.get("organizationName", "").upper() != resource.org_name.upper():
        return None
    return membership


def evaluate_policy(actor: Actor, action: Action, resource: Resource) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``resource``."""
    if action in ADMIN_ACTIONS:
        if validate_user_org_admin(_membership_in(actor, resource)):
            return ALLOW
        return Decision(False, "Forbidden: You must be an org admin to perform this action.")

    if action in MEMBER_ACTIONS:
        if validate_user_org_member(_membership_in(actor, resource)):
            return ALLOW
        return Decision(False, "Forbidden: You must be a member of this organization.")

    if action is Action.DELETE_ACCOUNT:
        if actor.user_id == resource.owner_id or actor.role == UserRole.ADMIN.value:
            return ALLOW
        return Decision(False, "Not authorized to delete this user")

    if action is Action.VIEW_TAGGED_PHOTOS:
        if actor.user_id == resource.owner_id:
            return ALLOW
        return Decision(False, "You can only view your own tagged photos")

    if action is Action.LEAVE_ORGANIZATION:
        if actor.user_id == resource.owner_id:
            return ALLOW
        return Decision(False, "You cannot make another member leave")

    if action is Action.DOWNLOAD_PHOTO:
        if resource.is_attendee:
            return ALLOW
        return Decision(False, "You do not have access to photos from this event")

    if action is Action.VIEW_EVENT_PHOTOS:
        if resource.is_attendee or validate_user_org_admin(_membership_in(actor, resource)):
            return ALLOW
        return Decision(False, "You do not have access to photos from this event")

    return Decision(False, f"Unknown action: {action}")
