"""
FastAPI dependencies: service providers and organization-scoped permissions.

Services come from the ``ServiceContainer`` on ``app.state``; nothing here
holds module-level state.
"""

from __future__ import annotations

from fastapi import Depends, Request, UploadFile

from photocomp.core.auth import AuthenticatedUser, get_current_user
from photocomp.core.config import Settings, get_settings
from photocomp.core.container import ServiceContainer
from photocomp.core.errors import AppError
from photocomp.core.policy import Action, Actor, Resource, evaluate_policy
from photocomp.services.events import EventService
from photocomp.services.memberships import MembershipService
from photocomp.services.organizations import OrgService
from photocomp.services.photos import PhotoService
from photocomp.services.tags import TagService
from photocomp.services.users import UserService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_user_service(container: ServiceContainer = Depends(get_container)) -> UserService:
    return container.users


def get_org_service(container: ServiceContainer = Depends(get_container)) -> OrgService:
    return container.orgs


def get_membership_service(container: ServiceContainer = Depends(get_container)) -> MembershipService:
    return container.memberships


def get_event_service(container: ServiceContainer = Depends(get_container)) -> EventService:
    return container.events


def get_photo_service(container: ServiceContainer = Depends(get_container)) -> PhotoService:
    return container.photos


def get_tag_service(container: ServiceContainer = Depends(get_container)) -> TagService:
    return container.tags


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------

async def authorize(
    user: AuthenticatedUser,
    action: Action,
    org_name: str,
    orgs: OrgService,
) -> AuthenticatedUser:
    """Load the caller's membership in ``org_name`` and check ``action`` against it."""
    membership = await orgs.get_membership(org_name, user.user_id)
    decision = evaluate_policy(
        Actor(user_id=user.user_id, role=user.role, membership=membership),
        action,
        Resource(org_name=org_name),
    )
    if not decision:
        raise AppError(decision.reason, 403)
    user.membership = membership
    return user


def org_permission(action: Action):
    """Dependency factory for routes under ``/organizations/{org_id}``."""

    async def dependency(
        org_id: str,
        user: AuthenticatedUser = Depends(get_current_user),
        orgs: OrgService = Depends(get_org_service),
    ) -> AuthenticatedUser:
        return await authorize(user, action, org_id, orgs)

    return dependency


require_org_admin = org_permission(Action.MANAGE_ORGANIZATION)
require_org_member = org_permission(Action.VIEW_ORGANIZATION)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


async def read_upload(upload: UploadFile, settings: Settings) -> bytes:
    """Read an uploaded file, rejecting anything over ``max_upload_bytes``."""
    data = await upload.read()
    if len(data) > settings.max_upload_bytes:
        raise AppError(f"File exceeds the {settings.max_upload_bytes} byte upload limit", 413)
    return data
