"""
Organization member endpoints.

GET    /organizations/{org_id}/members                    List members with user details (admin)
DELETE /organizations/{org_id}/members/{user_id}          Remove a member (admin)
PATCH  /organizations/{org_id}/members/{user_id}          Change a member's role (admin)
DELETE /organizations/{org_id}/members/{user_id}/leave    Leave the organization (self)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from photocomp.api.deps import get_org_service, get_user_service, org_permission
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser, get_current_user
from photocomp.core.errors import AppError
from photocomp.core.policy import Action, Actor, Resource, evaluate_policy
from photocomp.models.base import public_view
from photocomp.services.organizations import OrgService
from photocomp.services.users import UserService
from photocomp_shared.schemas.organizations import MemberRoleUpdateRequest

router = APIRouter()

require_member_admin = org_permission(Action.MANAGE_MEMBERS)


@router.get("", tags=["Members"])
async def list_members(
    org_id: str,
    auth: AuthenticatedUser = Depends(require_member_admin),
    orgs: OrgService = Depends(get_org_service),
    users: UserService = Depends(get_user_service),
):
    members = await orgs.get_org_members(org_id)
    return success(await users.attach_user_details(members))


@router.delete("/{user_id}/leave", tags=["Members"])
async def leave_org(
    org_id: str,
    user_id: str,
    auth: AuthenticatedUser = Depends(get_current_user),
    orgs: OrgService = Depends(get_org_service),
):
    """Leave the organization. The last administrator cannot leave."""
    decision = evaluate_policy(
        Actor(user_id=auth.user_id, role=auth.role),
        Action.LEAVE_ORGANIZATION,
        Resource(org_name=org_id, owner_id=user_id),
    )
    if not decision:
        raise AppError(decision.reason, 403)

    await orgs.leave_organization(org_id, user_id, requested_by=auth.user_id)
    return success(message="Successfully left the organization")


@router.delete("/{user_id}", tags=["Members"])
async def remove_member(
    org_id: str,
    user_id: str,
    auth: AuthenticatedUser = Depends(require_member_admin),
    orgs: OrgService = Depends(get_org_service),
):
    if user_id == auth.user_id:
        raise AppError("Administrators cannot remove themselves from the organization", 400)
    await orgs.remove_member(org_id, user_id)
    return success(message="Member removed successfully")


@router.patch("/{user_id}", tags=["Members"])
async def update_member_role(
    org_id: str,
    user_id: str,
    body: MemberRoleUpdateRequest,
    auth: AuthenticatedUser = Depends(require_member_admin),
    orgs: OrgService = Depends(get_org_service),
):
    if user_id == auth.user_id:
        raise AppError("Administrators cannot change their own role", 400)
    membership = await orgs.update_member_role(org_id, user_id, body.role)
    return success(public_view(membership), "Member role updated successfully")
