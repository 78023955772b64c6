"""
Membership request review (admin).

GET    /organizations/{org_id}/requests            Pending requests with applicant details
PUT    /organizations/{org_id}/requests/{user_id}  Approve
DELETE /organizations/{org_id}/requests/{user_id}  Deny

Applying is ``POST /organizations/{org_id}`` in the organizations router.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from photocomp.api.deps import get_membership_service, get_user_service, org_permission
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser
from photocomp.core.policy import Action
from photocomp.models.base import public_view
from photocomp.services.memberships import MembershipService
from photocomp.services.users import UserService

router = APIRouter()

require_reviewer = org_permission(Action.REVIEW_REQUESTS)


@router.get("", tags=["Membership Requests"])
async def list_pending_requests(
    org_id: str,
    auth: AuthenticatedUser = Depends(require_reviewer),
    memberships: MembershipService = Depends(get_membership_service),
    users: UserService = Depends(get_user_service),
):
    requests = await memberships.get_pending_requests(org_id)
    return success(await users.attach_user_details(requests))


@router.put("/{user_id}", tags=["Membership Requests"])
async def approve_request(
    org_id: str,
    user_id: str,
    auth: AuthenticatedUser = Depends(require_reviewer),
    memberships: MembershipService = Depends(get_membership_service),
):
    membership = await memberships.approve_request(org_id, user_id)
    return success(public_view(membership), "Membership request approved")


@router.delete("/{user_id}", tags=["Membership Requests"])
async def deny_request(
    org_id: str,
    user_id: str,
    auth: AuthenticatedUser = Depends(require_reviewer),
    memberships: MembershipService = Depends(get_membership_service),
):
    await memberships.deny_request(org_id, user_id)
    return success(message="Membership request denied")
