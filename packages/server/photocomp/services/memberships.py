"""
Membership-request workflow.

PENDING -> APPROVED | DENIED. Requests are ephemeral: approving creates the
MEMBER row and deletes the request, denying just deletes it. Only PENDING
requests are ever stored.
"""

from __future__ import annotations

from typing import Optional

import structlog

from photocomp.core.enrichment import enrich
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.organization import new_membership_item, new_request_item
from photocomp.repositories.events import EventRepository
from photocomp.repositories.membership_requests import MembershipRequestRepository
from photocomp.repositories.organizations import OrgRepository
from photocomp.repositories.users import UserRepository
from photocomp.services.mail import Mailer
from photocomp_shared.schemas.common import MembershipStatus, UserRole

log = structlog.get_logger()


class MembershipService:
    def __init__(
        self,
        requests: MembershipRequestRepository,
        orgs: OrgRepository,
        events: EventRepository,
        users: UserRepository,
        mailer: Optional[Mailer] = None,
    ):
        self.requests = requests
        self.orgs = orgs
        self.events = events
        self.users = users
        self.mailer = mailer

    @wrap_errors("apply to organization")
    async def apply_to_organization(self, org_name: str, user_id: str, message: Optional[str] = None) -> dict:
        org = await self.orgs.find_org_by_name(org_name)
        if not org:
            raise AppError("Organization not found", 404)
        if not await self.events.has_events(org_name):
            raise AppError("Cannot apply to an organization without any events", 400)
        if await self.orgs.find_membership(org_name, user_id):
            raise AppError("You are already a member of this organization", 400)

        request = await self.requests.create_request(new_request_item(org["name"], user_id, message))
        log.info("membership.requested", org=org_name, user_id=user_id)
        return request

    @wrap_errors("get pending requests")
    async def get_pending_requests(self, org_name: str) -> list[dict]:
        return await self.requests.get_pending_requests(org_name)

    @wrap_errors("approve membership request")
    async def approve_request(self, org_name: str, user_id: str) -> dict:
        if not await self.events.has_events(org_name):
            raise AppError("Cannot approve new members for an organization without events", 400)

        request = await self.requests.find_request(org_name, user_id)
        if not request or request.get("status") != MembershipStatus.PENDING.value:
            raise AppError("Membership request not found", 404)

        membership = await self.orgs.create_membership(
            new_membership_item(request["organizationName"], user_id, UserRole.MEMBER)
        )
        await self.requests.delete_request(org_name, user_id)
        log.info("membership.approved", org=org_name, user_id=user_id)

        if self.mailer is not None and self.mailer.enabled:
            await enrich(
                "membership.approval_mail",
                self._notify_approved(request["organizationName"], user_id),
                org=org_name,
                user_id=user_id,
            )
        return membership

    @wrap_errors("deny membership request")
    async def deny_request(self, org_name: str, user_id: str) -> bool:
        request = await self.requests.find_request(org_name, user_id)
        if not request or request.get("status") != MembershipStatus.PENDING.value:
            raise AppError("Membership request not found", 404)

        await self.requests.delete_request(org_name, user_id)
        log.info("membership.denied", org=org_name, user_id=user_id)
        return True

    async def _notify_approved(self, org_name: str, user_id: str) -> None:
        user = await self.users.get_user_by_id(user_id)
        if not user:
            raise AppError("Applicant no longer exists", 404)
        await self.mailer.send(
            to=user["email"],
            subject="An update from PhotoComp!",
            header=f"Welcome to {org_name}!",
            message=(
                f"Your request to join {org_name} has been approved. "
                "Check out the website to see its events and photos."
            ),
        )
