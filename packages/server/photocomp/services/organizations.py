"""
Organization service: organization CRUD, membership management, logo storage.
"""

from __future__ import annotations

import mimetypes
import re
import uuid
from typing import Optional

import httpx
import structlog

from photocomp.core.enrichment import Skipped, enrich
from photocomp.core.errors import AppError, wrap_errors
from photocomp.core.storage import BlobStore
from photocomp.models.organization import (
    count_admins,
    new_membership_item,
    new_org_item,
    validate_user_org_admin,
    validate_user_org_member,
)
from photocomp.repositories.organizations import OrgRepository
from photocomp_shared.schemas.common import UserRole
from photocomp_shared.schemas.organizations import OrgCreateRequest

log = structlog.get_logger()

LOGO_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}


def sanitize_org_name(name: str) -> str:
    """Lower-case, dash-separated form of a name for use in object keys."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "org"


class LogoUpload:
    """An uploaded logo file."""

    def __init__(self, data: bytes, content_type: str, filename: Optional[str] = None):
        self.data = data
        self.content_type = content_type
        self.filename = filename


class OrgService:
    # Membership predicates, also consumed by the authorization policy
    validate_user_org_admin = staticmethod(validate_user_org_admin)
    validate_user_org_member = staticmethod(validate_user_org_member)

    def __init__(self, orgs: OrgRepository, blobs: BlobStore, http: httpx.AsyncClient):
        self.orgs = orgs
        self.blobs = blobs
        self.http = http

    # -- logos ----------------------------------------------------------------

    async def _store_logo(self, org_name: str, logo: LogoUpload) -> str:
        if logo.content_type not in LOGO_CONTENT_TYPES:
            raise AppError("Logo must be an image (jpeg, png, gif, webp or svg)", 400)
        ext = (mimetypes.guess_extension(logo.content_type) or ".png").lstrip(".")
        key = f"logos/{sanitize_org_name(org_name)}/{uuid.uuid4()}.{ext}"
        await self.blobs.upload(key, logo.data, logo.content_type)
        return key

    async def _fetch_logo(self, url: str) -> LogoUpload:
        try:
            response = await self.http.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise AppError(f"Failed to download logo: {exc}", 400) from exc
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        return LogoUpload(response.content, content_type)

    async def refresh_logo_url(self, org: dict) -> dict:
        """Re-presign the stored logo; the stored URL expires."""
        if org.get("logoS3Key"):
            result = await enrich(
                "org.logo_refresh", self.blobs.presign(org["logoS3Key"]), org=org.get("name")
            )
            if not isinstance(result, Skipped):
                return {**org, "logoUrl": result}
        return org

    # -- organizations --------------------------------------------------------

    @wrap_errors("create organization")
    async def create_org(
        self, req: OrgCreateRequest, user_id: str, logo: Optional[LogoUpload] = None
    ) -> dict:
        """Create an organization and make its creator the first ADMIN."""
        name = (req.name or "").strip()
        if not name:
            raise AppError("Organization name is required", 400)
        if await self.orgs.find_org_by_name(name):
            raise AppError("Organization name already exists", 409)

        if logo is None:
            if not req.logo_url:
                raise AppError("A logo file or logoUrl is required", 400)
            logo = await self._fetch_logo(req.logo_url)

        logo_key = await self._store_logo(name, logo)
        logo_url = await self.blobs.presign(logo_key)

        org = new_org_item(
            org_id=str(uuid.uuid4()),
            name=name,
            created_by=user_id,
            description=req.description,
            is_public=req.is_public,
            website=req.website,
            contact_email=req.contact_email,
            logo_s3_key=logo_key,
            logo_url=logo_url,
        )
        await self.orgs.create_org(org)
        await self.orgs.create_membership(new_membership_item(name, user_id, UserRole.ADMIN))
        log.info("org.created", org=name, created_by=user_id)
        return org

    async def find_org_by_name(self, name: str) -> Optional[dict]:
        return await self.orgs.find_org_by_name(name)

    @wrap_errors("update organization")
    async def update_org(self, name: str, changes: dict) -> dict:
        if not await self.orgs.find_org_by_name(name):
            raise AppError("Organization not found", 404)
        updated = await self.orgs.update_org(name, changes)
        if not updated:
            raise AppError("Organization not found", 404)
        log.info("org.updated", org=name, fields=sorted(changes))
        return updated

    @wrap_errors("list organizations for user")
    async def find_orgs_by_user(self, user_id: str) -> list[dict]:
        """Every organization the user belongs to, with their role in it."""
        memberships = await self.orgs.find_memberships_by_user(user_id)
        result = []
        for membership in memberships:
            org = await self.orgs.find_org_by_name(membership["organizationName"])
            if not org:
                log.warning("org.membership_orphaned", org=membership["organizationName"], user_id=user_id)
                continue
            org = await self.refresh_logo_url(org)
            result.append({**org, "role": membership["role"], "joinedAt": membership.get("joinedAt")})
        return result

    @wrap_errors("list public organizations")
    async def find_all_public_orgs(self, start_key: Optional[dict] = None) -> tuple[list[dict], Optional[dict]]:
        orgs, last_key = await self.orgs.find_all_public_orgs(start_key)
        return [await self.refresh_logo_url(o) for o in orgs], last_key

    # -- memberships ----------------------------------------------------------

    async def get_membership(self, org_name: str, user_id: str) -> Optional[dict]:
        return await self.orgs.find_membership(org_name, user_id)

    async def find_specific_org_by_user(self, org_name: str, user_id: str) -> dict:
        membership = await self.orgs.find_membership(org_name, user_id)
        if not membership:
            raise AppError("User is not a member of this organization", 401)
        return membership

    async def is_member_of_org(self, org_name: str, user_id: str) -> bool:
        return await self.orgs.find_membership(org_name, user_id) is not None

    @wrap_errors("get organization members")
    async def get_org_members(self, org_name: str) -> list[dict]:
        members = await self.orgs.get_org_members(org_name)
        if not members:
            raise AppError("No members found for this organization", 404)
        return members

    @wrap_errors("remove member")
    async def remove_member(self, org_name: str, user_id: str) -> bool:
        if not await self.orgs.find_membership(org_name, user_id):
            raise AppError("Member not found in this organization", 404)
        removed = await self.orgs.remove_member(org_name, user_id)
        log.info("org.member_removed", org=org_name, user_id=user_id)
        return removed

    @wrap_errors("update member role")
    async def update_member_role(self, org_name: str, user_id: str, role: UserRole) -> dict:
        if not await self.orgs.find_membership(org_name, user_id):
            raise AppError("Member not found in this organization", 404)
        updated = await self.orgs.update_member_role(org_name, user_id, UserRole(role).value)
        if not updated:
            raise AppError("Member not found in this organization", 404)
        log.info("org.member_role_updated", org=org_name, user_id=user_id, role=UserRole(role).value)
        return updated

    @wrap_errors("leave organization")
    async def leave_organization(
        self, org_name: str, user_id: str, requested_by: Optional[str] = None
    ) -> bool:
        """Remove ``user_id`` from the organization unless they are its last ADMIN.

        The admin count is read and then acted on without a transaction, so two
        admins leaving at the same moment can both pass the check.
        """
        membership = await self.orgs.find_membership(org_name, user_id)
        if not membership:
            raise AppError("Member not found in this organization", 404)
        if membership.get("userId") != (requested_by or user_id):
            raise AppError("You cannot make another member leave", 403)

        if membership.get("role") == UserRole.ADMIN.value:
            members = await self.orgs.get_org_members(org_name)
            if count_admins(members) <= 1:
                raise AppError(
                    "Cannot leave organization: You are the only admin. "
                    "Please assign another admin first.",
                    400,
                )

        removed = await self.orgs.remove_member(org_name, user_id)
        log.info("org.member_left", org=org_name, user_id=user_id)
        return removed
