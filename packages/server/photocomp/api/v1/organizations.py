"""
Organization endpoints.

GET    /organizations                     Organizations the caller belongs to
POST   /organizations                     Create an organization (multipart, with logo)
PATCH  /organizations                     Update the organization named in the body (admin)
POST   /organizations/{org_id}            Apply to join
GET    /organizations/{org_id}/membership The caller's own membership
GET    /organizations/{org_id}/photos     Every photo of the organization (members)
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from photocomp.api.deps import (
    authorize,
    get_app_settings,
    get_membership_service,
    get_org_service,
    get_photo_service,
    read_upload,
    require_org_member,
)
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser, get_current_user
from photocomp.core.config import Settings
from photocomp.core.policy import Action
from photocomp.models.base import public_view
from photocomp.services.memberships import MembershipService
from photocomp.services.organizations import LogoUpload, OrgService
from photocomp.services.photos import PhotoService
from photocomp_shared.schemas.organizations import (
    MembershipApplyRequest,
    OrgCreateRequest,
    OrgUpdateRequest,
)

log = structlog.get_logger()
router = APIRouter()


@router.get("", tags=["Organizations"])
async def list_orgs(
    auth: AuthenticatedUser = Depends(get_current_user),
    orgs: OrgService = Depends(get_org_service),
):
    """List organizations the caller belongs to, with their role in each."""
    items = await orgs.find_orgs_by_user(auth.user_id)
    if not items:
        return Response(status_code=204)
    return success([public_view(o) for o in items])


@router.post("", status_code=201, tags=["Organizations"])
async def create_org(
    name: str = Form(...),
    description: Optional[str] = Form(None),
    is_public: bool = Form(True, alias="isPublic"),
    website: Optional[str] = Form(None),
    contact_email: Optional[str] = Form(None, alias="contactEmail"),
    logo_url: Optional[str] = Form(None, alias="logoUrl"),
    logo: Optional[UploadFile] = File(None),
    auth: AuthenticatedUser = Depends(get_current_user),
    orgs: OrgService = Depends(get_org_service),
    settings: Settings = Depends(get_app_settings),
):
    """Create an organization. The creator becomes its first administrator."""
    body = OrgCreateRequest(
        name=name,
        description=description,
        is_public=is_public,
        website=website,
        contact_email=contact_email or None,
        logo_url=logo_url or None,
    )
    upload = None
    if logo is not None and logo.filename:
        upload = LogoUpload(await read_upload(logo, settings), logo.content_type or "", logo.filename)

    org = await orgs.create_org(body, auth.user_id, upload)
    return success(public_view(org), "Organization created successfully")


@router.patch("", tags=["Organizations"])
async def update_org(
    body: OrgUpdateRequest,
    auth: AuthenticatedUser = Depends(get_current_user),
    orgs: OrgService = Depends(get_org_service),
):
    """Update description, links or visibility (admin of the named organization)."""
    await authorize(auth, Action.MANAGE_ORGANIZATION, body.name, orgs)
    org = await orgs.update_org(body.name, body.changes())
    return success(public_view(org), "Organization updated successfully")


@router.post("/{org_id}", status_code=201, tags=["Membership Requests"])
async def apply_to_org(
    org_id: str,
    body: Optional[MembershipApplyRequest] = None,
    auth: AuthenticatedUser = Depends(get_current_user),
    memberships: MembershipService = Depends(get_membership_service),
):
    request = await memberships.apply_to_organization(
        org_id, auth.user_id, body.message if body else None
    )
    return success(public_view(request), "Application submitted successfully")


@router.get("/{org_id}/membership", tags=["Members"])
async def get_own_membership(
    org_id: str,
    auth: AuthenticatedUser = Depends(get_current_user),
    orgs: OrgService = Depends(get_org_service),
):
    membership = await orgs.find_specific_org_by_user(org_id, auth.user_id)
    return success(public_view(membership))


@router.get("/{org_id}/photos", tags=["Photos"])
async def list_org_photos(
    org_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    photos: PhotoService = Depends(get_photo_service),
):
    """All photos across the organization's events, each with its event summary."""
    items, events = await photos.get_all_organization_photos(org_id, auth.user_id)
    data = []
    for photo in items:
        event = events.get(photo["eventId"], {})
        data.append({
            **public_view(photo),
            "event": {"id": event.get("id"), "title": event.get("title"), "date": event.get("date")},
        })
    return success({"photos": data, "count": len(data)})
