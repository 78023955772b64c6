"""
Organization, membership and membership-request items.

All three live in the ``ORG#<NAME>`` partition, where ``<NAME>`` is the
upper-cased organization name; that makes names unique case-insensitively.
"""

from __future__ import annotations

from typing import Optional

from photocomp.models.base import ENTITY, utcnow_iso
from photocomp_shared.schemas.common import MembershipStatus, UserRole

ORG_TYPE = "ORGANIZATION"
MEMBERSHIP_TYPE = "USER_ORG"
REQUEST_TYPE = "ORG_REQUEST"

ORG_LISTING_GSI = f"TYPE#{ORG_TYPE}"
PENDING_REQUESTS_GSI = f"REQUEST#{MembershipStatus.PENDING.value}"


def org_pk(name: str) -> str:
    return f"ORG#{name.upper()}"


def member_sk(user_id: str) -> str:
    return f"USER#{user_id}"


def request_sk(user_id: str) -> str:
    return f"REQUEST#{user_id}"


def new_org_item(
    org_id: str,
    name: str,
    created_by: str,
    *,
    description: Optional[str] = None,
    is_public: bool = True,
    website: Optional[str] = None,
    contact_email: Optional[str] = None,
    logo_s3_key: Optional[str] = None,
    logo_url: Optional[str] = None,
) -> dict:
    now = utcnow_iso()
    return {
        "PK": org_pk(name),
        "SK": ENTITY,
        "GSI1PK": ORG_LISTING_GSI,
        "GSI1SK": now,
        "id": org_id,
        "name": name,
        "description": description,
        "createdBy": created_by,
        "createdAt": now,
        "updatedAt": now,
        "type": ORG_TYPE,
        "isPublic": is_public,
        "logoUrl": logo_url,
        "logoS3Key": logo_s3_key,
        "website": website,
        "contactEmail": contact_email,
    }


def new_membership_item(org_name: str, user_id: str, role: UserRole) -> dict:
    return {
        "PK": org_pk(org_name),
        "SK": member_sk(user_id),
        "GSI1PK": f"USER#{user_id}",
        "GSI1SK": org_pk(org_name),
        "userId": user_id,
        "organizationName": org_name,
        "role": role.value,
        "joinedAt": utcnow_iso(),
        "type": MEMBERSHIP_TYPE,
    }


def new_request_item(org_name: str, user_id: str, message: Optional[str] = None) -> dict:
    now = utcnow_iso()
    return {
        "PK": org_pk(org_name),
        "SK": request_sk(user_id),
        "GSI1PK": PENDING_REQUESTS_GSI,
        "GSI1SK": now,
        "organizationName": org_name,
        "userId": user_id,
        "requestDate": now,
        "message": message,
        "status": MembershipStatus.PENDING.value,
        "type": REQUEST_TYPE,
    }


# ---------------------------------------------------------------------------
# Membership predicates
# ---------------------------------------------------------------------------

def validate_user_org_admin(membership: Optional[dict]) -> bool:
    return bool(membership) and membership.get("role") == UserRole.ADMIN.value


def validate_user_org_member(membership: Optional[dict]) -> bool:
    return bool(membership) and membership.get("role") is not None


def count_admins(members: list[dict]) -> int:
    return sum(1 for m in members if m.get("role") == UserRole.ADMIN.value)
