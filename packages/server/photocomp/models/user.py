"""User items: ``USER#<id>`` / ``ENTITY``, looked up by email through GSI1."""

from __future__ import annotations

from photocomp.models.base import ENTITY, utcnow_iso
from photocomp_shared.schemas.common import UserRole
from photocomp_shared.schemas.users import UserDetails

USER_TYPE = "USER"


def user_pk(user_id: str) -> str:
    return f"USER#{user_id}"


def email_gsi(email: str) -> str:
    return f"EMAIL#{email.lower()}"


def new_user_item(
    user_id: str,
    email: str,
    password_hash: str,
    first_name: str,
    last_name: str,
    role: UserRole = UserRole.USER,
) -> dict:
    now = utcnow_iso()
    return {
        "PK": user_pk(user_id),
        "SK": ENTITY,
        "GSI1PK": email_gsi(email),
        "GSI1SK": ENTITY,
        "id": user_id,
        "email": email.lower(),
        "password": password_hash,
        "firstName": first_name,
        "lastName": last_name,
        "role": role.value,
        "status": "ACTIVE",
        "createdAt": now,
        "updatedAt": now,
        "type": USER_TYPE,
    }


def user_details(item: dict) -> dict:
    """The short user card attached to member, request and tag listings."""
    return UserDetails.model_validate(item).model_dump(by_alias=True)
