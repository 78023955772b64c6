"""
Enums and base models shared by every PhotoComp schema module.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    USER = "USER"
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"


# Roles a membership row may carry
MEMBERSHIP_ROLES: list[UserRole] = [UserRole.ADMIN, UserRole.MEMBER]


class MembershipStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


# Requests are deleted on leaving PENDING, so both outcomes are terminal.
MEMBERSHIP_TRANSITIONS: dict[MembershipStatus, list[MembershipStatus]] = {
    MembershipStatus.PENDING: [MembershipStatus.APPROVED, MembershipStatus.DENIED],
    MembershipStatus.APPROVED: [],
    MembershipStatus.DENIED: [],
}


class PhotoSize(str, Enum):
    ORIGINAL = "original"
    THUMBNAIL = "thumbnail"
    MEDIUM = "medium"
    LARGE = "large"


class CamelModel(BaseModel):
    """Base for wire schemas: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
