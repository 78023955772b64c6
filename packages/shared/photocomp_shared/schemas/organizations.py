"""
Organization schemas shared between server and clients.

Covers: organization create/update, membership rows, membership requests
and member role changes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import MEMBERSHIP_ROLES, CamelModel, UserRole


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization name, unique case-insensitively")
    description: Optional[str] = Field(None, max_length=2000)
    is_public: bool = True
    website: Optional[str] = Field(None, max_length=500)
    contact_email: Optional[EmailStr] = None
    logo_url: Optional[str] = Field(None, description="Remote logo to copy into storage")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Organization name is required")
        return value


class OrgUpdateRequest(CamelModel):
    name: str = Field(..., min_length=1, description="Organization to update")
    description: Optional[str] = Field(None, max_length=2000)
    is_public: Optional[bool] = None
    website: Optional[str] = Field(None, max_length=500)
    contact_email: Optional[EmailStr] = None

    def changes(self) -> dict:
        """Return the camelCase attributes the caller actually sent."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude={"name"})


class MembershipApplyRequest(CamelModel):
    message: Optional[str] = Field(None, max_length=1000)


class MemberRoleUpdateRequest(CamelModel):
    role: UserRole

    @field_validator("role")
    @classmethod
    def _membership_role(cls, value: UserRole) -> UserRole:
        if value not in MEMBERSHIP_ROLES:
            raise ValueError("Role must be either ADMIN or MEMBER")
        return value
