"""
Organization and membership persistence.

Organizations and their membership rows share the ``ORG#<NAME>`` partition;
GSI1 indexes memberships by user and public organizations by creation time.
"""

from __future__ import annotations

from typing import Optional

import structlog
from boto3.dynamodb.conditions import Attr

from photocomp.core.dynamodb import GSI1, ConditionalWriteError, DynamoGateway
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.base import ENTITY, utcnow_iso
from photocomp.models.organization import ORG_LISTING_GSI, member_sk, org_pk

log = structlog.get_logger()

PUBLIC_ORGS_PAGE_SIZE = 9


class OrgRepository:
    def __init__(self, db: DynamoGateway):
        self.db = db

    # -- organizations ------------------------------------------------------

    @wrap_errors("create organization")
    async def create_org(self, item: dict) -> dict:
        try:
            return await self.db.put_new(item)
        except ConditionalWriteError:
            raise AppError("Organization name already exists", 409)

    @wrap_errors("find organization")
    async def find_org_by_name(self, name: str) -> Optional[dict]:
        return await self.db.get(org_pk(name), ENTITY)

    @wrap_errors("update organization")
    async def update_org(self, name: str, fields: dict) -> Optional[dict]:
        return await self.db.update(org_pk(name), ENTITY, {**fields, "updatedAt": utcnow_iso()})

    @wrap_errors("list public organizations")
    async def find_all_public_orgs(self, start_key: Optional[dict] = None) -> tuple[list[dict], Optional[dict]]:
        """Newest public organizations first.

        The filter runs after ``Limit``, so a read can come back empty with
        more to go; keep reading until something matches or the index ends.
        """
        last_key = start_key
        while True:
            page = await self.db.query(
                ORG_LISTING_GSI,
                index=GSI1,
                filter_expression=Attr("isPublic").eq(True),
                limit=PUBLIC_ORGS_PAGE_SIZE,
                start_key=last_key,
                ascending=False,
            )
            last_key = page.last_key
            if page.items or not last_key:
                return page.items, last_key

    # -- memberships --------------------------------------------------------

    @wrap_errors("add member")
    async def create_membership(self, item: dict) -> dict:
        return await self.db.put(item)

    @wrap_errors("find membership")
    async def find_membership(self, org_name: str, user_id: str) -> Optional[dict]:
        return await self.db.get(org_pk(org_name), member_sk(user_id))

    @wrap_errors("list organizations for user")
    async def find_memberships_by_user(self, user_id: str) -> list[dict]:
        return await self.db.query_all(f"USER#{user_id}", index=GSI1, sort_prefix="ORG#")

    @wrap_errors("get organization members")
    async def get_org_members(self, org_name: str) -> list[dict]:
        return await self.db.query_all(org_pk(org_name), sort_prefix="USER#")

    @wrap_errors("remove member")
    async def remove_member(self, org_name: str, user_id: str) -> bool:
        await self.db.delete(org_pk(org_name), member_sk(user_id))
        return True

    @wrap_errors("update member role")
    async def update_member_role(self, org_name: str, user_id: str, role: str) -> Optional[dict]:
        return await self.db.update(org_pk(org_name), member_sk(user_id), {"role": role})

    @wrap_errors("delete user memberships")
    async def delete_user_memberships(self, user_id: str) -> bool:
        memberships = await self.find_memberships_by_user(user_id)
        await self.db.batch_delete(memberships)
        log.info("memberships.deleted_for_user", user_id=user_id, count=len(memberships))
        return True
