"""Membership request persistence (``ORG#<NAME>`` / ``REQUEST#<userId>``)."""

from __future__ import annotations

from typing import Optional

from boto3.dynamodb.conditions import Attr

from photocomp.core.dynamodb import ConditionalWriteError, DynamoGateway
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.organization import org_pk, request_sk
from photocomp_shared.schemas.common import MembershipStatus


class MembershipRequestRepository:
    def __init__(self, db: DynamoGateway):
        self.db = db

    @wrap_errors("create membership request")
    async def create_request(self, item: dict) -> dict:
        try:
            return await self.db.put_new(item)
        except ConditionalWriteError:
            raise AppError("You have already submitted a request to join this organization", 409)

    @wrap_errors("get pending requests")
    async def get_pending_requests(self, org_name: str) -> list[dict]:
        return await self.db.query_all(
            org_pk(org_name),
            sort_prefix="REQUEST#",
            filter_expression=Attr("status").eq(MembershipStatus.PENDING.value),
        )

    @wrap_errors("find membership request")
    async def find_request(self, org_name: str, user_id: str) -> Optional[dict]:
        return await self.db.get(org_pk(org_name), request_sk(user_id))

    @wrap_errors("delete membership request")
    async def delete_request(self, org_name: str, user_id: str) -> bool:
        await self.db.delete(org_pk(org_name), request_sk(user_id))
        return True
