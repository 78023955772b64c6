"""
Event and attendance persistence.

Events hang off their organization through GSI2 (``ORG#<NAME>``); attendance
records are stored under the user and indexed under the event through GSI2.
"""

from __future__ import annotations

from typing import Optional

import structlog

from photocomp.core.dynamodb import GSI2, ConditionalWriteError, DynamoGateway, continuation_key
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.base import ENTITY, utcnow_iso
from photocomp.models.event import event_pk
from photocomp.models.organization import org_pk

log = structlog.get_logger()

PUBLIC_EVENTS_PAGE_SIZE = 9
PUBLIC_EVENTS_SCAN_SIZE = 15


class EventRepository:
    def __init__(self, db: DynamoGateway):
        self.db = db

    # -- events -------------------------------------------------------------

    @wrap_errors("create event")
    async def create_event(self, item: dict) -> dict:
        return await self.db.put(item)

    @wrap_errors("find event")
    async def find_event_by_id(self, event_id: str) -> Optional[dict]:
        return await self.db.get(event_pk(event_id), ENTITY)

    @wrap_errors("update event")
    async def update_event(self, event_id: str, fields: dict) -> Optional[dict]:
        return await self.db.update(event_pk(event_id), ENTITY, {**fields, "updatedAt": utcnow_iso()})

    @wrap_errors("delete event")
    async def delete_event(self, event_id: str) -> bool:
        await self.db.delete(event_pk(event_id), ENTITY)
        return True

    @wrap_errors("get organization events")
    async def get_org_events(self, org_name: str) -> list[dict]:
        return await self.db.query_all(org_pk(org_name), index=GSI2, sort_prefix="EVENT#")

    @wrap_errors("count organization events")
    async def has_events(self, org_name: str) -> bool:
        page = await self.db.query(org_pk(org_name), index=GSI2, sort_prefix="EVENT#", limit=1)
        return bool(page.items)

    @wrap_errors("get public organization events")
    async def get_public_org_events(
        self, org_name: str, start_key: Optional[dict] = None
    ) -> tuple[list[dict], Optional[dict]]:
        """Collect up to nine public events, reading fifteen rows at a time.

        When the last read holds more public events than fit, the returned
        key points at the last event kept so the next page starts there.
        """
        events: list[dict] = []
        last_key = start_key
        while True:
            page = await self.db.query(
                org_pk(org_name),
                index=GSI2,
                sort_prefix="EVENT#",
                limit=PUBLIC_EVENTS_SCAN_SIZE,
                start_key=last_key,
            )
            events.extend(e for e in page.items if e.get("isPublic"))
            last_key = page.last_key
            if len(events) >= PUBLIC_EVENTS_PAGE_SIZE or not last_key:
                break
        if len(events) > PUBLIC_EVENTS_PAGE_SIZE:
            events = events[:PUBLIC_EVENTS_PAGE_SIZE]
            last_key = continuation_key(events[-1], GSI2)
        return events, last_key

    # -- attendance ---------------------------------------------------------

    @wrap_errors("add event user")
    async def add_event_user(self, item: dict) -> dict:
        try:
            return await self.db.put_new(item)
        except ConditionalWriteError:
            raise AppError("User is already attending this event", 409)

    @wrap_errors("remove event user")
    async def remove_event_user(self, user_id: str, event_id: str) -> bool:
        await self.db.delete(f"USER#{user_id}", event_pk(event_id))
        return True

    @wrap_errors("find event user")
    async def find_event_user(self, event_id: str, user_id: str) -> Optional[dict]:
        return await self.db.get(f"USER#{user_id}", event_pk(event_id))

    @wrap_errors("get user events")
    async def get_user_attendance(self, user_id: str) -> list[dict]:
        return await self.db.query_all(f"USER#{user_id}", sort_prefix="EVENT#")

    @wrap_errors("get event attendees")
    async def get_event_attendance(self, event_id: str) -> list[dict]:
        return await self.db.query_all(event_pk(event_id), index=GSI2, sort_prefix="USER#")

    @wrap_errors("delete event attendance")
    async def delete_event_attendance(self, event_id: str) -> int:
        rows = await self.get_event_attendance(event_id)
        await self.db.batch_delete(rows)
        return len(rows)

    @wrap_errors("delete user attendance")
    async def delete_user_attendance(self, user_id: str) -> bool:
        rows = await self.get_user_attendance(user_id)
        await self.db.batch_delete(rows)
        log.info("attendance.deleted_for_user", user_id=user_id, count=len(rows))
        return True
