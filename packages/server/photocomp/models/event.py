"""Event items (``EVENT#<id>``) and attendance records (``USER#<uid>`` / ``EVENT#<eid>``)."""

from __future__ import annotations

from typing import Optional

from photocomp.models.base import ENTITY, utcnow_iso
from photocomp.models.organization import org_pk

EVENT_TYPE = "EVENT"
ATTENDANCE_TYPE = "EVENT_USER"


def event_pk(event_id: str) -> str:
    return f"EVENT#{event_id}"


def new_event_item(
    event_id: str,
    org_name: str,
    title: str,
    description: str,
    date: str,
    *,
    is_public: bool = True,
    location: Optional[dict] = None,
) -> dict:
    now = utcnow_iso()
    return {
        "PK": event_pk(event_id),
        "SK": ENTITY,
        "GSI2PK": org_pk(org_name),
        "GSI2SK": event_pk(event_id),
        "id": event_id,
        "organizationName": org_name,
        "title": title,
        "description": description,
        "date": date,
        "isPublic": is_public,
        "location": location,
        "weather": None,
        "createdAt": now,
        "updatedAt": now,
        "type": EVENT_TYPE,
    }


def new_attendance_item(user_id: str, event_id: str) -> dict:
    return {
        "PK": f"USER#{user_id}",
        "SK": event_pk(event_id),
        "GSI2PK": event_pk(event_id),
        "GSI2SK": f"USER#{user_id}",
        "id": event_id,
        "userId": user_id,
        "eventId": event_id,
        "createdAt": utcnow_iso(),
        "type": ATTENDANCE_TYPE,
    }


def belongs_to_org(event: dict, org_name: str) -> bool:
    return event.get("GSI2PK") == org_pk(org_name)
