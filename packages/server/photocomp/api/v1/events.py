"""
Event endpoints, scoped to ``/organizations/{org_id}/events``.

POST   ""                          Create an event (admin)
GET    ""                          List the organization's events (members)
GET    /{event_id}                 Event details (members)
PATCH  /{event_id}                 Update title, description, date or location (admin)
PATCH  /{event_id}/publicity       Toggle public visibility (admin)
PATCH  /{event_id}/weather         Re-fetch weather for the event's location (admin)
PUT    /{event_id}/attendance      Attend (members)
DELETE /{event_id}/attendance      Stop attending (members)
GET    /{event_id}/attendees       Attendee ids (admin)
DELETE /{event_id}/admin           Delete with photos, tags and attendance (admin)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from photocomp.api.deps import get_event_service, org_permission, require_org_member
from photocomp.api.responses import success
from photocomp.core.auth import AuthenticatedUser
from photocomp.core.policy import Action
from photocomp.models.base import public_view
from photocomp.services.events import EventService
from photocomp_shared.schemas.events import EventCreateRequest, EventUpdateRequest

router = APIRouter()

require_event_admin = org_permission(Action.MANAGE_EVENTS)


@router.post("", status_code=201, tags=["Events"])
async def create_event(
    org_id: str,
    body: EventCreateRequest,
    auth: AuthenticatedUser = Depends(require_event_admin),
    events: EventService = Depends(get_event_service),
):
    """Create an event; the creating admin is registered as an attendee."""
    event = await events.add_event_to_organization(org_id, body, creator_id=auth.user_id)
    return success(public_view(event), "Event created successfully")


@router.get("", tags=["Events"])
async def list_events(
    org_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    events: EventService = Depends(get_event_service),
):
    items = await events.get_all_organization_events(org_id)
    return success([public_view(e) for e in items])


@router.get("/{event_id}", tags=["Events"])
async def get_event(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    events: EventService = Depends(get_event_service),
):
    return success(public_view(await events.get_org_event(org_id, event_id)))


@router.patch("/{event_id}", tags=["Events"])
async def update_event(
    org_id: str,
    event_id: str,
    body: EventUpdateRequest,
    auth: AuthenticatedUser = Depends(require_event_admin),
    events: EventService = Depends(get_event_service),
):
    await events.get_org_event(org_id, event_id)
    event = await events.update_event(event_id, body.changes())
    return success(public_view(event), "Event updated successfully")


@router.patch("/{event_id}/publicity", tags=["Events"])
async def toggle_publicity(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_event_admin),
    events: EventService = Depends(get_event_service),
):
    event = await events.update_event_publicity(await events.get_org_event(org_id, event_id))
    state = "public" if event.get("isPublic") else "private"
    return success(public_view(event), f"Event is now {state}")


@router.patch("/{event_id}/weather", tags=["Events"])
async def refresh_weather(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_event_admin),
    events: EventService = Depends(get_event_service),
):
    await events.get_org_event(org_id, event_id)
    event = await events.refresh_event_weather(event_id)
    return success(public_view(event), "Weather data updated successfully")


@router.put("/{event_id}/attendance", tags=["Attendance"])
async def attend_event(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    events: EventService = Depends(get_event_service),
):
    await events.get_org_event(org_id, event_id)
    attendance = await events.add_event_user(auth.user_id, event_id)
    return success(public_view(attendance), "Successfully registered for event")


@router.delete("/{event_id}/attendance", tags=["Attendance"])
async def leave_event(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_org_member),
    events: EventService = Depends(get_event_service),
):
    await events.find_event_user_by_user(event_id, auth.user_id)
    await events.remove_event_user(auth.user_id, event_id)
    return success(message="Successfully unregistered from event")


@router.get("/{event_id}/attendees", tags=["Attendance"])
async def list_attendees(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_event_admin),
    events: EventService = Depends(get_event_service),
):
    await events.get_org_event(org_id, event_id)
    return success(await events.get_event_attendees(event_id))


@router.delete("/{event_id}/admin", tags=["Events"])
async def delete_event(
    org_id: str,
    event_id: str,
    auth: AuthenticatedUser = Depends(require_event_admin),
    events: EventService = Depends(get_event_service),
):
    """Delete the event and everything under it; cleanup failures are reported, not raised."""
    summary = await events.delete_event(org_id, event_id, auth.user_id)
    return success(summary.as_dict(), "Event deleted successfully")
