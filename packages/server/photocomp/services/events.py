"""
Event service: event CRUD, attendance records, publicity and weather.

Weather and geocoding are optional enrichments; an outage at either provider
never fails event creation.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from photocomp.core.batch import BatchSummary, run_best_effort
from photocomp.core.enrichment import Skipped, enrich
from photocomp.core.errors import AppError, wrap_errors
from photocomp.models.event import belongs_to_org, new_attendance_item, new_event_item
from photocomp.repositories.events import EventRepository
from photocomp.repositories.photos import PhotoRepository
from photocomp.repositories.tags import TagRepository
from photocomp.services.geocoding import GeocodingClient
from photocomp.services.photos import PhotoService
from photocomp.services.weather import WeatherClient
from photocomp_shared.schemas.events import EventCreateRequest

log = structlog.get_logger()


class EventService:
    def __init__(
        self,
        events: EventRepository,
        photos: PhotoRepository,
        tags: TagRepository,
        photo_service: PhotoService,
        weather: WeatherClient,
        geocoder: GeocodingClient,
    ):
        self.events = events
        self.photos = photos
        self.tags = tags
        self.photo_service = photo_service
        self.weather = weather
        self.geocoder = geocoder

    # -- enrichment -------------------------------------------------------------

    async def _attach_weather(self, event: dict) -> dict:
        location = event.get("location")
        if not location:
            return event
        weather = await enrich(
            "event.weather",
            self.weather.get_weather_for_location(location["latitude"], location["longitude"], event["date"]),
            event_id=event["id"],
        )
        if isinstance(weather, Skipped):
            return event
        return await self.events.update_event(event["id"], {"weather": weather}) or {**event, "weather": weather}

    # -- events -----------------------------------------------------------------

    @wrap_errors("create event")
    async def add_event_to_organization(
        self, org_name: str, req: EventCreateRequest, creator_id: Optional[str] = None
    ) -> dict:
        """Create an event; the creator, when given, is registered as an attendee."""
        if not org_name or not org_name.strip():
            raise AppError("Invalid organization ID.", 400)
        if not all((value or "").strip() for value in (req.title, req.description, req.date)):
            raise AppError("Missing required fields: title, description, or date.", 400)

        location = req.location.model_dump() if req.location else None
        if location is None and req.address:
            geocoded = await enrich("event.geocode", self.geocoder.geocode_address(req.address), org=org_name)
            if not isinstance(geocoded, Skipped):
                location = geocoded

        event = new_event_item(
            event_id=str(uuid.uuid4()),
            org_name=org_name,
            title=req.title,
            description=req.description,
            date=req.date,
            is_public=req.is_public,
            location=location,
        )
        await self.events.create_event(event)
        log.info("event.created", event_id=event["id"], org=org_name)

        if creator_id:
            await self.events.add_event_user(new_attendance_item(creator_id, event["id"]))
        return await self._attach_weather(event)

    @wrap_errors("get organization events")
    async def get_all_organization_events(self, org_name: str) -> list[dict]:
        return await self.events.get_org_events(org_name)

    @wrap_errors("get public organization events")
    async def get_all_public_organization_events(
        self, org_name: str, start_key: Optional[dict] = None
    ) -> tuple[list[dict], Optional[dict]]:
        return await self.events.get_public_org_events(org_name, start_key)

    @wrap_errors("find event")
    async def find_event_by_id(self, event_id: str) -> dict:
        event = await self.events.find_event_by_id(event_id)
        if not event:
            raise AppError("Event not found", 404)
        return event

    async def get_org_event(self, org_name: str, event_id: str) -> dict:
        """The event, provided it belongs to ``org_name``."""
        event = await self.find_event_by_id(event_id)
        if not belongs_to_org(event, org_name):
            raise AppError("Event does not belong to this organization", 403)
        return event

    @wrap_errors("update event")
    async def update_event(self, event_id: str, changes: dict) -> dict:
        event = await self.find_event_by_id(event_id)
        if not changes:
            return event
        updated = await self.events.update_event(event_id, changes)
        if not updated:
            raise AppError("Event not found", 404)
        log.info("event.updated", event_id=event_id, fields=sorted(changes))
        if "location" in changes or "date" in changes:
            updated = await self._attach_weather(updated)
        return updated

    @wrap_errors("update event publicity")
    async def update_event_publicity(self, event: dict) -> dict:
        """Flip ``isPublic`` and return the re-read event."""
        is_public = not event.get("isPublic", True)
        await self.events.update_event(event["id"], {"isPublic": is_public})
        refreshed = await self.events.find_event_by_id(event["id"])
        if not refreshed:
            raise AppError("Failed to update event publicity", 400)
        log.info("event.publicity_changed", event_id=event["id"], is_public=is_public)
        return refreshed

    @wrap_errors("refresh event weather")
    async def refresh_event_weather(self, event_id: str) -> dict:
        event = await self.find_event_by_id(event_id)
        location = event.get("location")
        if not location:
            raise AppError("Event has no location; weather cannot be fetched", 400)
        weather = await self.weather.get_weather_for_location(
            location["latitude"], location["longitude"], event["date"]
        )
        return await self.events.update_event(event_id, {"weather": weather}) or {**event, "weather": weather}

    # -- attendance -------------------------------------------------------------

    @wrap_errors("add event user")
    async def add_event_user(self, user_id: str, event_id: str) -> dict:
        return await self.events.add_event_user(new_attendance_item(user_id, event_id))

    @wrap_errors("remove event user")
    async def remove_event_user(self, user_id: str, event_id: str) -> bool:
        return await self.events.remove_event_user(user_id, event_id)

    @wrap_errors("find event user")
    async def find_event_user_by_user(self, event_id: str, user_id: str) -> dict:
        attendance = await self.events.find_event_user(event_id, user_id)
        if not attendance:
            raise AppError("No Event-User found!", 400)
        return attendance

    @wrap_errors("get user events")
    async def get_all_user_events(self, user_id: str) -> list[dict]:
        events = []
        for row in await self.events.get_user_attendance(user_id):
            event = await self.events.find_event_by_id(row["eventId"])
            if event:
                events.append(event)
        return events

    @wrap_errors("get event attendees")
    async def get_event_attendees(self, event_id: str) -> list[str]:
        return [row["userId"] for row in await self.events.get_event_attendance(event_id)]

    # -- deletion ---------------------------------------------------------------

    @wrap_errors("delete event")
    async def delete_event(self, org_name: str, event_id: str, admin_id: str) -> BatchSummary:
        """Cascade: tags and files of every photo, attendance, then the event row.

        Each photo is handled independently; a failure on one is recorded in
        the returned summary and the rest carry on.
        """
        event = await self.get_org_event(org_name, event_id)
        photos = await self.photos.get_photos_by_event(event_id)
        blob_summaries: list[BatchSummary] = []

        async def purge(photo: dict) -> None:
            blob_summaries.append(await self.photo_service.purge_photo(photo))

        operations = []
        for photo in photos:
            operations.append((f"tags:{photo['id']}", lambda p=photo: self.tags.delete_photo_tags(p["id"])))
            operations.append((f"photo:{photo['id']}", lambda p=photo: purge(p)))
        operations.append((f"attendance:{event_id}", lambda: self.events.delete_event_attendance(event_id)))

        summary = await run_best_effort("event.cascade_delete", operations)
        for blobs in blob_summaries:
            summary.merge(blobs)

        await self.events.delete_event(event["id"])
        log.info(
            "event.deleted",
            event_id=event_id,
            org=org_name,
            deleted_by=admin_id,
            photos=len(photos),
            failures=len(summary.failures),
        )
        return summary
