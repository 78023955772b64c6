"""
Service wiring.

One ``ServiceContainer`` is built per process and stored on
``app.state.container``; route dependencies read services from it. Tests
build a container from mocks instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from photocomp.core.config import Settings
from photocomp.core.dynamodb import DynamoGateway, build_dynamodb_resource, ensure_table
from photocomp.core.storage import BlobStore, build_s3_client
from photocomp.repositories.events import EventRepository
from photocomp.repositories.membership_requests import MembershipRequestRepository
from photocomp.repositories.organizations import OrgRepository
from photocomp.repositories.photos import PhotoRepository
from photocomp.repositories.tags import TagRepository
from photocomp.repositories.users import UserRepository
from photocomp.services.events import EventService
from photocomp.services.geocoding import GeocodingClient
from photocomp.services.images import ImageProcessor
from photocomp.services.mail import Mailer
from photocomp.services.memberships import MembershipService
from photocomp.services.organizations import OrgService
from photocomp.services.photos import PhotoService
from photocomp.services.tags import TagService
from photocomp.services.users import UserService
from photocomp.services.weather import WeatherClient

log = structlog.get_logger()


@dataclass
class ServiceContainer:
    users: UserService
    orgs: OrgService
    memberships: MembershipService
    events: EventService
    photos: PhotoService
    tags: TagService
    http: Optional[httpx.AsyncClient] = None

    async def aclose(self) -> None:
        if self.http is not None:
            await self.http.aclose()


def build_container(settings: Settings) -> ServiceContainer:
    """Construct gateways, repositories and services from ``settings``."""
    resource = build_dynamodb_resource(settings)
    if settings.environment == "development" and settings.dynamodb_endpoint_url:
        table = ensure_table(resource, settings.dynamodb_table)
    else:
        table = resource.Table(settings.dynamodb_table)
    db = DynamoGateway(table)

    blobs = BlobStore(
        build_s3_client(settings),
        settings.s3_bucket,
        expires_seconds=settings.presigned_url_expires_seconds,
    )
    http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    user_repo = UserRepository(db)
    org_repo = OrgRepository(db)
    request_repo = MembershipRequestRepository(db)
    event_repo = EventRepository(db)
    photo_repo = PhotoRepository(db)
    tag_repo = TagRepository(db)

    photo_service = PhotoService(photo_repo, event_repo, org_repo, tag_repo, blobs, ImageProcessor())
    container = ServiceContainer(
        users=UserService(user_repo, event_repo, org_repo, settings),
        orgs=OrgService(org_repo, blobs, http),
        memberships=MembershipService(request_repo, org_repo, event_repo, user_repo, Mailer(settings)),
        events=EventService(
            event_repo,
            photo_repo,
            tag_repo,
            photo_service,
            WeatherClient(http, settings.weather_base_url),
            GeocodingClient(http, settings.geocoding_base_url, settings.geocoding_user_agent),
        ),
        photos=photo_service,
        tags=TagService(tag_repo, photo_repo, event_repo, user_repo, photo_service),
        http=http,
    )
    log.info("container.built", table=settings.dynamodb_table, bucket=settings.s3_bucket)
    return container
