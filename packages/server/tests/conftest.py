"""
Shared fixtures: settings, mocked services and an app wired to them.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from photocomp.core.auth import create_token
from photocomp.core.config import Settings
from photocomp.core.container import ServiceContainer
from photocomp.main import create_app
from photocomp.services.events import EventService
from photocomp.services.memberships import MembershipService
from photocomp.services.organizations import OrgService
from photocomp.services.photos import PhotoService
from photocomp.services.tags import TagService
from photocomp.services.users import UserService

USER_ID = "user-1"
OTHER_ID = "user-2"
ORG = "Shutterbugs"


@pytest.fixture
def settings():
    return Settings(secret_key="test-secret", environment="development", debug=False)


@pytest.fixture
def container():
    """Every service mocked; coroutine methods come back as AsyncMocks."""
    return ServiceContainer(
        users=MagicMock(spec=UserService),
        orgs=MagicMock(spec=OrgService),
        memberships=MagicMock(spec=MembershipService),
        events=MagicMock(spec=EventService),
        photos=MagicMock(spec=PhotoService),
        tags=MagicMock(spec=TagService),
    )


@pytest.fixture
def app(container, settings):
    return create_app(container=container, settings=settings)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def token(settings):
    return create_token(USER_ID, "test@example.com", "USER", settings=settings)


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def membership(role: str = "ADMIN", user_id: str = USER_ID, org: str = ORG) -> dict:
    return {"organizationName": org, "userId": user_id, "role": role, "joinedAt": "2026-01-01T00:00:00Z"}


@pytest.fixture
def as_admin(container):
    container.orgs.get_membership = AsyncMock(return_value=membership("ADMIN"))
    return container


@pytest.fixture
def as_member(container):
    container.orgs.get_membership = AsyncMock(return_value=membership("MEMBER"))
    return container


@pytest.fixture
def as_outsider(container):
    container.orgs.get_membership = AsyncMock(return_value=None)
    return container
