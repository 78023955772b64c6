"""
Tests for photo tagging: partial-success batches, removal and a user's
tagged-photo listing.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import ORG, OTHER_ID, USER_ID
from photocomp.core.errors import AppError
from photocomp.repositories.events import EventRepository
from photocomp.repositories.photos import PhotoRepository
from photocomp.repositories.tags import TagRepository
from photocomp.repositories.users import UserRepository
from photocomp.services.photos import PhotoService
from photocomp.services.tags import TagService
from photocomp_shared.schemas.photos import TagRequest

ATTENDEE = "attendee-1"
STRANGER = "stranger-1"


def user(user_id: str) -> dict:
    return {
        "PK": f"USER#{user_id}",
        "id": user_id,
        "email": f"{user_id}@example.com",
        "firstName": "First",
        "lastName": "Last",
        "password": "$2b$hash",
    }


@pytest.fixture
def repos():
    tags = MagicMock(spec=TagRepository)
    photos = MagicMock(spec=PhotoRepository)
    events = MagicMock(spec=EventRepository)
    users = MagicMock(spec=UserRepository)

    photos.get_photo_by_id = AsyncMock(return_value={"id": "p1", "eventId": "e1"})
    users.get_user_by_id = AsyncMock(side_effect=lambda uid: None if uid == "ghost" else user(uid))
    events.find_event_user = AsyncMock(
        side_effect=lambda eid, uid: {"userId": uid} if uid == ATTENDEE else None
    )
    tags.is_user_tagged = AsyncMock(return_value=False)
    tags.batch_create_tags = AsyncMock(side_effect=lambda items: items)
    return tags, photos, events, users


@pytest.fixture
def photo_service():
    service = MagicMock(spec=PhotoService)
    service.refresh_photo_urls = AsyncMock(side_effect=lambda p: {**p, "url": f"https://signed/{p['id']}"})
    return service


@pytest.fixture
def service(repos, photo_service):
    tags, photos, events, users = repos
    return TagService(tags, photos, events, users, photo_service)


class TestTagUsers:
    async def test_attendee_tagged_stranger_skipped(self, service, repos):
        tags, _, _, _ = repos

        created = await service.tag_users_in_photo("e1", "p1", TagRequest(user_ids=[ATTENDEE, STRANGER]), USER_ID)

        assert len(created) == 1
        assert created[0]["userId"] == ATTENDEE
        assert created[0]["taggedBy"] == USER_ID
        assert "PK" not in created[0]
        (items,) = tags.batch_create_tags.await_args.args
        assert items[0]["PK"] == f"TAG#{ATTENDEE}"
        assert items[0]["SK"] == "PHOTO#p1"

    async def test_unknown_and_already_tagged_skipped(self, service, repos):
        tags, _, _, _ = repos
        tags.is_user_tagged = AsyncMock(return_value=True)

        created = await service.tag_users_in_photo("e1", "p1", TagRequest(user_ids=["ghost", ATTENDEE]), USER_ID)

        assert created == []
        tags.batch_create_tags.assert_not_called()

    async def test_duplicate_ids_tagged_once(self, service, repos):
        created = await service.tag_users_in_photo("e1", "p1", TagRequest(user_ids=[ATTENDEE, ATTENDEE]), USER_ID)
        assert len(created) == 1

    async def test_photo_of_other_event(self, service, repos):
        _, photos, _, _ = repos
        photos.get_photo_by_id = AsyncMock(return_value={"id": "p1", "eventId": "e2"})
        with pytest.raises(AppError) as exc:
            await service.tag_users_in_photo("e1", "p1", TagRequest(user_ids=[ATTENDEE]), USER_ID)
        assert exc.value.status_code == 400

    async def test_photo_missing(self, service, repos):
        _, photos, _, _ = repos
        photos.get_photo_by_id = AsyncMock(return_value=None)
        with pytest.raises(AppError) as exc:
            await service.tag_users_in_photo("e1", "p1", TagRequest(user_ids=[ATTENDEE]), USER_ID)
        assert exc.value.status_code == 404

    def test_empty_request_rejected(self):
        with pytest.raises(ValueError):
            TagRequest(user_ids=[])


class TestPhotoTags:
    async def test_attaches_user_details(self, service, repos):
        tags, _, _, _ = repos
        tags.get_photo_tags = AsyncMock(return_value=[
            {"PK": f"TAG#{ATTENDEE}", "userId": ATTENDEE, "photoId": "p1"},
            {"PK": "TAG#ghost", "userId": "ghost", "photoId": "p1"},
        ])

        result = await service.get_photo_tags("e1", "p1")

        assert result[0]["user"]["email"] == f"{ATTENDEE}@example.com"
        assert "password" not in result[0]["user"]
        assert result[1]["user"] is None


class TestRemoveTag:
    async def test_not_tagged(self, service, repos):
        tags, _, _, _ = repos
        tags.find_tag = AsyncMock(return_value=None)
        tags.delete_tag = AsyncMock()
        with pytest.raises(AppError) as exc:
            await service.remove_tag("e1", "p1", ATTENDEE)
        assert exc.value.status_code == 404
        assert exc.value.message == "User is not tagged in this photo"
        tags.delete_tag.assert_not_called()

    async def test_removes(self, service, repos):
        tags, _, _, _ = repos
        tags.find_tag = AsyncMock(return_value={"userId": ATTENDEE})
        tags.delete_tag = AsyncMock(return_value=True)
        assert await service.remove_tag("e1", "p1", ATTENDEE) is True
        tags.delete_tag.assert_awaited_once_with(ATTENDEE, "p1")

    async def test_photo_of_another_event(self, service, repos):
        tags, photos, _, _ = repos
        photos.get_photo_by_id = AsyncMock(return_value={"id": "pOther", "eventId": "event-of-other-org"})
        tags.find_tag = AsyncMock(return_value={"userId": ATTENDEE})
        tags.delete_tag = AsyncMock()

        with pytest.raises(AppError) as exc:
            await service.remove_tag("e1", "pOther", ATTENDEE)

        assert exc.value.status_code == 400
        assert exc.value.message == "Photo does not belong to the specified event"
        tags.delete_tag.assert_not_called()

    async def test_missing_photo(self, service, repos):
        tags, photos, _, _ = repos
        photos.get_photo_by_id = AsyncMock(return_value=None)
        tags.delete_tag = AsyncMock()
        with pytest.raises(AppError) as exc:
            await service.remove_tag("e1", "p1", ATTENDEE)
        assert exc.value.status_code == 404
        tags.delete_tag.assert_not_called()


class TestTaggedPhotos:
    async def test_skips_deleted_photos(self, service, repos):
        tags, photos, _, _ = repos
        tags.get_user_tags = AsyncMock(return_value=[
            {"photoId": "p1", "taggedBy": OTHER_ID, "taggedAt": "2026-05-01T00:00:00Z"},
            {"photoId": "gone", "taggedBy": OTHER_ID, "taggedAt": "2026-05-02T00:00:00Z"},
        ])
        photos.get_photo_by_id = AsyncMock(
            side_effect=lambda pid: {"PK": "PHOTO#p1", "id": "p1", "eventId": "e1"} if pid == "p1" else None
        )

        result = await service.get_user_tagged_photos(ATTENDEE)

        assert len(result) == 1
        assert result[0]["url"] == "https://signed/p1"
        assert result[0]["tag"] == {"taggedBy": OTHER_ID, "taggedAt": "2026-05-01T00:00:00Z"}
        assert "PK" not in result[0]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

TAGS = f"/organizations/{ORG}/events/e1/photos/p1/tags"


class TestTagEndpoints:
    def test_tag_message_counts_created(self, client, as_admin, auth_headers):
        as_admin.events.get_org_event = AsyncMock(return_value={"id": "e1"})
        as_admin.tags.tag_users_in_photo = AsyncMock(return_value=[{"userId": ATTENDEE}])

        resp = client.post(TAGS, json={"userIds": [ATTENDEE, STRANGER]}, headers=auth_headers)

        assert resp.status_code == 201
        assert resp.json()["message"] == "Tagged 1 users in photo"
        assert resp.json()["data"]["count"] == 1

    def test_tag_requires_admin(self, client, as_member, auth_headers):
        resp = client.post(TAGS, json={"userIds": [ATTENDEE]}, headers=auth_headers)
        assert resp.status_code == 403

    def test_tag_empty_list(self, client, as_admin, auth_headers):
        resp = client.post(TAGS, json={"userIds": []}, headers=auth_headers)
        assert resp.status_code == 400

    def test_list(self, client, as_member, auth_headers):
        as_member.events.get_org_event = AsyncMock(return_value={"id": "e1"})
        as_member.tags.get_photo_tags = AsyncMock(return_value=[{"userId": ATTENDEE, "user": None}])
        resp = client.get(TAGS, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["count"] == 1

    def test_untag(self, client, as_admin, auth_headers):
        as_admin.events.get_org_event = AsyncMock(return_value={"id": "e1"})
        as_admin.tags.remove_tag = AsyncMock(return_value=True)
        resp = client.delete(f"{TAGS}/{ATTENDEE}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "User untagged from photo successfully"
        as_admin.tags.remove_tag.assert_awaited_once_with("e1", "p1", ATTENDEE)

    def test_tagged_photos_of_someone_else(self, client, container, auth_headers):
        container.tags.get_user_tagged_photos = AsyncMock()
        resp = client.get(f"/users/{OTHER_ID}/tagged-photos", headers=auth_headers)
        assert resp.status_code == 403
        container.tags.get_user_tagged_photos.assert_not_called()

    def test_own_tagged_photos(self, client, container, auth_headers):
        container.tags.get_user_tagged_photos = AsyncMock(return_value=[{"id": "p1"}])
        resp = client.get(f"/users/{USER_ID}/tagged-photos", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"photos": [{"id": "p1"}], "count": 1}
