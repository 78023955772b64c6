"""
Tests for UserService: registration, login, password change and deletion.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from photocomp.core.auth import hash_password
from photocomp.core.errors import AppError
from photocomp.repositories.events import EventRepository
from photocomp.repositories.organizations import OrgRepository
from photocomp.repositories.users import UserRepository
from photocomp.services.users import UserService


@pytest.fixture
def repos():
    users = MagicMock(spec=UserRepository)
    events = MagicMock(spec=EventRepository)
    orgs = MagicMock(spec=OrgRepository)
    return users, events, orgs


@pytest.fixture
def service(repos, settings):
    users, events, orgs = repos
    return UserService(users, events, orgs, settings)


def stored_user(password: str = "Password123") -> dict:
    return {
        "PK": "USER#u1",
        "SK": "ENTITY",
        "id": "u1",
        "email": "test@example.com",
        "password": hash_password(password),
        "firstName": "Test",
        "lastName": "User",
        "role": "USER",
    }


class TestRegister:
    async def test_conflict_performs_only_the_lookup(self, service, repos):
        users, _, _ = repos
        users.get_user_by_email = AsyncMock(return_value=stored_user())
        users.create_user = AsyncMock()

        with pytest.raises(AppError) as exc:
            await service.register("test@example.com", "Password123", "Test", "User")

        assert exc.value.status_code == 409
        assert exc.value.message == "Email already in use"
        users.get_user_by_email.assert_awaited_once_with("test@example.com")
        users.create_user.assert_not_called()

    async def test_creates_user_with_default_role(self, service, repos):
        users, _, _ = repos
        users.get_user_by_email = AsyncMock(return_value=None)
        users.create_user = AsyncMock(side_effect=lambda item: item)

        user, token = await service.register("Test@Example.com", "Password123", "Test", "User")

        item = users.create_user.await_args.args[0]
        assert item["role"] == "USER"
        assert item["email"] == "test@example.com"
        assert item["password"] != "Password123"
        assert "password" not in user and "PK" not in user
        assert token

    async def test_unexpected_error_is_wrapped(self, service, repos):
        users, _, _ = repos
        users.get_user_by_email = AsyncMock(side_effect=RuntimeError("table offline"))

        with pytest.raises(AppError) as exc:
            await service.register("test@example.com", "Password123", "Test", "User")
        assert exc.value.status_code == 500
        assert exc.value.message == "Failed to register user: table offline"


class TestLogin:
    async def test_wrong_password_and_unknown_email_share_message(self, service, repos):
        users, _, _ = repos

        users.get_user_by_email = AsyncMock(return_value=stored_user())
        with pytest.raises(AppError) as wrong_password:
            await service.login("test@example.com", "WrongPassword1")

        users.get_user_by_email = AsyncMock(return_value=None)
        with pytest.raises(AppError) as unknown_email:
            await service.login("nobody@example.com", "Password123")

        assert wrong_password.value.status_code == unknown_email.value.status_code == 401
        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"

    async def test_success_strips_password(self, service, repos):
        users, _, _ = repos
        users.get_user_by_email = AsyncMock(return_value=stored_user())
        user, token = await service.login("test@example.com", "Password123")
        assert user["id"] == "u1"
        assert "password" not in user
        assert token


class TestChangePassword:
    async def test_user_not_found(self, service, repos):
        users, _, _ = repos
        users.get_user_by_id = AsyncMock(return_value=None)
        with pytest.raises(AppError) as exc:
            await service.change_password("u1", "Password123", "Password456")
        assert exc.value.status_code == 404

    async def test_wrong_current_password_never_updates(self, service, repos):
        users, _, _ = repos
        users.get_user_by_id = AsyncMock(return_value=stored_user())
        users.update_password = AsyncMock()

        with pytest.raises(AppError) as exc:
            await service.change_password("u1", "NotTheOne1", "Password456")

        assert exc.value.status_code == 401
        assert exc.value.message == "Current password is incorrect"
        users.update_password.assert_not_called()

    async def test_rehashes_new_password(self, service, repos):
        users, _, _ = repos
        users.get_user_by_id = AsyncMock(return_value=stored_user())
        users.update_password = AsyncMock(return_value=True)

        assert await service.change_password("u1", "Password123", "Password456")
        user_id, new_hash = users.update_password.await_args.args
        assert user_id == "u1"
        assert new_hash.startswith("$2")


class TestDeleteUser:
    async def test_not_found(self, service, repos):
        users, _, _ = repos
        users.get_user_by_id = AsyncMock(return_value=None)
        with pytest.raises(AppError) as exc:
            await service.delete_user("u1")
        assert exc.value.status_code == 404

    async def test_deletes_attendance_then_memberships_then_user(self, service, repos):
        users, events, orgs = repos
        order = MagicMock()
        users.get_user_by_id = AsyncMock(return_value=stored_user())
        events.delete_user_attendance = AsyncMock(return_value=True)
        orgs.delete_user_memberships = AsyncMock(return_value=True)
        users.delete_user = AsyncMock(return_value=True)
        order.attach_mock(events.delete_user_attendance, "attendance")
        order.attach_mock(orgs.delete_user_memberships, "memberships")
        order.attach_mock(users.delete_user, "user")

        assert await service.delete_user("u1") is True
        assert order.mock_calls == [call.attendance("u1"), call.memberships("u1"), call.user("u1")]

    async def test_partial_failure_returns_false(self, service, repos):
        users, events, orgs = repos
        users.get_user_by_id = AsyncMock(return_value=stored_user())
        events.delete_user_attendance = AsyncMock(return_value=True)
        orgs.delete_user_memberships = AsyncMock(return_value=False)
        users.delete_user = AsyncMock(return_value=True)

        assert await service.delete_user("u1") is False


class TestAttachUserDetails:
    async def test_attaches_card_and_strips_keys(self, service, repos):
        users, _, _ = repos
        users.get_user_by_id = AsyncMock(side_effect=[stored_user(), None])
        rows = [
            {"PK": "ORG#X", "SK": "USER#u1", "userId": "u1", "role": "ADMIN"},
            {"PK": "ORG#X", "SK": "USER#gone", "userId": "gone", "role": "MEMBER"},
        ]

        result = await service.attach_user_details(rows)

        assert result[0]["user"] == {
            "id": "u1",
            "email": "test@example.com",
            "firstName": "Test",
            "lastName": "User",
        }
        assert "PK" not in result[0]
        assert result[1]["user"] is None
