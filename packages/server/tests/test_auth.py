"""
Tests for authentication.

Covers:
- bcrypt password hashing
- token creation and decoding
- the bearer-token dependency (missing, malformed, expired tokens)
- registration and login through the HTTP surface with a real UserService
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest

from photocomp.core.auth import create_token, decode_token, hash_password, verify_password
from photocomp.repositories.events import EventRepository
from photocomp.repositories.organizations import OrgRepository
from photocomp.repositories.users import UserRepository
from photocomp.services.users import UserService


# ---------------------------------------------------------------------------
# Unit Tests: Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("Password123")
        assert hashed != "Password123"
        assert verify_password("Password123", hashed)

    def test_wrong_password_fails(self):
        hashed = hash_password("correct-password")
        assert not verify_password("wrong-password", hashed)

    def test_malformed_hash_is_rejected(self):
        assert not verify_password("anything", "not-a-bcrypt-hash")


# ---------------------------------------------------------------------------
# Unit Tests: Tokens
# ---------------------------------------------------------------------------

class TestTokens:
    def test_round_trip(self, settings):
        token = create_token("u1", "a@example.com", "USER", settings=settings)
        payload = decode_token(token, settings=settings)
        assert payload["id"] == "u1"
        assert payload["email"] == "a@example.com"
        assert payload["role"] == "USER"
        assert payload["exp"] - payload["iat"] == settings.jwt_expire_minutes * 60

    def test_expired_token_rejected(self, settings):
        token = create_token("u1", "a@example.com", "USER", settings=settings, expires_delta=timedelta(seconds=-1))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token, settings=settings)

    def test_wrong_secret_rejected(self, settings):
        token = create_token("u1", "a@example.com", "USER", settings=settings)
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, "another-secret", algorithms=["HS256"])


# ---------------------------------------------------------------------------
# Bearer dependency
# ---------------------------------------------------------------------------

class TestBearerDependency:
    def test_missing_header(self, client):
        resp = client.get("/events/mine")
        assert resp.status_code == 401
        assert resp.json() == {"status": "error", "message": "Authentication required"}

    def test_not_bearer(self, client):
        resp = client.get("/events/mine", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Authentication required"

    def test_empty_token(self, client):
        resp = client.get("/events/mine", headers={"Authorization": "Bearer  "})
        assert resp.status_code == 401

    def test_garbage_token(self, client):
        resp = client.get("/events/mine", headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid authentication token"

    def test_expired_token(self, client, settings):
        token = create_token("u1", "a@example.com", "USER", settings=settings, expires_delta=timedelta(minutes=-5))
        resp = client.get("/events/mine", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_valid_token(self, client, container, auth_headers):
        container.events.get_all_user_events = AsyncMock(return_value=[])
        resp = client.get("/events/mine", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"events": [], "count": 0}


# ---------------------------------------------------------------------------
# Registration / login with the real service
# ---------------------------------------------------------------------------

@pytest.fixture
def user_repo():
    repo = MagicMock(spec=UserRepository)
    repo.get_user_by_email = AsyncMock(return_value=None)
    repo.create_user = AsyncMock(side_effect=lambda item: item)
    return repo


@pytest.fixture
def real_users(container, settings, user_repo):
    container.users = UserService(
        user_repo, MagicMock(spec=EventRepository), MagicMock(spec=OrgRepository), settings
    )
    return container.users


class TestRegisterEndpoint:
    PAYLOAD = {
        "email": "test@example.com",
        "password": "Password123",
        "firstName": "Test",
        "lastName": "User",
    }

    def test_register_returns_token_and_public_user(self, client, real_users, settings):
        resp = client.post("/api/auth/register", json=self.PAYLOAD)
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "success"

        user = body["data"]["user"]
        assert user["email"] == "test@example.com"
        assert user["firstName"] == "Test"
        assert user["role"] == "USER"
        assert "password" not in user

        payload = decode_token(body["data"]["token"], settings=settings)
        assert payload["email"] == "test@example.com"
        assert payload["role"] == "USER"
        assert payload["id"] == user["id"]
        assert {"iat", "exp"} <= set(payload)

    def test_register_duplicate_email(self, client, real_users, user_repo):
        user_repo.get_user_by_email = AsyncMock(return_value={"id": "existing"})
        resp = client.post("/api/auth/register", json=self.PAYLOAD)
        assert resp.status_code == 409
        assert resp.json() == {"status": "error", "message": "Email already in use"}
        user_repo.create_user.assert_not_called()

    @pytest.mark.parametrize(
        "override",
        [
            {"email": "not-an-email"},
            {"password": "short"},
            {"firstName": ""},
        ],
    )
    def test_register_validation(self, client, real_users, override):
        resp = client.post("/api/auth/register", json={**self.PAYLOAD, **override})
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("Validation failed")

    def test_register_missing_field(self, client, real_users):
        payload = {k: v for k, v in self.PAYLOAD.items() if k != "lastName"}
        resp = client.post("/api/auth/register", json=payload)
        assert resp.status_code == 400


class TestLoginEndpoint:
    def test_login_success(self, client, real_users, user_repo):
        user_repo.get_user_by_email = AsyncMock(return_value={
            "id": "u1",
            "email": "test@example.com",
            "password": hash_password("Password123"),
            "firstName": "Test",
            "lastName": "User",
            "role": "USER",
        })
        resp = client.post("/api/auth/login", json={"email": "test@example.com", "password": "Password123"})
        assert resp.status_code == 200
        assert "password" not in resp.json()["data"]["user"]
        assert resp.json()["data"]["token"]

    def test_login_unknown_email(self, client, real_users):
        resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "Password123"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid email or password"


class TestChangePasswordEndpoint:
    def test_requires_auth(self, client):
        resp = client.patch("/api/auth/password", json={"currentPassword": "a", "newPassword": "Password456"})
        assert resp.status_code == 401

    def test_new_password_must_differ(self, client, auth_headers):
        resp = client.patch(
            "/api/auth/password",
            json={"currentPassword": "Password123", "newPassword": "Password123"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert "different" in resp.json()["message"]

    def test_change_password(self, client, container, auth_headers):
        container.users.change_password = AsyncMock(return_value=True)
        resp = client.patch(
            "/api/auth/password",
            json={"currentPassword": "Password123", "newPassword": "Password456"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        container.users.change_password.assert_awaited_once_with("user-1", "Password123", "Password456")


class TestDeleteUserEndpoint:
    def test_cannot_delete_someone_else(self, client, container, auth_headers):
        container.users.delete_user = AsyncMock()
        resp = client.delete("/api/auth/users/someone-else", headers=auth_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "Not authorized to delete this user"
        container.users.delete_user.assert_not_called()

    def test_delete_self(self, client, container, auth_headers):
        container.users.delete_user = AsyncMock(return_value=True)
        resp = client.delete("/api/auth/users/user-1", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "User deleted successfully"

    def test_global_admin_may_delete_others(self, client, container, settings):
        token = create_token("admin-1", "admin@example.com", "ADMIN", settings=settings)
        container.users.delete_user = AsyncMock(return_value=True)
        resp = client.delete("/api/auth/users/user-9", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200

    def test_partial_delete_reports_failure(self, client, container, auth_headers):
        container.users.delete_user = AsyncMock(return_value=False)
        resp = client.delete("/api/auth/users/user-1", headers=auth_headers)
        assert resp.status_code == 500
        assert resp.json()["message"] == "Failed to delete user"
