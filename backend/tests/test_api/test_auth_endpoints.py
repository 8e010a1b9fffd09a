"""Tests for auth API endpoints: register, login, refresh, me."""

import uuid

import pytest
from httpx import AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import create_user
from stayfinder.auth.jwt import create_refresh_token, create_token_pair
from stayfinder.config import settings
from stayfinder.models.user import User


class TestRegister:
    """POST /api/v1/auth/register."""

    async def test_register_success(self, client: AsyncClient):
        unique = uuid.uuid4().hex[:8]
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": f"register-{unique}@test.com",
                "password": "securepass123",
                "name": "New User",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == f"register-{unique}@test.com"
        assert data["user"]["role"] == "user"
        assert "access_token" in data["tokens"]
        assert "refresh_token" in data["tokens"]

    @pytest.mark.parametrize("requested_role", ["admin", "seller"])
    async def test_register_always_yields_user_role(self, client: AsyncClient, requested_role: str):
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": f"{requested_role}-{uuid.uuid4().hex[:8]}@test.com",
                "password": "securepass123",
                "name": "Sneaky",
                "role": requested_role,
            },
        )
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "user"

    async def test_register_duplicate_email(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, email=f"dup-{uuid.uuid4().hex[:8]}@test.com")

        response = await client.post(
            "/api/v1/auth/register",
            json={"email": user.email, "password": "newpass123", "name": "New"},
        )
        assert response.status_code == 409
        assert "already registered" in response.json()["detail"].lower()

    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "short@test.com", "password": "abc", "name": "Short"},
        )
        assert response.status_code == 422

    async def test_register_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/register", json={"email": "bad@test.com"})
        assert response.status_code == 422


class TestLogin:
    """POST /api/v1/auth/login."""

    async def test_login_success(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, password="correct_pass")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": "correct_pass"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == user.email
        assert "access_token" in data["tokens"]

    async def test_login_token_carries_role(self, client: AsyncClient, db_session: AsyncSession):
        admin = await create_user(db_session, role="admin", password="adminpass")

        response = await client.post("/api/v1/auth/login", json={"email": admin.email, "password": "adminpass"})
        token = response.json()["tokens"]["access_token"]
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        assert payload["role"] == "admin"
        assert payload["sub"] == str(admin.id)

    async def test_login_wrong_password(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, password="right_pass")

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": "wrong_pass"},
        )
        assert response.status_code == 401

    async def test_login_nonexistent_user(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@test.com", "password": "whatever"},
        )
        assert response.status_code == 401

    async def test_login_inactive_user(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, password="somepass", is_active=False)

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": user.email, "password": "somepass"},
        )
        assert response.status_code == 403


class TestRefresh:
    """POST /api/v1/auth/refresh."""

    async def test_refresh_success(self, client: AsyncClient, test_user: User):
        tokens = create_token_pair(str(test_user.id))
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data

    async def test_refresh_with_access_token_fails(self, client: AsyncClient, test_user: User):
        tokens = create_token_pair(str(test_user.id))
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
        assert response.status_code == 401

    async def test_refresh_with_invalid_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage.token.value"})
        assert response.status_code == 401

    async def test_refresh_with_nonexistent_user(self, client: AsyncClient):
        token = create_refresh_token({"sub": str(uuid.uuid4())})
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 401

    async def test_refresh_for_inactive_user(self, client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, is_active=False)
        token = create_refresh_token({"sub": str(user.id)})
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 401


class TestMe:
    """GET /api/v1/auth/me."""

    async def test_me_success(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == test_user.email
        assert data["role"] == "user"

    async def test_me_no_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code in (401, 403)


class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
