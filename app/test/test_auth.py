import pytest
from httpx import AsyncClient

from app.auth.auth import create_access_token
from app.schemas.status_schema import UserRole
from app.test.factories import TEST_PASSWORD, UserFactory, persist

BASE_URL = "/api/auth"


class TestRegistration:
    async def test_register_defaults_to_rider(self, client: AsyncClient):
        response = await client.post(
            f"{BASE_URL}/register",
            json={"name": "Lisa Kim", "email": "Lisa@Example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "lisa@example.com"
        assert data["role"] == "rider"
        assert data["active"] is True
        assert "password" not in data

    async def test_duplicate_email(self, client: AsyncClient):
        payload = {"name": "Tom", "email": "tom@example.com", "password": "secret1"}
        await client.post(f"{BASE_URL}/register", json=payload)

        response = await client.post(f"{BASE_URL}/register", json=payload)

        assert response.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "Short", "email": "short@example.com", "password": "123"},
            {"name": "Bad", "email": "not-an-email", "password": "secret1"},
            {"name": "Role", "email": "role@example.com", "password": "secret1", "role": "boss"},
        ],
    )
    async def test_invalid_payload(self, client: AsyncClient, payload):
        response = await client.post(f"{BASE_URL}/register", json=payload)

        assert response.status_code == 422


class TestLogin:
    async def test_login_and_me(self, client: AsyncClient, session):
        user = await persist(
            session,
            UserFactory(email="ops@example.com", role=UserRole.OPERATIONS_MANAGER),
        )

        response = await client.post(
            f"{BASE_URL}/login",
            json={"email": "ops@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["tokenType"] == "bearer"
        assert data["user"]["id"] == str(user.id)

        me = await client.get(
            f"{BASE_URL}/me", headers={"Authorization": f"Bearer {data['token']}"}
        )
        assert me.status_code == 200
        assert me.json()["role"] == "operations_manager"

    async def test_wrong_password(self, client: AsyncClient, session):
        await persist(session, UserFactory(email="wrong@example.com"))

        response = await client.post(
            f"{BASE_URL}/login",
            json={"email": "wrong@example.com", "password": "nope"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_inactive_account_cannot_login(self, client: AsyncClient, session):
        await persist(session, UserFactory(email="off@example.com", active=False))

        response = await client.post(
            f"{BASE_URL}/login",
            json={"email": "off@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Your account is inactive. Contact an administrator"


class TestTokenResolution:
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get(f"{BASE_URL}/me")

        assert response.status_code == 401

    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get(
            f"{BASE_URL}/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_token_for_deactivated_user(
        self, client: AsyncClient, session, auth_headers
    ):
        user = await persist(session, UserFactory(active=False))

        response = await client.get(f"{BASE_URL}/me", headers=auth_headers(user))

        assert response.status_code == 401
        assert response.json()["detail"] == "User account is inactive"

    async def test_token_without_subject(self, client: AsyncClient):
        token = create_access_token({"role": "admin"})

        response = await client.get(
            f"{BASE_URL}/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
