"""Tests for refresh and logout."""

import pytest

from src.persona.api.dependencies import get_identity_repository, get_session_repository
from src.persona.repositories import MemoryIdentityRepository, MemorySessionRepository
from tests.helpers import access_claims, cleared_cookies, complete_login, storage_down

pytestmark = pytest.mark.integration


async def logged_in_tokens(client) -> tuple[str, str]:
    await complete_login(client)
    return client.cookies.get("access_token"), client.cookies.get("refresh_token")


class TestRefresh:
    async def test_refresh_from_cookie(self, client, settings):
        access_token, _ = await logged_in_tokens(client)

        response = await client.post("/token/refresh")

        assert response.status_code == 200
        body = response.json()
        assert body["expiresIn"] == settings.access_token_ttl_seconds
        new_claims = access_claims(body["accessToken"])
        assert new_claims["sessionId"] == access_claims(access_token)["sessionId"]
        assert body["accessToken"] != access_token
        assert client.cookies.get("access_token") == body["accessToken"]

    async def test_refresh_from_body(self, client):
        _, refresh_token = await logged_in_tokens(client)
        client.cookies.clear()

        response = await client.post("/token/refresh", json={"refreshToken": refresh_token})

        assert response.status_code == 200
        assert response.json()["accessToken"]

    async def test_refresh_token_is_not_rotated(self, client):
        _, refresh_token = await logged_in_tokens(client)
        client.cookies.clear()

        for _ in range(2):
            response = await client.post("/token/refresh", json={"refreshToken": refresh_token})
            assert response.status_code == 200

    async def test_no_token(self, client):
        response = await client.post("/token/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "No refresh token provided"

    async def test_unknown_token_clears_cookies(self, client):
        client.cookies.set("refresh_token", "not-a-real-token")

        response = await client.post("/token/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid refresh token"
        assert {"access_token", "refresh_token"} <= cleared_cookies(response)

    async def test_session_without_identity_clears_cookies(self, app, client):
        await logged_in_tokens(client)
        # The session row stays; the identity lookup comes back empty
        app.dependency_overrides[get_identity_repository] = lambda: MemoryIdentityRepository()

        response = await client.post("/token/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "Identity not found"
        assert {"access_token", "refresh_token"} <= cleared_cookies(response)

    async def test_storage_outage_keeps_cookies(self, app, client):
        await logged_in_tokens(client)
        session_repo = MemorySessionRepository()
        session_repo.get_by_token_hash = storage_down
        app.dependency_overrides[get_session_repository] = lambda: session_repo

        response = await client.post("/token/refresh")

        assert response.status_code == 500
        assert response.json()["request_id"]
        assert not cleared_cookies(response)


class TestLogout:
    async def test_logout_revokes_session(self, client):
        _, refresh_token = await logged_in_tokens(client)

        response = await client.post("/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert {"access_token", "refresh_token"} <= cleared_cookies(response)

        again = await client.post("/token/refresh", json={"refreshToken": refresh_token})
        assert again.status_code == 401
        assert again.json()["detail"] == "Session has been revoked"

    async def test_logout_without_token_succeeds(self, client):
        response = await client.post("/logout")

        assert response.status_code == 200
        assert {"access_token", "refresh_token"} <= cleared_cookies(response)

    async def test_logout_with_unknown_token_succeeds(self, client):
        response = await client.post("/logout", json={"refreshToken": "garbage"})

        assert response.status_code == 200
