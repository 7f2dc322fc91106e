"""
User endpoint tests for TaskNest API
"""
from httpx import AsyncClient

from conftest import TEST_PASSWORD, login


class TestUserProfile:

    async def test_get_current_user_profile(self, client: AsyncClient, authenticated_user):
        response = await client.get("/api/v1/users/me", headers=authenticated_user["headers"])

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["email"] == authenticated_user["user_data"]["email"]
        assert data["role"] == "USER"
        assert data["is_active"] is True
        assert "id" in data
        assert "created_at" in data
        assert "hashed_password" not in data

    async def test_get_profile_without_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")
        assert response.status_code == 401

    async def test_get_profile_with_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestUserLookup:

    async def test_regular_user_cannot_look_up_users(self, client: AsyncClient, authenticated_user):
        me = (await client.get("/api/v1/users/me", headers=authenticated_user["headers"])).json()

        response = await client.get(f"/api/v1/users/{me['id']}", headers=authenticated_user["headers"])
        assert response.status_code == 403

    async def test_moderator_can_look_up_users(self, client: AsyncClient, authenticated_user, moderator_headers):
        me = (await client.get("/api/v1/users/me", headers=authenticated_user["headers"])).json()

        response = await client.get(f"/api/v1/users/{me['id']}", headers=moderator_headers)
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    async def test_lookup_unknown_user(self, client: AsyncClient, admin_headers):
        response = await client.get("/api/v1/users/9999", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found with ID: 9999"


class TestPrivilegedUserCreation:

    def _payload(self, username: str, role: str = "MODERATOR") -> dict:
        return {
            "username": username,
            "email": f"{username}@example.com",
            "password": TEST_PASSWORD,
            "password_confirm": TEST_PASSWORD,
            "role": role
        }

    async def test_admin_creates_moderator(self, client: AsyncClient, admin_headers):
        response = await client.post("/api/v1/users/admin", json=self._payload("mallory"), headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["role"] == "MODERATOR"

        headers = await login(client, "mallory")
        me = await client.get("/api/v1/users/me", headers=headers)
        assert me.json()["role"] == "MODERATOR"

    async def test_moderator_cannot_create_privileged_user(self, client: AsyncClient, moderator_headers):
        response = await client.post("/api/v1/users/admin", json=self._payload("eve", "ADMIN"),
                                     headers=moderator_headers)
        assert response.status_code == 403

    async def test_regular_user_cannot_create_privileged_user(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/v1/users/admin", json=self._payload("eve"), headers=auth_headers)
        assert response.status_code == 403


class TestHealthCheck:

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == "connected"
        assert "trace_id" in data

    async def test_service_information(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["tasks"] == "/api/v1/tasks"
