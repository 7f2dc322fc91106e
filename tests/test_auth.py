"""
Authentication endpoint tests for TaskNest API
"""
from httpx import AsyncClient

from conftest import TEST_PASSWORD, register


class TestUserRegistration:

    async def test_successful_registration(self, client: AsyncClient, test_user_data):
        response = await client.post("/api/v1/auth/register", json=test_user_data)

        assert response.status_code == 201
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"

    async def test_duplicate_username_registration(self, client: AsyncClient, test_user_data):
        assert (await client.post("/api/v1/auth/register", json=test_user_data)).status_code == 201

        duplicate = {**test_user_data, "email": "other@example.com"}
        response = await client.post("/api/v1/auth/register", json=duplicate)
        assert response.status_code == 409
        assert "username already exists" in response.json()["detail"]

    async def test_duplicate_email_registration(self, client: AsyncClient, test_user_data):
        assert (await client.post("/api/v1/auth/register", json=test_user_data)).status_code == 201

        duplicate = {**test_user_data, "username": "alice2"}
        response = await client.post("/api/v1/auth/register", json=duplicate)
        assert response.status_code == 409
        assert "email already exists" in response.json()["detail"]

    async def test_weak_password_registration(self, client: AsyncClient, test_user_data):
        data = {**test_user_data, "password": "weak", "password_confirm": "weak"}

        response = await client.post("/api/v1/auth/register", json=data)
        assert response.status_code == 422
        assert response.json()["errors"]

    async def test_password_mismatch_registration(self, client: AsyncClient, test_user_data):
        data = {**test_user_data, "password_confirm": "DifferentPassword123!"}

        response = await client.post("/api/v1/auth/register", json=data)
        assert response.status_code == 422

    async def test_invalid_username_registration(self, client: AsyncClient, test_user_data):
        data = {**test_user_data, "username": "no spaces allowed"}

        response = await client.post("/api/v1/auth/register", json=data)
        assert response.status_code == 422


class TestUserLogin:

    async def test_oauth2_login_success(self, client: AsyncClient, authenticated_user):
        response = await client.post(
            "/api/v1/auth/login",
            data={"username": "alice", "password": TEST_PASSWORD},
            headers={"Content-Type": "application/x-www-form-urlencoded"}
        )

        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data

    async def test_json_login_success(self, client: AsyncClient, authenticated_user):
        response = await client.post("/api/v1/auth/login-json", json={"username": "alice", "password": TEST_PASSWORD})

        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    async def test_invalid_credentials_login(self, client: AsyncClient, authenticated_user):
        response = await client.post(
            "/api/v1/auth/login-json", json={"username": "alice", "password": "WrongPassword123!"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    async def test_unknown_user_login(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/login-json", json={"username": "ghost", "password": TEST_PASSWORD})
        assert response.status_code == 401


class TestTokenRefresh:

    async def test_successful_token_refresh(self, client: AsyncClient, authenticated_user):
        response = await client.post(
            "/api/v1/auth/refresh-token", json={"refresh_token": authenticated_user["refresh_token"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"] != authenticated_user["access_token"]
        assert data["refresh_token"] != authenticated_user["refresh_token"]

    async def test_refresh_token_cannot_be_reused(self, client: AsyncClient, authenticated_user):
        body = {"refresh_token": authenticated_user["refresh_token"]}
        assert (await client.post("/api/v1/auth/refresh-token", json=body)).status_code == 200

        response = await client.post("/api/v1/auth/refresh-token", json=body)
        assert response.status_code == 401

    async def test_access_token_rejected_as_refresh_token(self, client: AsyncClient, authenticated_user):
        response = await client.post(
            "/api/v1/auth/refresh-token", json={"refresh_token": authenticated_user["access_token"]}
        )
        assert response.status_code == 401

    async def test_invalid_refresh_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/refresh-token", json={"refresh_token": "invalid_token"})
        assert response.status_code == 401


class TestLogout:

    async def test_successful_logout(self, client: AsyncClient, auth_headers):
        response = await client.post("/api/v1/auth/logout", headers=auth_headers)
        assert response.status_code == 204

    async def test_token_blacklisted_after_logout(self, client: AsyncClient, auth_headers):
        assert (await client.post("/api/v1/auth/logout", headers=auth_headers)).status_code == 204

        response = await client.get("/api/v1/users/me", headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has been revoked"

    async def test_refresh_tokens_revoked_after_logout(self, client: AsyncClient):
        tokens = await register(client, "carol")
        assert (await client.post("/api/v1/auth/logout", headers=tokens["headers"])).status_code == 204

        response = await client.post("/api/v1/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 401

    async def test_logout_without_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/logout")
        assert response.status_code == 401
