"""
Security tests for TaskNest API
"""
import pytest
from httpx import AsyncClient

from app.auth.security import Hasher, create_access_token, create_refresh_token, decode_token


class TestSecurityHeaders:

    async def test_security_headers_present(self, client: AsyncClient):
        response = await client.get("/")

        headers = response.headers
        assert headers["x-content-type-options"] == "nosniff"
        assert headers["x-frame-options"] == "DENY"
        assert "referrer-policy" in headers
        # HSTS is only sent in production
        assert "strict-transport-security" not in headers

    async def test_trace_id_in_response(self, client: AsyncClient):
        response = await client.get("/")
        assert "x-trace-id" in response.headers

    async def test_error_body_carries_trace_id(self, client: AsyncClient):
        response = await client.get("/api/v1/users/me")

        assert response.status_code == 401
        data = response.json()
        assert data["status_code"] == 401
        assert data["path"] == "/api/v1/users/me"
        assert data["trace_id"] == response.headers["x-trace-id"]


class TestPasswordComplexity:

    @pytest.mark.parametrize("password,should_fail", [
        ("short", True),  # Too short
        ("nouppercase123!", True),  # No uppercase
        ("NOLOWERCASE123!", True),  # No lowercase
        ("NoNumbers!", True),  # No numbers
        ("NoSpecialChar123", True),  # No special characters
        ("ValidPassword123!", False),
    ])
    async def test_password_complexity(self, client: AsyncClient, password, should_fail):
        test_data = {
            "username": "passwordtest",
            "email": "passwordtest@example.com",
            "password": password,
            "password_confirm": password
        }

        response = await client.post("/api/v1/auth/register", json=test_data)

        if should_fail:
            assert response.status_code == 422
        else:
            assert response.status_code == 201


class TestTokens:

    def test_password_hash_round_trip(self):
        hashed = Hasher.get_password_hash("ValidPassword123!")

        assert hashed != "ValidPassword123!"
        assert Hasher.verify_password("ValidPassword123!", hashed)
        assert not Hasher.verify_password("WrongPassword123!", hashed)

    def test_refresh_token_hash_is_deterministic(self):
        assert Hasher.hash_refresh_token("abc") == Hasher.hash_refresh_token("abc")
        assert len(Hasher.hash_refresh_token("abc")) == 64

    def test_tokens_carry_type_and_unique_jti(self):
        claims = {"sub": "alice", "user_id": 1, "role": "USER"}
        first, second = decode_token(create_access_token(claims)), decode_token(create_access_token(claims))
        refresh = decode_token(create_refresh_token(claims))

        assert first["type"] == "access"
        assert refresh["type"] == "refresh"
        assert first["jti"] != second["jti"]
        assert first["sub"] == "alice"
