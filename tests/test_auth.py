import pytest
from httpx import AsyncClient

from app.core.config import Settings
from app.core.exceptions import AuthenticationError
from app.core.security import (
    create_session_token,
    decode_session_token,
    get_password_hash,
    verify_password,
)
from tests.conftest import login, register


@pytest.mark.auth
@pytest.mark.integration
class TestAuthentication:
    """Test authentication endpoints and functionality."""

    async def test_register_user_success(self, client: AsyncClient) -> None:
        response = await register(client, "newuser@example.com", name="New User")

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["userId"]
        assert "password" not in data

    async def test_register_user_duplicate_email(self, client: AsyncClient) -> None:
        await register(client, "dup@example.com")

        response = await register(client, "DUP@example.com", name="Someone Else")

        assert response.status_code == 409
        assert response.json()["message"] == "User already exists with this email"

    async def test_register_short_password(self, client: AsyncClient) -> None:
        response = await register(client, "short@example.com", password="12345")

        assert response.status_code == 400
        assert "Password must be at least 6 characters" in response.json()["message"]

    async def test_login_success_sets_cookie(self, client: AsyncClient, settings: Settings) -> None:
        await register(client, "login@example.com", name="Login User", is_doctor=True)

        response = await login(client, "login@example.com")

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "login@example.com"
        assert data["user"]["isDoctor"] is True
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
        assert "HttpOnly" in set_cookie
        assert "samesite=strict" in set_cookie.lower()
        assert "Max-Age=604800" in set_cookie

    async def test_login_invalid_credentials(self, client: AsyncClient) -> None:
        await register(client, "known@example.com")

        wrong_password = await login(client, "known@example.com", password="wrong-password")
        unknown_email = await login(client, "nobody@example.com")

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json()["message"] == unknown_email.json()["message"] == "Invalid email or password"

    async def test_get_current_user(self, client: AsyncClient) -> None:
        await register(client, "me@example.com", name="Me Myself")
        await login(client, "me@example.com")

        response = await client.get("/api/auth/user")

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Me Myself"
        assert user["isDoctor"] is False

    async def test_get_current_user_without_session(self, client: AsyncClient) -> None:
        response = await client.get("/api/auth/user")

        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_get_current_user_with_forged_token(self, client: AsyncClient, settings: Settings) -> None:
        client.cookies.set(settings.SESSION_COOKIE_NAME, "not-a-real-token")

        response = await client.get("/api/auth/user")

        assert response.status_code == 401

    async def test_logout_clears_cookie(self, client: AsyncClient, settings: Settings) -> None:
        await register(client, "bye@example.com")
        await login(client, "bye@example.com")

        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert f'{settings.SESSION_COOKIE_NAME}=""' in response.headers["set-cookie"]
        assert (await client.get("/api/auth/user")).status_code == 401


@pytest.mark.auth
@pytest.mark.unit
class TestPasswordSecurity:
    """Test password hashing and verification."""

    def test_password_hashing(self) -> None:
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed) is True
        assert verify_password("wrongpassword", hashed) is False

    def test_hashes_are_salted(self) -> None:
        password = "testpassword123"

        assert get_password_hash(password) != get_password_hash(password)


@pytest.mark.auth
@pytest.mark.unit
class TestSessionTokens:

    def test_round_trip_claims(self, settings: Settings) -> None:
        token = create_session_token(settings, "user-1", {"email": "a@example.com", "isDoctor": True})

        claims = decode_session_token(settings, token)

        assert claims["sub"] == "user-1"
        assert claims["isDoctor"] is True
        assert claims["exp"] - claims["iat"] == settings.SESSION_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    def test_expired_token(self, settings: Settings) -> None:
        settings.SESSION_TOKEN_EXPIRE_DAYS = -1
        token = create_session_token(settings, "user-1", {})

        with pytest.raises(AuthenticationError) as exc_info:
            decode_session_token(settings, token)
        assert exc_info.value.error_code == "TOKEN_EXPIRED"

    def test_token_signed_with_other_key(self, settings: Settings) -> None:
        other = settings.model_copy(update={"SECRET_KEY": "another-key"})
        token = create_session_token(other, "user-1", {})

        with pytest.raises(AuthenticationError) as exc_info:
            decode_session_token(settings, token)
        assert exc_info.value.error_code == "INVALID_TOKEN"

    def test_missing_token(self, settings: Settings) -> None:
        with pytest.raises(AuthenticationError):
            decode_session_token(settings, None)
