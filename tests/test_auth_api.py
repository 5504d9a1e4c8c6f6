from __future__ import annotations

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from jose import jwt

from conftest import SignUp, bearer
from jira_clone.core.config import Settings
from jira_clone.core.security import RevokedTokens
from jira_clone.realtime.broker import ChangeBroker, ChangeEvent


async def test_signup_creates_user_and_profile(
    client: AsyncClient,
    change_broker: ChangeBroker,
) -> None:
    events: list[ChangeEvent] = []
    await change_broker.subscribe("profiles", events.append)

    response = await client.post(
        "/api/auth/signup",
        json={"email": "Grace@Example.com", "password": "StrongPass123!", "full_name": "  Grace Hopper "},
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["user"]["email"] == "grace@example.com"
    assert body["profile"]["id"] == body["user"]["id"]
    assert body["profile"]["full_name"] == "Grace Hopper"
    assert body["tokens"]["token_type"] == "bearer"
    assert body["tokens"]["expires_in"] > 0
    assert [event.record["full_name"] for event in events] == ["Grace Hopper"]


async def test_signup_requires_full_name(client: AsyncClient) -> None:
    response = await client.post(
        "/api/auth/signup",
        json={"email": "nameless@example.com", "password": "StrongPass123!", "full_name": "   "},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"
    assert response.json()["message"] == "Full name is required for sign up."


async def test_signup_rejects_duplicate_email(client: AsyncClient, sign_up: SignUp) -> None:
    await sign_up(email="ada@example.com")

    response = await client.post(
        "/api/auth/signup",
        json={"email": "ADA@example.com", "password": "StrongPass123!", "full_name": "Other Ada"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "email_taken"


async def test_login_with_form_credentials(client: AsyncClient, sign_up: SignUp) -> None:
    await sign_up()

    response = await client.post(
        "/api/auth/login",
        data={"username": "ada@example.com", "password": "StrongPass123!"},
    )

    assert response.status_code == 200, response.text
    assert response.json()["user"]["email"] == "ada@example.com"
    assert response.json()["tokens"]["access_token"]


async def test_login_with_wrong_password_is_unauthorized(
    client: AsyncClient,
    sign_up: SignUp,
) -> None:
    await sign_up()

    response = await client.post(
        "/api/auth/login",
        data={"username": "ada@example.com", "password": "not-the-password"},
    )

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json()["message"] == "Invalid email or password."


async def test_session_returns_identity_and_profile(client: AsyncClient, sign_up: SignUp) -> None:
    auth = await sign_up()

    response = await client.get("/api/auth/session", headers=bearer(auth))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["user"]["id"] == auth["user"]["id"]
    assert body["profile"]["full_name"] == "Ada Lovelace"
    assert datetime.fromisoformat(body["expires_at"].replace("Z", "+00:00")) > datetime.now(timezone.utc)


async def test_session_without_token_uses_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/auth/session")

    assert response.status_code == 401
    body = response.json()
    assert body["code"] == "unauthorized"
    assert "request_id" in body["details"]


async def test_refresh_rotates_and_revokes_old_token(client: AsyncClient, sign_up: SignUp) -> None:
    auth = await sign_up()
    refresh_token = auth["tokens"]["refresh_token"]

    rotated = await client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    replayed = await client.post("/api/auth/refresh", json={"refresh_token": refresh_token})

    assert rotated.status_code == 200, rotated.text
    assert rotated.json()["tokens"]["refresh_token"] != refresh_token
    assert replayed.status_code == 401
    assert replayed.json()["message"] == "Refresh token has been revoked."


async def test_access_token_cannot_be_used_to_refresh(client: AsyncClient, sign_up: SignUp) -> None:
    auth = await sign_up()

    response = await client.post(
        "/api/auth/refresh",
        json={"refresh_token": auth["tokens"]["access_token"]},
    )

    assert response.status_code == 401


async def test_logout_revokes_access_token(client: AsyncClient, sign_up: SignUp) -> None:
    auth = await sign_up()

    logout = await client.post("/api/auth/logout", headers=bearer(auth))
    after = await client.get("/api/auth/session", headers=bearer(auth))

    assert logout.status_code == 204
    assert after.status_code == 401
    assert after.json()["message"] == "Access token has been revoked."


async def test_expired_access_token_is_rejected(
    client: AsyncClient,
    sign_up: SignUp,
    settings: Settings,
) -> None:
    auth = await sign_up()
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    expired = jwt.encode(
        {
            "sub": auth["user"]["id"],
            "iat": int(issued.timestamp()),
            "exp": int((issued + timedelta(minutes=5)).timestamp()),
            "type": "access",
            "jti": "expired-token",
        },
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )

    response = await client.get("/api/auth/session", headers={"Authorization": f"Bearer {expired}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Access token has expired."


def test_revoked_tokens_forget_expired_entries() -> None:
    registry = RevokedTokens()
    now = datetime.now(timezone.utc)

    registry.revoke("expired", now - timedelta(seconds=1))
    registry.revoke("active", now + timedelta(minutes=5))

    assert "expired" not in registry
    assert "active" in registry
    assert len(registry) == 1
