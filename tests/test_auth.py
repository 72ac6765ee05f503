import pytest
from sqlalchemy import select

from identity_api.core.config import get_settings
from identity_api.models.password_reset import PasswordResetRequest
from identity_api.models.refresh_token import RefreshToken
from identity_api.models.user import User

pytestmark = pytest.mark.asyncio

RESET_MESSAGE = "If the email exists, a password reset link has been sent."


async def _register(client, username: str, password: str = "StrongPass1"):
    return await client.post("/api/v1/users/", json={
        "email": f"{username}@test.com",
        "username": username,
        "password": password,
    })


async def _login(client, username: str, password: str = "StrongPass1"):
    return await client.post("/api/v1/auth/login", json={"username": username, "password": password})


async def _latest_reset_token(db_session, email: str) -> str:
    """Read the pending reset token straight from storage, standing in for the email."""
    query = (
        select(PasswordResetRequest.token)
        .join(User, User.id == PasswordResetRequest.user_id)
        .where(User.email == email, PasswordResetRequest.used == False)
    )
    result = await db_session.execute(query)
    return result.scalar_one()


async def test_register_user(client):
    response = await _register(client, "testuser")
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "testuser@test.com"
    assert data["username"] == "testuser"
    assert data["is_active"] is True
    assert data["roles"] == []
    assert "id" in data
    assert "password_hash" not in data


async def test_register_duplicate_email(client):
    await _register(client, "user1")
    response = await client.post("/api/v1/users/", json={
        "email": "user1@test.com", "username": "user2", "password": "StrongPass1"
    })
    assert response.status_code == 409


async def test_register_short_password(client):
    response = await _register(client, "weakuser", password="short")
    assert response.status_code == 422  # Pydantic validation error


async def test_login_success(client):
    await _register(client, "loginuser")
    response = await _login(client, "loginuser")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"token", "refresh_token", "expires_in", "refresh_expires_in"}
    assert data["expires_in"] == 3600
    assert data["refresh_expires_in"] == 2592000
    assert len(data["refresh_token"]) == 64


async def test_login_with_email(client):
    await _register(client, "emaillogin")
    response = await _login(client, "emaillogin@test.com")
    assert response.status_code == 200


async def test_login_wrong_password(client):
    await _register(client, "wronguser")
    response = await _login(client, "wronguser", password="WrongPass1")
    assert response.status_code == 401


async def test_login_inactive_user(client, make_user):
    await make_user("sleeper", is_active=False)
    response = await _login(client, "sleeper")
    assert response.status_code == 401


async def test_get_me_authenticated(client):
    await _register(client, "meuser")
    token = (await _login(client, "meuser")).json()["token"]
    response = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "meuser@test.com"


async def test_get_me_unauthenticated(client):
    response = await client.get("/api/v1/users/me")
    assert response.status_code == 401


async def test_refresh_token_rotates(client, db_session):
    await _register(client, "refreshuser")
    old_refresh_token = (await _login(client, "refreshuser")).json()["refresh_token"]

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh_token})
    assert response.status_code == 200
    data = response.json()
    assert data["refresh_token"] != old_refresh_token
    assert data["refresh_expires_in"] == 2592000

    me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.json()["username"] == "refreshuser"

    result = await db_session.execute(select(RefreshToken).where(RefreshToken.token == old_refresh_token))
    assert result.scalar_one().revoked is True


async def test_refresh_token_reuse_rejected(client):
    await _register(client, "replayuser")
    old_refresh_token = (await _login(client, "replayuser")).json()["refresh_token"]
    await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh_token})

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh_token})
    assert response.status_code == 401


async def test_refresh_failures_are_uniform(client):
    await _register(client, "uniform")
    refresh_token = (await _login(client, "uniform")).json()["refresh_token"]
    await client.post("/api/v1/auth/logout", json={"refresh_token": refresh_token})

    revoked = await client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    unknown = await client.post("/api/v1/auth/refresh", json={"refresh_token": "0" * 64})
    assert revoked.status_code == unknown.status_code == 401
    assert revoked.json() == unknown.json()
    assert revoked.headers["www-authenticate"] == "Bearer"


async def test_refresh_missing_token(client):
    response = await client.post("/api/v1/auth/refresh", json={})
    assert response.status_code == 422


async def test_oversized_tokens_rejected_at_boundary(client):
    oversized = "a" * 65
    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": oversized})
    assert response.status_code == 422
    response = await client.post("/api/v1/auth/logout", json={"refresh_token": oversized})
    assert response.status_code == 422
    response = await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": oversized,
        "password": "newpass123"
    })
    assert response.status_code == 422


async def test_logout_revokes_refresh_token(client):
    await _register(client, "logoutuser")
    refresh_token = (await _login(client, "logoutuser")).json()["refresh_token"]

    response = await client.post("/api/v1/auth/logout", json={"refresh_token": refresh_token})
    assert response.status_code == 204

    again = await client.post("/api/v1/auth/logout", json={"refresh_token": refresh_token})
    assert again.status_code == 401


# ──────────────────────────────────────────────
# Password reset tests
# ──────────────────────────────────────────────

async def test_request_reset_existing_and_unknown_email_look_alike(client, db_session):
    await _register(client, "realuser")
    known = await client.post("/api/v1/auth/password-reset/request", json={"email": "realuser@test.com"})
    unknown = await client.post("/api/v1/auth/password-reset/request", json={"email": "nobody@test.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json() == {"message": RESET_MESSAGE}
    # only the side effect differs
    assert await _latest_reset_token(db_session, "realuser@test.com")


async def test_request_reset_exposes_token_in_dev(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "APP_ENV", "dev")
    await _register(client, "devuser")

    response = await client.post("/api/v1/auth/password-reset/request", json={"email": "devuser@test.com"})
    assert len(response.json()["reset_token"]) == 64

    unknown = await client.post("/api/v1/auth/password-reset/request", json={"email": "ghost@test.com"})
    assert "reset_token" not in unknown.json()


async def test_request_reset_invalid_email(client):
    response = await client.post("/api/v1/auth/password-reset/request", json={"email": "not-an-email"})
    assert response.status_code == 422


async def test_confirm_reset_valid_token(client, db_session):
    """Full flow: request reset -> confirm with new password -> login with new password."""
    await _register(client, "confirmuser")
    await client.post("/api/v1/auth/password-reset/request", json={"email": "confirmuser@test.com"})
    raw_token = await _latest_reset_token(db_session, "confirmuser@test.com")

    response = await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": raw_token,
        "password": "newpass123"
    })
    assert response.status_code == 200
    assert response.json()["message"] == "Password has been reset successfully."

    # Old password should no longer work
    assert (await _login(client, "confirmuser")).status_code == 401

    # New password should work
    login_resp = await _login(client, "confirmuser", password="newpass123")
    assert login_resp.status_code == 200
    assert "token" in login_resp.json()


async def test_confirm_reset_invalid_token(client):
    response = await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": "totally-invalid-token",
        "password": "newpass123"
    })
    assert response.status_code == 400


async def test_confirm_reset_used_token(client, db_session):
    """Using the same reset token twice should fail."""
    await _register(client, "useduser")
    await client.post("/api/v1/auth/password-reset/request", json={"email": "useduser@test.com"})
    raw_token = await _latest_reset_token(db_session, "useduser@test.com")

    resp1 = await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": raw_token,
        "password": "newpass123"
    })
    assert resp1.status_code == 200

    resp2 = await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": raw_token,
        "password": "anotherpass1"
    })
    assert resp2.status_code == 400


async def test_confirm_reset_short_password(client, db_session):
    await _register(client, "weakreset")
    await client.post("/api/v1/auth/password-reset/request", json={"email": "weakreset@test.com"})
    raw_token = await _latest_reset_token(db_session, "weakreset@test.com")

    response = await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": raw_token,
        "password": "short"
    })
    assert response.status_code == 422


async def test_refresh_tokens_revoked_after_reset(client, db_session):
    """After password reset, existing refresh tokens should be invalid."""
    await _register(client, "revokeuser")
    old_refresh_token = (await _login(client, "revokeuser")).json()["refresh_token"]

    await client.post("/api/v1/auth/password-reset/request", json={"email": "revokeuser@test.com"})
    raw_token = await _latest_reset_token(db_session, "revokeuser@test.com")
    await client.post("/api/v1/auth/password-reset/confirm", json={
        "token": raw_token,
        "password": "newpass123"
    })

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh_token})
    assert resp.status_code == 401
