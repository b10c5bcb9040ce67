"""
Integration tests for the authentication flow.

Register -> Verify (OTP) -> Login -> Me -> Logout.
"""

import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select, func

from splitapp.app.core.jwt import issue_user_token
from splitapp.app.models.user import User
from splitapp.app.services.email_service import EmailService


async def load_user(session_factory, email):
    async with session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


async def register(client, username="alice", email="alice@test.com", password="password123"):
    return await client.post("/api/auth/register", json={
        "username": username,
        "email": email,
        "phone": "5550100",
        "password": password,
    })


@pytest.mark.asyncio
async def test_register_issues_otp(client, session_factory, mocker):
    send = mocker.patch.object(EmailService, "send_otp_email")

    response = await register(client, email="Alice@Test.com")

    assert response.status_code == 201
    assert response.json()["message"] == "OTP sent to email"
    user = await load_user(session_factory, "alice@test.com")
    assert user is not None
    assert user.is_verified is False
    assert len(user.otp_code) == 6 and user.otp_code.isdigit()
    send.assert_awaited_once_with("alice@test.com", user.otp_code, "alice")


@pytest.mark.asyncio
async def test_reregistering_unverified_email_overwrites(client, session_factory):
    await register(client, username="alice")
    response = await register(client, username="alice2", password="another-secret")

    assert response.status_code == 201
    async with session_factory() as session:
        count = await session.scalar(select(func.count()).select_from(User).where(User.email == "alice@test.com"))
    assert count == 1
    user = await load_user(session_factory, "alice@test.com")
    assert user.username == "alice2"


@pytest.mark.asyncio
async def test_register_rejects_taken_username(client):
    await register(client, username="alice", email="alice@test.com")
    response = await register(client, username="alice", email="other@test.com")
    assert response.status_code == 400
    assert response.json()["message"] == "Username already taken"


@pytest.mark.asyncio
async def test_otp_email_failure_does_not_fail_registration(client, session_factory, mocker):
    mocker.patch.object(EmailService, "send_otp_email", side_effect=RuntimeError("smtp down"))

    response = await register(client)

    assert response.status_code == 201
    assert await load_user(session_factory, "alice@test.com") is not None


@pytest.mark.asyncio
async def test_verify_login_me_logout(client, session_factory):
    await register(client)
    user = await load_user(session_factory, "alice@test.com")

    bad = await client.post("/api/auth/verify", json={"email": "alice@test.com", "otp": "000000" if user.otp_code != "000000" else "111111"})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid or expired OTP"

    # login is refused until verified
    response = await client.post("/api/auth/login", json={"email": "alice@test.com", "password": "password123"})
    assert response.status_code == 400
    assert response.json()["message"] == "Please verify your email first"

    response = await client.post("/api/auth/verify", json={"email": "alice@test.com", "otp": user.otp_code})
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["username"] == "alice"
    assert data["token"]

    user = await load_user(session_factory, "alice@test.com")
    assert user.is_verified is True
    assert user.otp_code is None and user.otp_expires_at is None

    response = await client.post("/api/auth/login", json={"email": "alice@test.com", "password": "wrong-pass"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid credentials"

    response = await client.post("/api/auth/login", json={"email": "ALICE@test.com", "password": "password123"})
    assert response.status_code == 200
    token = response.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == "alice@test.com"
    assert me.json()["is_verified"] is True

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 401
    assert me.json()["message"] == "Token has been revoked"


@pytest.mark.asyncio
async def test_verified_email_cannot_register_again(client, session_factory):
    await register(client)
    user = await load_user(session_factory, "alice@test.com")
    await client.post("/api/auth/verify", json={"email": "alice@test.com", "otp": user.otp_code})

    response = await register(client, username="someone")
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


@pytest.mark.asyncio
async def test_expired_otp_is_rejected(client, session_factory):
    await register(client)
    async with session_factory() as session:
        user = (await session.execute(select(User).where(User.email == "alice@test.com"))).scalar_one()
        user.otp_expires_at = datetime.utcnow() - timedelta(minutes=1)
        otp = user.otp_code
        await session.commit()

    response = await client.post("/api/auth/verify", json={"email": "alice@test.com", "otp": otp})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_user_login_and_verify(client):
    response = await client.post("/api/auth/login", json={"email": "nobody@test.com", "password": "password123"})
    assert response.status_code == 404

    response = await client.post("/api/auth/verify", json={"email": "nobody@test.com", "otp": "123456"})
    assert response.status_code == 400
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_me_requires_valid_token(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_access_log_carries_authenticated_user(client, make_user, caplog):
    alice = await make_user("alice")
    headers = {"Authorization": f"Bearer {issue_user_token(alice)}", "X-Correlation-ID": "req-42"}

    with caplog.at_level(logging.INFO, logger="splitapp.requests"):
        response = await client.get("/api/auth/me", headers=headers)
        await client.get("/ping")

    assert response.headers["X-Correlation-ID"] == "req-42"
    records = [r for r in caplog.records if r.name == "splitapp.requests"]
    assert [(r.path, r.user_id) for r in records] == [("/api/auth/me", alice.id), ("/ping", None)]
    assert records[0].correlation_id == "req-42"


@pytest.mark.asyncio
async def test_health_reports_token_store(client, redis_mock, mocker):
    response = await client.get("/health")
    assert response.json()["token_store"] == "ok"

    mocker.patch.object(redis_mock, "ping", side_effect=ConnectionError("redis down"))
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["token_store"] == "unavailable"
