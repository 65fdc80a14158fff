"""Tests for the forgot-password / reset-password flow."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from app.core.config import settings
from app.core.security import hash_token
from app.main import app
from app.models.user import User, UserSession
from app.services.notifications import get_reset_notifier

API = "/api/v1"
RESET_MESSAGE = "If your account exists, a password reset link will be sent to your email"


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_password_reset(self, *, username, email, token, expires_at) -> None:
        self.sent.append(
            {"username": username, "email": email, "token": token, "expires_at": expires_at}
        )


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_reset_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_reset_notifier, None)


async def _request_reset(client: AsyncClient, username: str):
    return await client.post(f"{API}/auth/forgot-password", json={"username": username})


@pytest.mark.asyncio
async def test_forgot_password_known_user(async_client: AsyncClient, doctor_user: dict, notifier):
    resp = await _request_reset(async_client, doctor_user["username"])
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": RESET_MESSAGE}
    assert len(notifier.sent) == 1
    assert notifier.sent[0]["username"] == doctor_user["username"]


@pytest.mark.asyncio
async def test_forgot_password_unknown_user_looks_the_same(async_client: AsyncClient, notifier):
    """Unknown usernames get the identical 200 body and no notification."""
    resp = await _request_reset(async_client, "no-such-user")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": RESET_MESSAGE}
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_reset_token_stored_hashed(
    async_client: AsyncClient, doctor_user: dict, notifier, session_factory
):
    await _request_reset(async_client, doctor_user["username"])
    raw = notifier.sent[0]["token"]

    async with session_factory() as s:
        user = await s.get(User, doctor_user["user_id"])
        assert user.password_reset_token == hash_token(raw)
        assert user.password_reset_token != raw
        assert user.password_reset_expires is not None


@pytest.mark.asyncio
async def test_debug_response_carries_token_when_enabled(
    async_client: AsyncClient, doctor_user: dict, notifier
):
    with patch.object(settings, "PASSWORD_RESET_DEBUG_RESPONSE", True):
        resp = await _request_reset(async_client, doctor_user["username"])

    debug = resp.json()["debug"]
    assert debug["resetToken"] == notifier.sent[0]["token"]
    assert debug["email"].endswith("@hospital.test")


@pytest.mark.asyncio
async def test_reset_password_revokes_every_session(
    async_client: AsyncClient, login, doctor_user: dict, notifier, session_factory
):
    tokens = [
        (await login(doctor_user["username"], doctor_user["password"])).json()["token"]
        for _ in range(2)
    ]
    await _request_reset(async_client, doctor_user["username"])

    resp = await async_client.post(f"{API}/auth/reset-password", json={
        "token": notifier.sent[0]["token"],
        "newPassword": "Fresh-start-9",
    })
    assert resp.status_code == 200

    for token in tokens:
        me = await async_client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 401

    async with session_factory() as s:
        result = await s.execute(
            select(UserSession).where(UserSession.user_id == doctor_user["user_id"])
        )
        assert result.scalars().all() == []

    assert (await login(doctor_user["username"], doctor_user["password"])).status_code == 401
    assert (await login(doctor_user["username"], "Fresh-start-9")).status_code == 200


@pytest.mark.asyncio
async def test_reset_token_is_single_use(async_client: AsyncClient, doctor_user: dict, notifier):
    await _request_reset(async_client, doctor_user["username"])
    token = notifier.sent[0]["token"]

    first = await async_client.post(
        f"{API}/auth/reset-password", json={"token": token, "newPassword": "Once-only-1"}
    )
    second = await async_client.post(
        f"{API}/auth/reset-password", json={"token": token, "newPassword": "Twice-over-2"}
    )
    assert first.status_code == 200
    assert second.status_code == 400


@pytest.mark.asyncio
async def test_reset_with_unknown_token_is_400(async_client: AsyncClient):
    resp = await async_client.post(
        f"{API}/auth/reset-password", json={"token": "made-up", "newPassword": "Whatever-1"}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired password reset token"


@pytest.mark.asyncio
async def test_reset_with_expired_token_is_400(
    async_client: AsyncClient, doctor_user: dict, notifier, session_factory
):
    await _request_reset(async_client, doctor_user["username"])
    async with session_factory() as s:
        await s.execute(
            update(User)
            .where(User.id == doctor_user["user_id"])
            .values(password_reset_expires=datetime.now(timezone.utc) - timedelta(seconds=1))
        )
        await s.commit()

    resp = await async_client.post(f"{API}/auth/reset-password", json={
        "token": notifier.sent[0]["token"],
        "newPassword": "Too-late-1",
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_reset_clears_lockout(async_client: AsyncClient, login, doctor_user: dict, notifier):
    for _ in range(5):
        await login(doctor_user["username"], "wrong")
    assert (await login(doctor_user["username"], doctor_user["password"])).status_code == 403

    await _request_reset(async_client, doctor_user["username"])
    await async_client.post(f"{API}/auth/reset-password", json={
        "token": notifier.sent[0]["token"],
        "newPassword": "Unlocked-1",
    })

    assert (await login(doctor_user["username"], "Unlocked-1")).status_code == 200
