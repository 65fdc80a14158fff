"""Tests for registration, login/logout, profile and password change."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from jose import jwt
from sqlalchemy import func, select, update

from app.core.security import pwd_context
from app.models.audit import AuditAction, AuditLog
from app.models.staff import StaffRole
from app.models.user import User, UserSession, user_roles
from app.services.auth import register_user

API = "/api/v1"


# ── Registration ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_register_creates_user(async_client: AsyncClient, make_staff, roles):
    """POST /auth/register should create a login for an existing staff member."""
    nurse = await make_staff(StaffRole.NURSE, "Carla", "Espinosa")
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": nurse.id,
        "username": "carla.e",
        "password": "Scrubs123",
        "defaultRoleId": roles["Nursing"].id,
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["userId"] > 0


@pytest.mark.asyncio
async def test_register_missing_field_is_400(async_client: AsyncClient, make_staff):
    """A body without a password is rejected with 400, not 422."""
    nurse = await make_staff(StaffRole.NURSE)
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": nurse.id,
        "username": "nopass",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "validation_error"


@pytest.mark.asyncio
async def test_register_unknown_staff_is_404(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": 9999,
        "username": "ghost",
        "password": "Boo12345",
    })
    assert resp.status_code == 404
    assert "staff" in resp.json()["detail"].lower()


@pytest.mark.asyncio
async def test_register_duplicate_username_is_409(
    async_client: AsyncClient, make_staff, doctor_user: dict
):
    other = await make_staff(StaffRole.NURSE, "Elliot", "Reid")
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": other.id,
        "username": doctor_user["username"],
        "password": "Another123",
    })
    assert resp.status_code == 409
    assert "Username already exists" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_second_account_for_staff_is_409(
    async_client: AsyncClient, doctor_user: dict
):
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": doctor_user["staff_id"],
        "username": "house.alt",
        "password": "Another123",
    })
    assert resp.status_code == 409
    assert "already has a user account" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_register_unknown_role_is_400(async_client: AsyncClient, make_staff):
    nurse = await make_staff(StaffRole.NURSE)
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": nurse.id,
        "username": "norole",
        "password": "Secret123",
        "defaultRoleId": 424242,
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_register_is_atomic(db_session, make_staff, roles, session_factory):
    """A failure after the user insert leaves neither a user nor a role row behind."""
    staff = await make_staff(StaffRole.PHARMACIST, "Kevin", "Casey")
    staff_id = staff.id
    role_id = roles["Pharmacy"].id

    with patch(
        "app.services.auth._assign_role",
        new=AsyncMock(side_effect=RuntimeError("role insert failed")),
    ):
        with pytest.raises(RuntimeError):
            await register_user(
                db_session,
                staff_id=staff_id,
                username="kcasey",
                password="Pills1234",
                default_role_id=role_id,
            )

    async with session_factory() as s:
        users = await s.execute(select(func.count()).select_from(User))
        links = await s.execute(select(func.count()).select_from(user_roles))
        assert users.scalar_one() == 0
        assert links.scalar_one() == 0


@pytest.mark.asyncio
async def test_register_hashing_failure_is_500(async_client: AsyncClient, make_staff, session_factory):
    nurse = await make_staff(StaffRole.NURSE, "Carla", "Espinosa")
    with patch.object(pwd_context, "hash", side_effect=ValueError("bcrypt backend unavailable")):
        resp = await async_client.post(f"{API}/auth/register", json={
            "staffId": nurse.id,
            "username": "carla.e",
            "password": "Scrubs123",
        })
    assert resp.status_code == 500
    assert resp.json()["error"] == "internal_error"
    assert resp.json()["detail"] == "Internal server error"

    async with session_factory() as s:
        users = await s.execute(select(func.count()).select_from(User))
        assert users.scalar_one() == 0


@pytest.mark.asyncio
async def test_register_writes_audit_entry(
    async_client: AsyncClient, make_staff, session_factory
):
    nurse = await make_staff(StaffRole.NURSE)
    resp = await async_client.post(f"{API}/auth/register", json={
        "staffId": nurse.id, "username": "audited", "password": "Secret123",
    })
    user_id = resp.json()["userId"]

    async with session_factory() as s:
        result = await s.execute(
            select(AuditLog).where(
                AuditLog.action_type == AuditAction.CREATE, AuditLog.record_id == user_id
            )
        )
        entry = result.scalar_one()
        assert entry.table_name == "users"
        assert entry.new_value == {"username": "audited"}


# ── Login ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_login_returns_token_and_profile(login, doctor_user: dict):
    resp = await login(doctor_user["username"], doctor_user["password"])
    assert resp.status_code == 200
    data = resp.json()
    assert data["token"]
    assert data["tokenType"] == "bearer"
    assert data["expiresAt"]
    user = data["user"]
    assert user["userId"] == doctor_user["user_id"]
    assert user["staffId"] == doctor_user["staff_id"]
    assert user["fullName"] == "Gregory House"
    assert user["staffRole"] == "Doctor"
    assert user["roles"] == ["Physician"]


@pytest.mark.asyncio
async def test_login_token_names_live_session(login, doctor_user: dict, session_factory):
    resp = await login(doctor_user["username"], doctor_user["password"], {"User-Agent": "pytest-agent"})
    claims = jwt.get_unverified_claims(resp.json()["token"])
    assert claims["sub"] == str(doctor_user["user_id"])
    assert claims["type"] == "access"

    async with session_factory() as s:
        session = await s.get(UserSession, claims["sid"])
        assert session is not None
        assert session.user_id == doctor_user["user_id"]
        assert session.user_agent == "pytest-agent"


@pytest.mark.asyncio
async def test_login_unknown_user_is_401(login, session_factory):
    resp = await login("nobody", "whatever1")
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthenticated"

    async with session_factory() as s:
        result = await s.execute(
            select(AuditLog).where(AuditLog.action_type == AuditAction.FAILED_LOGIN)
        )
        entry = result.scalar_one()
        assert entry.user_id is None
        assert entry.old_value["username"] == "nobody"


@pytest.mark.asyncio
async def test_login_wrong_password_is_401(login, doctor_user: dict):
    resp = await login(doctor_user["username"], "wrong-password")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid username or password"


@pytest.mark.asyncio
async def test_login_inactive_account_is_403(login, doctor_user: dict, session_factory):
    async with session_factory() as s:
        await s.execute(update(User).where(User.id == doctor_user["user_id"]).values(is_active=False))
        await s.commit()

    resp = await login(doctor_user["username"], doctor_user["password"])
    assert resp.status_code == 403
    assert "deactivated" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_login_sets_last_login(login, doctor_user: dict, session_factory):
    await login(doctor_user["username"], doctor_user["password"])
    async with session_factory() as s:
        user = await s.get(User, doctor_user["user_id"])
        assert user.last_login is not None


# ── Auth guard ──────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_missing_token_is_401(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/auth/me")
    assert resp.status_code == 401
    assert resp.headers.get("www-authenticate") == "Bearer"


@pytest.mark.asyncio
async def test_garbage_token_is_403(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_token_signed_with_other_key_is_403(async_client: AsyncClient, doctor_user: dict):
    forged = jwt.encode(
        {"sub": str(doctor_user["user_id"]), "sid": "x", "type": "access"},
        "some-other-secret",
        algorithm="HS256",
    )
    resp = await async_client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 403


# ── Profile ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_me_returns_profile_roles_and_department(
    async_client: AsyncClient, auth_headers: dict, doctor_user: dict
):
    resp = await async_client.get(f"{API}/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    user = resp.json()["user"]
    assert user["userId"] == doctor_user["user_id"]
    assert user["username"] == "drhouse"
    assert user["firstName"] == "Gregory"
    assert user["staffRole"] == "Doctor"
    assert user["isActive"] is True
    assert [r["name"] for r in user["roles"]] == ["Physician"]
    assert user["department"]["name"] == "Internal Medicine"


# ── Logout ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_logout_revokes_token(async_client: AsyncClient, auth_headers: dict):
    """The same unexpired token must stop working once its session is gone."""
    resp = await async_client.post(f"{API}/auth/logout", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logout successful"

    again = await async_client.get(f"{API}/auth/me", headers=auth_headers)
    assert again.status_code == 401


@pytest.mark.asyncio
async def test_logout_leaves_other_sessions(async_client: AsyncClient, login, doctor_user: dict):
    first = (await login(doctor_user["username"], doctor_user["password"])).json()["token"]
    second = (await login(doctor_user["username"], doctor_user["password"])).json()["token"]

    await async_client.post(f"{API}/auth/logout", headers={"Authorization": f"Bearer {first}"})

    resp = await async_client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {second}"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_expired_session_is_401(async_client: AsyncClient, auth_headers: dict, session_factory):
    """The token is still signed and unexpired; only the session row has lapsed."""
    async with session_factory() as s:
        await s.execute(
            update(UserSession).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await s.commit()

    resp = await async_client.get(f"{API}/auth/me", headers=auth_headers)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_request_refreshes_last_activity(async_client: AsyncClient, auth_headers: dict, session_factory):
    stale = datetime(2000, 1, 1, tzinfo=timezone.utc)
    async with session_factory() as s:
        await s.execute(update(UserSession).values(last_activity=stale))
        await s.commit()

    resp = await async_client.get(f"{API}/auth/me", headers=auth_headers)
    assert resp.status_code == 200

    async with session_factory() as s:
        session = (await s.execute(select(UserSession))).scalar_one()
        assert session.last_activity.year > 2000


# ── Change password ─────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_change_password_wrong_current_is_401(async_client: AsyncClient, auth_headers: dict):
    resp = await async_client.post(
        f"{API}/auth/change-password",
        json={"currentPassword": "not-it", "newPassword": "Brand-new-1"},
        headers=auth_headers,
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_change_password_then_login(
    async_client: AsyncClient, auth_headers: dict, login, doctor_user: dict
):
    resp = await async_client.post(
        f"{API}/auth/change-password",
        json={"currentPassword": doctor_user["password"], "newPassword": "Brand-new-1"},
        headers=auth_headers,
    )
    assert resp.status_code == 200

    assert (await login(doctor_user["username"], doctor_user["password"])).status_code == 401
    assert (await login(doctor_user["username"], "Brand-new-1")).status_code == 200
