"""
Shared test fixtures for the Hospital Management test suite.

Async all the way down: aiosqlite + AsyncSession, httpx AsyncClient over
ASGITransport. Tests authenticate for real (register + login) rather than
overriding the auth dependency.
"""

import os
import sys
from datetime import date
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["RATE_LIMIT_ENABLED"] = "false"
# Cheapest bcrypt cost passlib accepts; keeps the suite fast
os.environ["BCRYPT_ROUNDS"] = "4"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.db.base import Base
from app.main import app
from app.models.staff import Department, Staff, StaffRole
from app.services.auth import register_user
from app.services.bootstrap import seed_roles

API = "/api/v1"

test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Data helpers ────────────────────────────────────────────────────
@pytest.fixture
async def roles(db_session: AsyncSession):
    """Seed the default roles; returns them keyed by name."""
    seeded = await seed_roles(db_session)
    await db_session.commit()
    return seeded


@pytest.fixture
async def department(db_session: AsyncSession) -> Department:
    dept = Department(name="Internal Medicine", description="General adult care", location="Wing B")
    db_session.add(dept)
    await db_session.commit()
    return dept


@pytest.fixture
def make_staff(db_session: AsyncSession):
    """Factory: insert a staff member with the given role."""
    counter = {"n": 0}

    async def _make(
        role: StaffRole = StaffRole.DOCTOR,
        first_name: str = "Gregory",
        last_name: str = "House",
        department_id: int | None = None,
    ) -> Staff:
        counter["n"] += 1
        staff = Staff(
            first_name=first_name,
            last_name=last_name,
            role=role,
            department_id=department_id,
            phone="555-0100",
            email=f"{first_name}.{last_name}{counter['n']}@hospital.test".lower(),
            hire_date=date(2020, 1, 15),
        )
        db_session.add(staff)
        await db_session.commit()
        return staff

    return _make


@pytest.fixture
async def doctor_user(db_session: AsyncSession, make_staff, roles, department) -> dict:
    """A Doctor in a department with a registered login holding the Physician role."""
    staff = await make_staff(StaffRole.DOCTOR, department_id=department.id)
    user = await register_user(
        db_session,
        staff_id=staff.id,
        username="drhouse",
        password="Vicodin123",
        default_role_id=roles["Physician"].id,
    )
    return {
        "user_id": user.id,
        "staff_id": staff.id,
        "username": "drhouse",
        "password": "Vicodin123",
    }


@pytest.fixture
def login(async_client: AsyncClient):
    """Return a coroutine that posts credentials to the login route."""

    async def _login(username: str, password: str, headers: dict | None = None):
        return await async_client.post(
            f"{API}/auth/login",
            json={"username": username, "password": password},
            headers=headers,
        )

    return _login


@pytest.fixture
async def auth_headers(login, doctor_user: dict) -> dict[str, str]:
    resp = await login(doctor_user["username"], doctor_user["password"])
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def session_factory() -> async_sessionmaker:
    """Fresh sessions for asserting on rows written by a request."""
    return TestingSessionLocal
