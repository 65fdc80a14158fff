"""
First-run seeding: default roles and the initial administrator login.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import hash_password
from app.db.session import transaction
from app.models.staff import Staff, StaffRole
from app.models.user import Role, User, user_roles

logger = logging.getLogger(__name__)

DEFAULT_ROLES: dict[str, str] = {
    "Administrator": "Full system access",
    "Physician": "Clinical records, diagnoses and prescriptions",
    "Nursing": "Patient care and visit notes",
    "Pharmacy": "Medication dispensing and prescriptions",
    "Laboratory": "Lab test requests and results",
    "Reception": "Patient registration and scheduling",
}


async def seed_roles(db: AsyncSession) -> dict[str, Role]:
    result = await db.execute(select(Role))
    roles = {role.name: role for role in result.scalars().all()}
    for name, description in DEFAULT_ROLES.items():
        if name not in roles:
            roles[name] = Role(name=name, description=description)
            db.add(roles[name])
    await db.flush()
    return roles


async def seed_defaults(db: AsyncSession) -> None:
    """Create missing roles and, if no such login exists yet, the first admin."""
    async with transaction(db):
        roles = await seed_roles(db)

        result = await db.execute(
            select(User).where(User.username == settings.FIRST_ADMIN_USERNAME)
        )
        if result.scalar_one_or_none() is not None:
            return

        staff = Staff(
            first_name="System",
            last_name="Administrator",
            role=StaffRole.ADMINISTRATOR,
            phone="000-000-0000",
            email=settings.FIRST_ADMIN_EMAIL,
            hire_date=date.today(),
        )
        db.add(staff)
        await db.flush()

        digest, salt = hash_password(settings.FIRST_ADMIN_PASSWORD)
        admin = User(
            staff_id=staff.id,
            username=settings.FIRST_ADMIN_USERNAME,
            password_hash=digest,
            salt=salt,
            is_active=True,
        )
        db.add(admin)
        await db.flush()
        await db.execute(
            insert(user_roles).values(user_id=admin.id, role_id=roles["Administrator"].id)
        )

    logger.info(
        "Default admin created: %s (password: <redacted>)",
        settings.FIRST_ADMIN_USERNAME,
    )
