"""
Authentication flows: registration, login, logout, profile, password change
and the two-phase password reset.

Login walks a fixed sequence and stops at the first failing step::

    lookup user -> active? -> locked? -> verify password -> open session

Every step that rejects the attempt writes an audit entry and commits it
before raising, so failed attempts are on record even though the request
itself fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (AccountLockedError, AuthError, ConflictError,
                                 ForbiddenError, NotFoundError, ValidationError)
from app.core.security import (create_access_token, generate_token,
                               hash_password, hash_token, verify_password)
from app.db.session import transaction
from app.models.audit import AuditAction
from app.models.staff import Department, Staff
from app.models.user import Role, User, UserSession, user_roles
from app.schemas.token import TokenClaims
from app.services import audit, lockout, sessions
from app.services.notifications import ResetNotifier

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Invalid username or password"


@dataclass
class LoginResult:
    token: str
    claims: TokenClaims
    session: UserSession


@dataclass
class Profile:
    user: User
    staff: Staff
    roles: list[Role]
    department: Department | None


@dataclass
class ResetTicket:
    token: str
    email: str | None


async def _user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def _assign_role(db: AsyncSession, user_id: int, role_id: int) -> None:
    await db.execute(insert(user_roles).values(user_id=user_id, role_id=role_id))


# ── Registration ────────────────────────────────────────────────────
async def register_user(
    db: AsyncSession,
    *,
    staff_id: int,
    username: str,
    password: str,
    default_role_id: int | None = None,
) -> User:
    """Create the login for an existing staff member.

    The user row, its optional role assignment and the audit entry are
    written in one transaction.
    """
    async with transaction(db):
        staff = await db.get(Staff, staff_id)
        if staff is None:
            raise NotFoundError("Staff ID does not exist. User must be a staff member.")

        if await _user_by_username(db, username) is not None:
            raise ConflictError("Username already exists. Please choose another.")

        existing = await db.execute(select(User.id).where(User.staff_id == staff_id))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("This staff member already has a user account.")

        role: Role | None = None
        if default_role_id is not None:
            role = await db.get(Role, default_role_id)
            if role is None:
                raise ValidationError("Role does not exist")

        digest, salt = hash_password(password)
        user = User(
            staff_id=staff_id,
            username=username,
            password_hash=digest,
            salt=salt,
            is_active=True,
        )
        db.add(user)
        await db.flush()

        if role is not None:
            await _assign_role(db, user.id, role.id)

        await audit.record(
            db,
            action=AuditAction.CREATE,
            table_name="users",
            user_id=user.id,
            record_id=user.id,
            new_value={"username": username},
        )

    logger.info("Registered user %s for staff %d", username, staff_id)
    return user


# ── Login / logout ──────────────────────────────────────────────────
async def login(
    db: AsyncSession,
    *,
    username: str,
    password: str,
    ip_address: str | None,
    user_agent: str | None,
) -> LoginResult:
    async with transaction(db):
        user = await _user_by_username(db, username)

        if user is None:
            await audit.record(
                db,
                action=AuditAction.FAILED_LOGIN,
                table_name="users",
                old_value={"username": username, "ipAddress": ip_address},
                ip_address=ip_address,
            )
            await db.commit()
            raise AuthError(_BAD_CREDENTIALS)

        if not user.is_active:
            await _audit_failed_login(db, user, ip_address, "inactive")
            await db.commit()
            raise ForbiddenError("Account is deactivated. Please contact administrator.")

        now = lockout.utcnow()
        if lockout.is_locked(user, now):
            await _audit_failed_login(db, user, ip_address, "locked")
            await db.commit()
            raise AccountLockedError(lockout.ensure_utc(user.account_locked_until))

        if not verify_password(password, user.password_hash):
            locked_now = await lockout.register_failure(db, user, now)
            await _audit_failed_login(db, user, ip_address, "bad_password")
            await db.commit()
            if locked_now:
                raise AccountLockedError(lockout.ensure_utc(user.account_locked_until))
            raise AuthError(_BAD_CREDENTIALS)

        lockout.clear(user)
        user.last_login = now

        session = await sessions.create_session(db, user.id, ip_address, user_agent)
        claims = TokenClaims(
            user_id=user.id,
            staff_id=user.staff_id,
            username=user.username,
            full_name=user.staff.full_name,
            staff_role=user.staff.role.value,
            roles=[role.name for role in user.roles],
            session_id=session.session_id,
        )
        token = create_access_token(claims.to_jwt(), session.expires_at)

        await audit.record(
            db,
            action=AuditAction.LOGIN,
            table_name="sessions",
            user_id=user.id,
            record_id=user.id,
            new_value={"sessionId": session.session_id, "ipAddress": ip_address},
            ip_address=ip_address,
        )

    logger.info("User %s logged in from %s", user.username, ip_address)
    return LoginResult(token=token, claims=claims, session=session)


async def _audit_failed_login(
    db: AsyncSession, user: User, ip_address: str | None, reason: str
) -> None:
    await audit.record(
        db,
        action=AuditAction.FAILED_LOGIN,
        table_name="users",
        user_id=user.id,
        record_id=user.id,
        old_value={"ipAddress": ip_address, "reason": reason},
        ip_address=ip_address,
    )


async def logout(db: AsyncSession, claims: TokenClaims, ip_address: str | None = None) -> None:
    async with transaction(db):
        await sessions.revoke_session(db, claims.session_id)
        await audit.record(
            db,
            action=AuditAction.LOGOUT,
            table_name="sessions",
            user_id=claims.user_id,
            record_id=claims.user_id,
            new_value={"sessionId": claims.session_id},
            ip_address=ip_address,
        )
    logger.info("User %s logged out", claims.username)


# ── Profile & password change ───────────────────────────────────────
async def get_profile(db: AsyncSession, user_id: int) -> Profile:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    department = None
    if user.staff.department_id is not None:
        department = await db.get(Department, user.staff.department_id)

    return Profile(user=user, staff=user.staff, roles=list(user.roles), department=department)


async def change_password(
    db: AsyncSession,
    *,
    user_id: int,
    current_password: str,
    new_password: str,
    ip_address: str | None = None,
) -> None:
    async with transaction(db):
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(current_password, user.password_hash):
            raise AuthError("Current password is incorrect")

        user.password_hash, user.salt = hash_password(new_password)
        await audit.record(
            db,
            action=AuditAction.UPDATE,
            table_name="users",
            user_id=user.id,
            record_id=user.id,
            new_value={"action": "password_change"},
            ip_address=ip_address,
        )
    logger.info("Password changed for user %d", user_id)


# ── Password reset ──────────────────────────────────────────────────
async def request_password_reset(
    db: AsyncSession,
    *,
    username: str,
    notifier: ResetNotifier,
    ip_address: str | None = None,
) -> ResetTicket | None:
    """Issue a single-use reset token. Returns ``None`` for unknown users.

    The token is minted and hashed before the lookup so both branches do the
    same work; the route answers identically either way.
    """
    raw = generate_token()
    token_hash = hash_token(raw)
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES)

    async with transaction(db):
        user = await _user_by_username(db, username)
        if user is None:
            logger.info("Password reset requested for unknown username")
            return None

        user.password_reset_token = token_hash
        user.password_reset_expires = expires_at
        await audit.record(
            db,
            action=AuditAction.PASSWORD_RESET,
            table_name="users",
            user_id=user.id,
            record_id=user.id,
            new_value={"action": "reset_requested"},
            ip_address=ip_address,
        )

    email = user.staff.email
    await notifier.send_password_reset(
        username=user.username,
        email=email,
        token=raw,
        expires_at=expires_at,
    )
    return ResetTicket(token=raw, email=email)


async def reset_password(
    db: AsyncSession,
    *,
    token: str,
    new_password: str,
    ip_address: str | None = None,
) -> int:
    """Consume a reset token; returns how many sessions were revoked."""
    async with transaction(db):
        result = await db.execute(
            select(User)
            .where(
                User.password_reset_token == hash_token(token),
                User.password_reset_expires > datetime.now(timezone.utc),
            )
            .with_for_update(of=User)
        )
        user = result.unique().scalar_one_or_none()

        if user is None:
            await audit.record(
                db,
                action=AuditAction.PASSWORD_RESET,
                table_name="users",
                old_value={"action": "reset_failed"},
                ip_address=ip_address,
            )
            await db.commit()
            raise ValidationError("Invalid or expired password reset token")

        user.password_hash, user.salt = hash_password(new_password)
        user.password_reset_token = None
        user.password_reset_expires = None
        lockout.clear(user)

        await audit.record(
            db,
            action=AuditAction.PASSWORD_RESET,
            table_name="users",
            user_id=user.id,
            record_id=user.id,
            new_value={"action": "reset_completed"},
            ip_address=ip_address,
        )
        revoked = await sessions.revoke_all_sessions(db, user.id)

    logger.info("Password reset completed for user %d", user.id)
    return revoked
