"""
Brute-force lockout policy.

After ``LOCKOUT_THRESHOLD`` consecutive failed logins an account is locked
for ``LOCKOUT_MINUTES``. A lock is live while ``account_locked_until`` is in
the future; expired locks are left in place and cleared by the next
successful login.

The failure counter is bumped with ``SET n = n + 1`` in SQL so two
concurrent failures can never overwrite each other's increment.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def is_locked(user: User, now: datetime | None = None) -> bool:
    if user.account_locked_until is None:
        return False
    return ensure_utc(user.account_locked_until) > (now or utcnow())


async def register_failure(db: AsyncSession, user: User, now: datetime | None = None) -> bool:
    """Count one failed password check. Returns True if it locked the account."""
    now = now or utcnow()

    if settings.LOCKOUT_RESET_ON_EXPIRY and user.account_locked_until is not None:
        # Start over from zero once a previous lock has run out.
        await db.execute(
            update(User)
            .where(User.id == user.id, User.account_locked_until <= now)
            .values(failed_login_attempts=0, account_locked=False, account_locked_until=None)
            .execution_options(synchronize_session=False)
        )

    await db.execute(
        update(User)
        .where(User.id == user.id)
        .values(failed_login_attempts=User.failed_login_attempts + 1)
        .execution_options(synchronize_session=False)
    )
    locked = await db.execute(
        update(User)
        .where(
            User.id == user.id,
            User.failed_login_attempts >= settings.LOCKOUT_THRESHOLD,
        )
        .values(
            account_locked=True,
            account_locked_until=now + timedelta(minutes=settings.LOCKOUT_MINUTES),
        )
        .execution_options(synchronize_session=False)
    )
    await db.refresh(user)

    if locked.rowcount:
        logger.warning(
            "Account %s locked after %d failed attempts (until %s)",
            user.username,
            user.failed_login_attempts,
            user.account_locked_until,
        )
        return True
    return False


def clear(user: User) -> None:
    """Reset the failure counter and any lock after a successful check."""
    user.failed_login_attempts = 0
    user.account_locked = False
    user.account_locked_until = None
