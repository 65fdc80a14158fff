"""
Server-side session store.

A session row is what keeps a bearer token alive: tokens name their session
in the ``sid`` claim, and the auth dependency refuses any token whose
session is gone or past ``expires_at``. Expired rows are not swept; they
simply stop validating.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import generate_token
from app.models.user import UserSession

logger = logging.getLogger(__name__)


async def create_session(
    db: AsyncSession,
    user_id: int,
    ip_address: str | None,
    user_agent: str | None,
) -> UserSession:
    now = datetime.now(timezone.utc)
    session = UserSession(
        session_id=generate_token(),
        user_id=user_id,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:255] or None,
        created_at=now,
        last_activity=now,
        expires_at=now + timedelta(hours=settings.SESSION_TTL_HOURS),
    )
    db.add(session)
    await db.flush()
    return session


async def validate_session(db: AsyncSession, session_id: str) -> UserSession | None:
    """Return the session if it exists and has not expired."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.session_id == session_id,
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    return result.scalar_one_or_none()


async def touch_session(db: AsyncSession, session_id: str) -> None:
    await db.execute(
        update(UserSession)
        .where(UserSession.session_id == session_id)
        .values(last_activity=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )


async def revoke_session(db: AsyncSession, session_id: str) -> bool:
    result = await db.execute(
        delete(UserSession)
        .where(UserSession.session_id == session_id)
        .execution_options(synchronize_session=False)
    )
    return bool(result.rowcount)


async def revoke_all_sessions(db: AsyncSession, user_id: int) -> int:
    """Drop every session of *user_id*; returns how many were removed."""
    result = await db.execute(
        delete(UserSession)
        .where(UserSession.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info("Revoked %d session(s) for user %d", result.rowcount, user_id)
    return result.rowcount
