"""
FastAPI dependencies — database session and the bearer-token auth guard.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthError, ForbiddenError
from app.core.security import decode_access_token
from app.db.session import async_session_factory
from app.schemas.token import TokenClaims
from app.services import sessions

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our own 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> TokenClaims:
    """Gate a route on a valid token *and* a live server-side session.

    - no bearer token            -> 401
    - bad signature / expired    -> 403
    - session revoked or expired -> 401

    On success the session's last-activity time is bumped and the claims are
    attached to ``request.state.auth``.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Access token required")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise ForbiddenError("Invalid or expired token")
    try:
        claims = TokenClaims.model_validate(payload)
    except PydanticValidationError:
        raise ForbiddenError("Invalid or expired token") from None

    session = await sessions.validate_session(db, claims.session_id)
    if session is None or session.user_id != claims.user_id:
        logger.info("Rejected token for user %d: session gone or expired", claims.user_id)
        raise AuthError("Invalid or expired session")

    await sessions.touch_session(db, claims.session_id)
    await db.commit()

    request.state.auth = claims
    return claims
