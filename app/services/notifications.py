"""
Outbound notifications for the password-reset flow.

No mail transport is wired in; the default notifier writes a log line
instead. Swap it through ``get_reset_notifier`` (a FastAPI dependency).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from app.core.config import settings

logger = logging.getLogger(__name__)


class ResetNotifier(Protocol):
    async def send_password_reset(
        self,
        *,
        username: str,
        email: str | None,
        token: str,
        expires_at: datetime,
    ) -> None: ...


class LogResetNotifier:
    async def send_password_reset(
        self,
        *,
        username: str,
        email: str | None,
        token: str,
        expires_at: datetime,
    ) -> None:
        logger.info(
            "Password reset for %s: would email %s (link valid until %s)",
            username,
            email or "<no email on file>",
            expires_at.isoformat(),
        )
        if settings.is_development:
            logger.debug("Reset token for %s: %s", username, token)


_default_notifier = LogResetNotifier()


def get_reset_notifier() -> ResetNotifier:
    return _default_notifier
