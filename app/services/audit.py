"""
Audit trail writer.

Entries join the caller's transaction; they are committed (or rolled back)
together with the change they describe. Flows that reject a request still
commit their audit entry before raising.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditAction, AuditLog

logger = logging.getLogger(__name__)


async def record(
    db: AsyncSession,
    *,
    action: AuditAction,
    table_name: str,
    user_id: Optional[int] = None,
    record_id: int = 0,
    old_value: Optional[dict[str, Any]] = None,
    new_value: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=user_id,
        action_type=action,
        table_name=table_name,
        record_id=record_id,
        old_value=old_value,
        new_value=new_value,
        ip_address=ip_address,
    )
    db.add(entry)
    logger.info(
        "Audit %s on %s#%s (user=%s, ip=%s)",
        action.value,
        table_name,
        record_id,
        user_id,
        ip_address,
    )
    return entry
