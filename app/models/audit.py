"""
AuditLog model — append-only ledger of security-relevant actions.

Rows are only ever inserted (see ``app.services.audit``); nothing updates or
deletes them.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, Integer, String

from app.db.base import Base


class AuditAction(str, enum.Enum):
    CREATE = "Create"
    UPDATE = "Update"
    LOGIN = "Login"
    FAILED_LOGIN = "Failed Login"
    LOGOUT = "Logout"
    PASSWORD_RESET = "Password Reset"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: int = Column("log_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int | None = Column(Integer, nullable=True, index=True)  # type: ignore[assignment]
    action_type: AuditAction = Column(  # type: ignore[assignment]
        Enum(
            AuditAction,
            native_enum=False,
            length=30,
            values_callable=lambda actions: [a.value for a in actions],
        ),
        nullable=False,
        index=True,
    )
    table_name: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    record_id: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    old_value: dict | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    new_value: dict | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    ip_address: str | None = Column(String(45), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
