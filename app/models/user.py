"""
User, Role & Session models — authentication and role-based access control.

A User is the login identity of exactly one Staff member. Sessions are the
server-side half of a login: a bearer token is only honoured while the
session it names still exists and has not expired.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        String, Table)
from sqlalchemy.orm import relationship

from app.db.base import Base

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.user_id"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.role_id"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id: int = Column("role_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column("role_name", String(50), unique=True, nullable=False)  # type: ignore[assignment]
    description: str | None = Column(String(255), nullable=True)  # type: ignore[assignment]


class User(Base):
    __tablename__ = "users"

    id: int = Column("user_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    staff_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("staff.staff_id"), unique=True, nullable=False
    )
    username: str = Column(String(50), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    password_hash: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    salt: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]

    # Lockout state
    failed_login_attempts: int = Column(  # type: ignore[assignment]
        Integer, nullable=False, default=0, server_default="0"
    )
    account_locked: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=False, server_default="false"
    )
    account_locked_until: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    # Password reset (token stored as SHA-256)
    password_reset_token: str | None = Column(String(64), nullable=True, index=True)  # type: ignore[assignment]
    password_reset_expires: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    last_login: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    staff = relationship("Staff", lazy="joined")
    roles = relationship("Role", secondary=user_roles, lazy="selectin")
    sessions = relationship("UserSession", back_populates="user")


class UserSession(Base):
    __tablename__ = "sessions"
    __table_args__ = (Index("ix_sessions_user_expires", "user_id", "expires_at"),)

    session_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.user_id"), nullable=False)  # type: ignore[assignment]
    ip_address: str | None = Column(String(45), nullable=True)  # type: ignore[assignment]
    user_agent: str | None = Column(String(255), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    last_activity: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="sessions")
