"""
Patient model — demographic, contact and insurance details.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from app.db.base import Base


class Patient(Base):
    __tablename__ = "patients"

    id: int = Column("patient_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False, index=True)  # type: ignore[assignment]
    date_of_birth: date = Column(Date, nullable=False)  # type: ignore[assignment]
    gender: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    blood_type: str | None = Column(String(5), nullable=True)  # type: ignore[assignment]
    address: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    city: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    state: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    postal_code: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    country: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    phone: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    email: str | None = Column(String(320), nullable=True)  # type: ignore[assignment]
    emergency_contact_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    emergency_contact_phone: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    emergency_contact_relation: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    insurance_provider: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    insurance_policy_number: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    allergies: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    registration_date: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
