"""
Department & Staff models: the people and units a hospital is made of.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base


class StaffRole(str, enum.Enum):
    DOCTOR = "Doctor"
    NURSE = "Nurse"
    PHARMACIST = "Pharmacist"
    LAB_TECHNICIAN = "Lab Technician"
    RECEPTIONIST = "Receptionist"
    ADMINISTRATOR = "Administrator"


# Roles allowed to sign a prescription.
PRESCRIBER_ROLES = (StaffRole.DOCTOR, StaffRole.PHARMACIST)


class Department(Base):
    __tablename__ = "departments"

    id: int = Column("department_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    location: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]

    staff = relationship("Staff", back_populates="department")


class Staff(Base):
    __tablename__ = "staff"

    id: int = Column("staff_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    role: StaffRole = Column(  # type: ignore[assignment]
        Enum(
            StaffRole,
            native_enum=False,
            length=30,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        index=True,
    )
    department_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("departments.department_id"), nullable=True
    )
    specialization: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    license_number: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    phone: str = Column(String(30), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), nullable=False)  # type: ignore[assignment]
    hire_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    department = relationship("Department", back_populates="staff")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
