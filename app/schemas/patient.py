"""Pydantic schemas for Patient CRUD."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

_BLOOD_TYPES = r"^(A|B|AB|O)[+-]$"


class PatientCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: str = Field(min_length=1, max_length=20)
    blood_type: str | None = Field(default=None, pattern=_BLOOD_TYPES)
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1, max_length=30)
    email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    emergency_contact_relation: str | None = None
    insurance_provider: str | None = None
    insurance_policy_number: str | None = None
    allergies: str | None = None


class PatientUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = None
    blood_type: str | None = Field(default=None, pattern=_BLOOD_TYPES)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None
    email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    emergency_contact_relation: str | None = None
    insurance_provider: str | None = None
    insurance_policy_number: str | None = None
    allergies: str | None = None


class PatientRead(PatientCreate):
    id: int
    registration_date: datetime | None = None

    model_config = {"from_attributes": True}
