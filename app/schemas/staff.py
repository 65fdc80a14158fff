"""Pydantic schemas for Department and Staff CRUD."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from app.models.staff import StaffRole


# ── Department ──────────────────────────────────────────────────────
class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    location: str | None = None


class DepartmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    location: str | None = None


class DepartmentRead(DepartmentCreate):
    id: int

    model_config = {"from_attributes": True}


# ── Staff ───────────────────────────────────────────────────────────
class StaffCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: StaffRole
    department_id: int | None = None
    specialization: str | None = None
    license_number: str | None = None
    phone: str = Field(min_length=1, max_length=30)
    email: str = Field(min_length=3, max_length=320)
    hire_date: date


class StaffUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: StaffRole | None = None
    department_id: int | None = None
    specialization: str | None = None
    license_number: str | None = None
    phone: str | None = None
    email: str | None = None
    hire_date: date | None = None


class StaffRead(StaffCreate):
    id: int

    model_config = {"from_attributes": True}
