"""
Staff CRUD. Every route requires an authenticated session.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.exceptions import ValidationError
from app.models.clinical import Diagnosis, LabTest, Visit
from app.models.staff import Department, Staff, StaffRole
from app.models.user import User
from app.schemas.common import DeleteResponse
from app.schemas.staff import StaffCreate, StaffRead, StaffUpdate
from app.services import records

router = APIRouter(
    prefix="/staff",
    tags=["staff"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)


@router.get("", response_model=list[StaffRead])
async def list_staff(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    role: StaffRole | None = None,
    department_id: int | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Staff]:
    query = select(Staff).order_by(Staff.last_name, Staff.first_name).offset(skip).limit(limit)
    if role is not None:
        query = query.where(Staff.role == role)
    if department_id is not None:
        query = query.where(Staff.department_id == department_id)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=StaffRead, status_code=201)
async def create_staff(
    body: StaffCreate,
    db: AsyncSession = Depends(get_db),
) -> Staff:
    if body.department_id is not None:
        await records.ensure_exists(db, Department, body.department_id, "Department does not exist")

    staff = Staff(**body.model_dump())
    db.add(staff)
    await db.commit()
    await db.refresh(staff)
    logger.info("Created staff member %d (%s)", staff.id, staff.role.value)
    return staff


@router.get("/{staff_id}", response_model=StaffRead)
async def get_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
) -> Staff:
    return await records.get_or_404(db, Staff, staff_id, "Staff member")


@router.put("/{staff_id}", response_model=StaffRead)
async def update_staff(
    staff_id: int,
    body: StaffUpdate,
    db: AsyncSession = Depends(get_db),
) -> Staff:
    staff = await records.get_or_404(db, Staff, staff_id, "Staff member")
    data = records.changes(body)
    if data.get("department_id") is not None:
        await records.ensure_exists(db, Department, data["department_id"], "Department does not exist")
    if staff.role == StaffRole.DOCTOR and data.get("role", StaffRole.DOCTOR) != StaffRole.DOCTOR:
        # Visits, diagnoses and lab tests must keep pointing at a Doctor
        for column in (Visit.attending_doctor_id, Diagnosis.diagnosing_doctor_id, LabTest.requested_by_id):
            if await records.count_where(db, column, staff_id):
                raise ValidationError("Cannot change role of a doctor with clinical records")

    records.apply_changes(staff, data)
    await db.commit()
    await db.refresh(staff)
    logger.info("Updated staff member %d", staff_id)
    return staff


@router.delete("/{staff_id}", response_model=DeleteResponse)
async def delete_staff(
    staff_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    staff = await records.get_or_404(db, Staff, staff_id, "Staff member")
    if await records.count_where(db, Visit.attending_doctor_id, staff_id):
        raise ValidationError("Cannot delete staff member attending visits")
    if await records.count_where(db, User.staff_id, staff_id):
        raise ValidationError("Cannot delete staff member with a user account")

    await db.delete(staff)
    await db.commit()
    logger.info("Deleted staff member %d", staff_id)
    return DeleteResponse(success=True, message="Staff member deleted successfully")
