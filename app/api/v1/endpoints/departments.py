"""
Department CRUD.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.exceptions import ValidationError
from app.models.staff import Department, Staff
from app.schemas.common import DeleteResponse
from app.schemas.staff import DepartmentCreate, DepartmentRead, DepartmentUpdate, StaffRead
from app.services import records

router = APIRouter(
    prefix="/departments",
    tags=["departments"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)


@router.get("", response_model=list[DepartmentRead])
async def list_departments(db: AsyncSession = Depends(get_db)) -> list[Department]:
    result = await db.execute(select(Department).order_by(Department.name))
    return list(result.scalars().all())


@router.post("", response_model=DepartmentRead, status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
) -> Department:
    department = Department(**body.model_dump())
    db.add(department)
    await db.commit()
    await db.refresh(department)
    logger.info("Created department %s", department.name)
    return department


@router.get("/{department_id}", response_model=DepartmentRead)
async def get_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
) -> Department:
    return await records.get_or_404(db, Department, department_id, "Department")


@router.get("/{department_id}/staff", response_model=list[StaffRead])
async def list_department_staff(
    department_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[Staff]:
    await records.get_or_404(db, Department, department_id, "Department")
    result = await db.execute(
        select(Staff).where(Staff.department_id == department_id).order_by(Staff.last_name)
    )
    return list(result.scalars().all())


@router.put("/{department_id}", response_model=DepartmentRead)
async def update_department(
    department_id: int,
    body: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
) -> Department:
    department = await records.get_or_404(db, Department, department_id, "Department")
    records.apply_changes(department, records.changes(body))
    await db.commit()
    await db.refresh(department)
    return department


@router.delete("/{department_id}", response_model=DeleteResponse)
async def delete_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    department = await records.get_or_404(db, Department, department_id, "Department")
    if await records.count_where(db, Staff.department_id, department_id):
        raise ValidationError("Cannot delete department with assigned staff")

    await db.delete(department)
    await db.commit()
    logger.info("Deleted department %d", department_id)
    return DeleteResponse(success=True, message="Department deleted successfully")
