"""
Medication formulary CRUD.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.exceptions import ValidationError
from app.models.clinical import Medication, PrescriptionItem
from app.schemas.clinical import MedicationCreate, MedicationRead, MedicationUpdate
from app.schemas.common import DeleteResponse
from app.services import records

router = APIRouter(
    prefix="/medications",
    tags=["medications"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)


@router.get("", response_model=list[MedicationRead])
async def list_medications(
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Medication]:
    query = select(Medication).order_by(Medication.name)
    if search:
        pattern = f"%{records.escape_like(search)}%"
        query = query.where(
            or_(
                Medication.name.ilike(pattern, escape="\\"),
                Medication.generic_name.ilike(pattern, escape="\\"),
            )
        )
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=MedicationRead, status_code=201)
async def create_medication(
    body: MedicationCreate,
    db: AsyncSession = Depends(get_db),
) -> Medication:
    medication = Medication(**body.model_dump())
    db.add(medication)
    await db.commit()
    await db.refresh(medication)
    logger.info("Created medication %s", medication.name)
    return medication


@router.get("/{medication_id}", response_model=MedicationRead)
async def get_medication(
    medication_id: int,
    db: AsyncSession = Depends(get_db),
) -> Medication:
    return await records.get_or_404(db, Medication, medication_id, "Medication")


@router.put("/{medication_id}", response_model=MedicationRead)
async def update_medication(
    medication_id: int,
    body: MedicationUpdate,
    db: AsyncSession = Depends(get_db),
) -> Medication:
    medication = await records.get_or_404(db, Medication, medication_id, "Medication")
    records.apply_changes(medication, records.changes(body))
    await db.commit()
    await db.refresh(medication)
    return medication


@router.delete("/{medication_id}", response_model=DeleteResponse)
async def delete_medication(
    medication_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    medication = await records.get_or_404(db, Medication, medication_id, "Medication")
    if await records.count_where(db, PrescriptionItem.medication_id, medication_id):
        raise ValidationError("Cannot delete medication used in prescriptions")

    await db.delete(medication)
    await db.commit()
    logger.info("Deleted medication %d", medication_id)
    return DeleteResponse(success=True, message="Medication deleted successfully")
