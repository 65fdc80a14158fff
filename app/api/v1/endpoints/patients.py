"""
Patient CRUD. Every route requires an authenticated session.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.exceptions import ValidationError
from app.models.clinical import Visit
from app.models.patient import Patient
from app.schemas.clinical import VisitRead
from app.schemas.common import DeleteResponse
from app.schemas.patient import PatientCreate, PatientRead, PatientUpdate
from app.services import records

router = APIRouter(
    prefix="/patients",
    tags=["patients"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)


@router.get("", response_model=list[PatientRead])
async def list_patients(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Patient]:
    query = select(Patient).order_by(Patient.last_name, Patient.first_name).offset(skip).limit(limit)
    if search:
        pattern = f"%{records.escape_like(search)}%"
        query = query.where(
            or_(
                Patient.first_name.ilike(pattern, escape="\\"),
                Patient.last_name.ilike(pattern, escape="\\"),
                Patient.phone.ilike(pattern, escape="\\"),
            )
        )
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=PatientRead, status_code=201)
async def create_patient(
    body: PatientCreate,
    db: AsyncSession = Depends(get_db),
) -> Patient:
    patient = Patient(**body.model_dump())
    db.add(patient)
    await db.commit()
    await db.refresh(patient)
    logger.info("Registered patient %d", patient.id)
    return patient


@router.get("/{patient_id}", response_model=PatientRead)
async def get_patient(
    patient_id: int,
    db: AsyncSession = Depends(get_db),
) -> Patient:
    return await records.get_or_404(db, Patient, patient_id, "Patient")


@router.get("/{patient_id}/visits", response_model=list[VisitRead])
async def list_patient_visits(
    patient_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[Visit]:
    await records.get_or_404(db, Patient, patient_id, "Patient")
    result = await db.execute(
        select(Visit).where(Visit.patient_id == patient_id).order_by(Visit.visit_date.desc())
    )
    return list(result.scalars().all())


@router.put("/{patient_id}", response_model=PatientRead)
async def update_patient(
    patient_id: int,
    body: PatientUpdate,
    db: AsyncSession = Depends(get_db),
) -> Patient:
    patient = await records.get_or_404(db, Patient, patient_id, "Patient")
    records.apply_changes(patient, records.changes(body))
    await db.commit()
    await db.refresh(patient)
    logger.info("Updated patient %d", patient_id)
    return patient


@router.delete("/{patient_id}", response_model=DeleteResponse)
async def delete_patient(
    patient_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    """Remove a patient. Refused while any visit still references them."""
    patient = await records.get_or_404(db, Patient, patient_id, "Patient")
    if await records.count_where(db, Visit.patient_id, patient_id):
        raise ValidationError("Cannot delete patient with existing visits")

    await db.delete(patient)
    await db.commit()
    logger.info("Deleted patient %d", patient_id)
    return DeleteResponse(success=True, message="Patient deleted successfully")
