"""
Diagnosis CRUD. A diagnosis ties a visit to a catalogued disease and is
signed by a doctor.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.models.clinical import Diagnosis, Disease, Visit
from app.models.staff import StaffRole
from app.schemas.clinical import DiagnosisCreate, DiagnosisRead, DiagnosisUpdate
from app.schemas.common import DeleteResponse
from app.services import records

router = APIRouter(
    prefix="/diagnoses",
    tags=["diagnoses"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)

_NOT_A_DOCTOR = "Diagnosing staff member must be a Doctor"


@router.get("", response_model=list[DiagnosisRead])
async def list_diagnoses(
    visit_id: int | None = None,
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Diagnosis]:
    query = select(Diagnosis).order_by(Diagnosis.diagnosis_date.desc())
    if visit_id is not None:
        query = query.where(Diagnosis.visit_id == visit_id)
    if status:
        query = query.where(Diagnosis.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=DiagnosisRead, status_code=201)
async def create_diagnosis(
    body: DiagnosisCreate,
    db: AsyncSession = Depends(get_db),
) -> Diagnosis:
    await records.ensure_exists(db, Visit, body.visit_id, "Visit does not exist")
    await records.ensure_exists(db, Disease, body.disease_id, "Disease does not exist")
    await records.ensure_staff_role(db, body.diagnosing_doctor_id, [StaffRole.DOCTOR], _NOT_A_DOCTOR)

    diagnosis = Diagnosis(**body.model_dump())
    db.add(diagnosis)
    await db.commit()
    logger.info("Recorded diagnosis %d on visit %d", diagnosis.id, diagnosis.visit_id)
    return await records.reload(db, Diagnosis, diagnosis.id)


@router.get("/{diagnosis_id}", response_model=DiagnosisRead)
async def get_diagnosis(
    diagnosis_id: int,
    db: AsyncSession = Depends(get_db),
) -> Diagnosis:
    return await records.get_or_404(db, Diagnosis, diagnosis_id, "Diagnosis")


@router.put("/{diagnosis_id}", response_model=DiagnosisRead)
async def update_diagnosis(
    diagnosis_id: int,
    body: DiagnosisUpdate,
    db: AsyncSession = Depends(get_db),
) -> Diagnosis:
    diagnosis = await records.get_or_404(db, Diagnosis, diagnosis_id, "Diagnosis")
    data = records.changes(body)
    if data.get("disease_id") is not None:
        await records.ensure_exists(db, Disease, data["disease_id"], "Disease does not exist")
    if data.get("diagnosing_doctor_id") is not None:
        await records.ensure_staff_role(
            db, data["diagnosing_doctor_id"], [StaffRole.DOCTOR], _NOT_A_DOCTOR
        )

    records.apply_changes(diagnosis, data)
    await db.commit()
    return await records.reload(db, Diagnosis, diagnosis_id)


@router.delete("/{diagnosis_id}", response_model=DeleteResponse)
async def delete_diagnosis(
    diagnosis_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    diagnosis = await records.get_or_404(db, Diagnosis, diagnosis_id, "Diagnosis")
    await db.delete(diagnosis)
    await db.commit()
    logger.info("Deleted diagnosis %d", diagnosis_id)
    return DeleteResponse(success=True, message="Diagnosis deleted successfully")
