"""
Visit CRUD plus the per-visit listings of diagnoses, prescriptions and lab
tests.

Deleting a visit removes everything recorded against it in one transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.db.session import transaction
from app.models.clinical import (Diagnosis, LabTest, Prescription,
                                 PrescriptionItem, Visit)
from app.models.patient import Patient
from app.models.staff import StaffRole
from app.schemas.clinical import (DiagnosisRead, LabTestRead, PrescriptionRead,
                                  VisitCreate, VisitRead, VisitUpdate)
from app.schemas.common import DeleteResponse
from app.services import records

router = APIRouter(
    prefix="/visits",
    tags=["visits"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)

_NOT_A_DOCTOR = "Attending staff member must be a Doctor"


@router.get("", response_model=list[VisitRead])
async def list_visits(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    patient_id: int | None = None,
    doctor_id: int | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Visit]:
    query = select(Visit).order_by(Visit.visit_date.desc()).offset(skip).limit(limit)
    if patient_id is not None:
        query = query.where(Visit.patient_id == patient_id)
    if doctor_id is not None:
        query = query.where(Visit.attending_doctor_id == doctor_id)
    if date_from is not None:
        query = query.where(Visit.visit_date >= date_from)
    if date_to is not None:
        query = query.where(Visit.visit_date <= date_to)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=VisitRead, status_code=201)
async def create_visit(
    body: VisitCreate,
    db: AsyncSession = Depends(get_db),
) -> Visit:
    await records.ensure_exists(db, Patient, body.patient_id, "Patient does not exist")
    await records.ensure_staff_role(db, body.attending_doctor_id, [StaffRole.DOCTOR], _NOT_A_DOCTOR)

    visit = Visit(**body.model_dump())
    db.add(visit)
    await db.commit()
    logger.info("Opened visit %d for patient %d", visit.id, visit.patient_id)
    return await records.reload(db, Visit, visit.id)


@router.get("/{visit_id}", response_model=VisitRead)
async def get_visit(
    visit_id: int,
    db: AsyncSession = Depends(get_db),
) -> Visit:
    return await records.get_or_404(db, Visit, visit_id, "Visit")


@router.put("/{visit_id}", response_model=VisitRead)
async def update_visit(
    visit_id: int,
    body: VisitUpdate,
    db: AsyncSession = Depends(get_db),
) -> Visit:
    visit = await records.get_or_404(db, Visit, visit_id, "Visit")
    data = records.changes(body)
    if data.get("patient_id") is not None:
        await records.ensure_exists(db, Patient, data["patient_id"], "Patient does not exist")
    if data.get("attending_doctor_id") is not None:
        await records.ensure_staff_role(
            db, data["attending_doctor_id"], [StaffRole.DOCTOR], _NOT_A_DOCTOR
        )

    records.apply_changes(visit, data)
    await db.commit()
    logger.info("Updated visit %d", visit_id)
    return await records.reload(db, Visit, visit_id)


@router.delete("/{visit_id}", response_model=DeleteResponse)
async def delete_visit(
    visit_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    await records.get_or_404(db, Visit, visit_id, "Visit")

    prescription_ids = select(Prescription.id).where(Prescription.visit_id == visit_id)
    async with transaction(db):
        for stmt in (
            delete(PrescriptionItem).where(PrescriptionItem.prescription_id.in_(prescription_ids)),
            delete(Prescription).where(Prescription.visit_id == visit_id),
            delete(Diagnosis).where(Diagnosis.visit_id == visit_id),
            delete(LabTest).where(LabTest.visit_id == visit_id),
            delete(Visit).where(Visit.id == visit_id),
        ):
            await db.execute(stmt.execution_options(synchronize_session=False))

    logger.info("Deleted visit %d and its clinical records", visit_id)
    return DeleteResponse(success=True, message="Visit and related records deleted successfully")


# ── Per-visit listings ──────────────────────────────────────────────
@router.get("/{visit_id}/diagnoses", response_model=list[DiagnosisRead])
async def list_visit_diagnoses(
    visit_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[Diagnosis]:
    await records.get_or_404(db, Visit, visit_id, "Visit")
    result = await db.execute(
        select(Diagnosis).where(Diagnosis.visit_id == visit_id).order_by(Diagnosis.diagnosis_date)
    )
    return list(result.scalars().all())


@router.get("/{visit_id}/prescriptions", response_model=list[PrescriptionRead])
async def list_visit_prescriptions(
    visit_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[Prescription]:
    await records.get_or_404(db, Visit, visit_id, "Visit")
    result = await db.execute(
        select(Prescription)
        .where(Prescription.visit_id == visit_id)
        .order_by(Prescription.prescription_date)
    )
    return list(result.scalars().all())


@router.get("/{visit_id}/lab-tests", response_model=list[LabTestRead])
async def list_visit_lab_tests(
    visit_id: int,
    db: AsyncSession = Depends(get_db),
) -> list[LabTest]:
    await records.get_or_404(db, Visit, visit_id, "Visit")
    result = await db.execute(
        select(LabTest).where(LabTest.visit_id == visit_id).order_by(LabTest.test_date)
    )
    return list(result.scalars().all())
