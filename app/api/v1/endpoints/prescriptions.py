"""
Prescription CRUD. A prescription and its medication lines are written
together; a PUT that carries ``medications`` replaces every line.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.exceptions import ValidationError
from app.db.session import transaction
from app.models.clinical import Medication, Prescription, PrescriptionItem, Visit
from app.models.staff import PRESCRIBER_ROLES
from app.schemas.clinical import (PrescriptionCreate, PrescriptionItemCreate,
                                  PrescriptionRead, PrescriptionUpdate)
from app.schemas.common import DeleteResponse
from app.services import records

router = APIRouter(
    prefix="/prescriptions",
    tags=["prescriptions"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)

_NOT_A_PRESCRIBER = "Prescribing staff member must be a Doctor or Pharmacist"


async def _build_items(
    db: AsyncSession, lines: list[PrescriptionItemCreate]
) -> list[PrescriptionItem]:
    """Turn request lines into rows, rejecting unknown medications."""
    wanted = {line.medication_id for line in lines}
    result = await db.execute(select(Medication.id).where(Medication.id.in_(wanted)))
    missing = wanted - set(result.scalars().all())
    if missing:
        raise ValidationError(
            f"Medication does not exist: {', '.join(str(m) for m in sorted(missing))}"
        )
    return [PrescriptionItem(**line.model_dump()) for line in lines]


@router.get("", response_model=list[PrescriptionRead])
async def list_prescriptions(
    visit_id: int | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Prescription]:
    query = select(Prescription).order_by(Prescription.prescription_date.desc())
    if visit_id is not None:
        query = query.where(Prescription.visit_id == visit_id)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=PrescriptionRead, status_code=201)
async def create_prescription(
    body: PrescriptionCreate,
    db: AsyncSession = Depends(get_db),
) -> Prescription:
    async with transaction(db):
        await records.ensure_exists(db, Visit, body.visit_id, "Visit does not exist")
        await records.ensure_staff_role(db, body.prescribed_by_id, PRESCRIBER_ROLES, _NOT_A_PRESCRIBER)

        prescription = Prescription(**body.model_dump(exclude={"medications"}))
        prescription.items = await _build_items(db, body.medications)
        db.add(prescription)
        await db.flush()

    logger.info(
        "Issued prescription %d with %d line(s) on visit %d",
        prescription.id,
        len(body.medications),
        prescription.visit_id,
    )
    return await records.reload(db, Prescription, prescription.id)


@router.get("/{prescription_id}", response_model=PrescriptionRead)
async def get_prescription(
    prescription_id: int,
    db: AsyncSession = Depends(get_db),
) -> Prescription:
    return await records.get_or_404(db, Prescription, prescription_id, "Prescription")


@router.put("/{prescription_id}", response_model=PrescriptionRead)
async def update_prescription(
    prescription_id: int,
    body: PrescriptionUpdate,
    db: AsyncSession = Depends(get_db),
) -> Prescription:
    async with transaction(db):
        prescription = await records.get_or_404(db, Prescription, prescription_id, "Prescription")
        data = records.changes(body, exclude={"medications"})
        if data.get("prescribed_by_id") is not None:
            await records.ensure_staff_role(
                db, data["prescribed_by_id"], PRESCRIBER_ROLES, _NOT_A_PRESCRIBER
            )

        records.apply_changes(prescription, data)
        if body.medications is not None:
            prescription.items = await _build_items(db, body.medications)

    return await records.reload(db, Prescription, prescription_id)


@router.delete("/{prescription_id}", response_model=DeleteResponse)
async def delete_prescription(
    prescription_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    prescription = await records.get_or_404(db, Prescription, prescription_id, "Prescription")
    await db.delete(prescription)
    await db.commit()
    logger.info("Deleted prescription %d", prescription_id)
    return DeleteResponse(success=True, message="Prescription deleted successfully")
