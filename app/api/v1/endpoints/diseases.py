"""
Disease catalogue CRUD.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_session, get_db
from app.core.exceptions import ValidationError
from app.models.clinical import Diagnosis, Disease
from app.schemas.clinical import DiseaseCreate, DiseaseRead, DiseaseUpdate
from app.schemas.common import DeleteResponse
from app.services import records

router = APIRouter(
    prefix="/diseases",
    tags=["diseases"],
    dependencies=[Depends(get_current_session)],
)
logger = logging.getLogger(__name__)


@router.get("", response_model=list[DiseaseRead])
async def list_diseases(
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
) -> list[Disease]:
    query = select(Disease).order_by(Disease.name)
    if search:
        pattern = f"%{records.escape_like(search)}%"
        query = query.where(
            or_(
                Disease.name.ilike(pattern, escape="\\"),
                Disease.icd_code.ilike(pattern, escape="\\"),
            )
        )
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("", response_model=DiseaseRead, status_code=201)
async def create_disease(
    body: DiseaseCreate,
    db: AsyncSession = Depends(get_db),
) -> Disease:
    disease = Disease(**body.model_dump())
    db.add(disease)
    await db.commit()
    await db.refresh(disease)
    logger.info("Created disease %s", disease.name)
    return disease


@router.get("/{disease_id}", response_model=DiseaseRead)
async def get_disease(
    disease_id: int,
    db: AsyncSession = Depends(get_db),
) -> Disease:
    return await records.get_or_404(db, Disease, disease_id, "Disease")


@router.put("/{disease_id}", response_model=DiseaseRead)
async def update_disease(
    disease_id: int,
    body: DiseaseUpdate,
    db: AsyncSession = Depends(get_db),
) -> Disease:
    disease = await records.get_or_404(db, Disease, disease_id, "Disease")
    records.apply_changes(disease, records.changes(body))
    await db.commit()
    await db.refresh(disease)
    return disease


@router.delete("/{disease_id}", response_model=DeleteResponse)
async def delete_disease(
    disease_id: int,
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    disease = await records.get_or_404(db, Disease, disease_id, "Disease")
    if await records.count_where(db, Diagnosis.disease_id, disease_id):
        raise ValidationError("Cannot delete disease referenced by diagnoses")

    await db.delete(disease)
    await db.commit()
    logger.info("Deleted disease %d", disease_id)
    return DeleteResponse(success=True, message="Disease deleted successfully")
