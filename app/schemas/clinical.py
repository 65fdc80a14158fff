"""Pydantic schemas for visits and the records attached to them."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


# ── Visit ───────────────────────────────────────────────────────────
class VisitCreate(BaseModel):
    patient_id: int
    visit_date: datetime
    visit_type: str = Field(min_length=1, max_length=50)
    primary_complaint: str = Field(min_length=1)
    attending_doctor_id: int
    initial_diagnosis: str | None = None
    final_diagnosis: str | None = None
    vital_signs: str | None = None
    visit_notes: str | None = None
    discharge_date: datetime | None = None
    discharge_notes: str | None = None


class VisitUpdate(BaseModel):
    patient_id: int | None = None
    visit_date: datetime | None = None
    visit_type: str | None = Field(default=None, min_length=1, max_length=50)
    primary_complaint: str | None = None
    attending_doctor_id: int | None = None
    initial_diagnosis: str | None = None
    final_diagnosis: str | None = None
    vital_signs: str | None = None
    visit_notes: str | None = None
    discharge_date: datetime | None = None
    discharge_notes: str | None = None


class VisitRead(VisitCreate):
    id: int
    patient_name: str
    doctor_name: str

    model_config = {"from_attributes": True}


# ── Disease ─────────────────────────────────────────────────────────
class DiseaseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    icd_code: str | None = Field(default=None, max_length=20)
    category: str | None = None


class DiseaseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    icd_code: str | None = Field(default=None, max_length=20)
    category: str | None = None


class DiseaseRead(DiseaseCreate):
    id: int

    model_config = {"from_attributes": True}


# ── Diagnosis ───────────────────────────────────────────────────────
class DiagnosisCreate(BaseModel):
    visit_id: int
    disease_id: int
    diagnosis_date: date
    diagnosing_doctor_id: int
    severity: str = Field(min_length=1, max_length=20)
    status: str = Field(min_length=1, max_length=20)
    diagnosis_notes: str | None = None


class DiagnosisUpdate(BaseModel):
    disease_id: int | None = None
    diagnosis_date: date | None = None
    diagnosing_doctor_id: int | None = None
    severity: str | None = Field(default=None, min_length=1, max_length=20)
    status: str | None = Field(default=None, min_length=1, max_length=20)
    diagnosis_notes: str | None = None


class DiagnosisRead(DiagnosisCreate):
    id: int
    disease_name: str
    doctor_name: str

    model_config = {"from_attributes": True}


# ── Medication ──────────────────────────────────────────────────────
class MedicationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    unit_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    generic_name: str | None = None
    description: str | None = None
    dosage_form: str | None = None
    strength: str | None = None
    manufacturer: str | None = None


class MedicationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    unit_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    generic_name: str | None = None
    description: str | None = None
    dosage_form: str | None = None
    strength: str | None = None
    manufacturer: str | None = None


class MedicationRead(MedicationCreate):
    id: int

    model_config = {"from_attributes": True}


# ── Prescription ────────────────────────────────────────────────────
class PrescriptionItemCreate(BaseModel):
    medication_id: int
    dosage: str = Field(min_length=1, max_length=50)
    frequency: str = Field(min_length=1, max_length=50)
    duration: int = Field(gt=0)
    duration_unit: str = Field(min_length=1, max_length=20)
    start_date: date
    end_date: date | None = None
    special_instructions: str | None = None


class PrescriptionItemRead(PrescriptionItemCreate):
    id: int
    medication_name: str
    generic_name: str | None

    model_config = {"from_attributes": True}


class PrescriptionCreate(BaseModel):
    visit_id: int
    prescribed_by_id: int
    prescription_date: date
    medications: list[PrescriptionItemCreate] = Field(min_length=1)
    notes: str | None = None


class PrescriptionUpdate(BaseModel):
    prescribed_by_id: int | None = None
    prescription_date: date | None = None
    notes: str | None = None
    # When given, replaces every line of the prescription.
    medications: list[PrescriptionItemCreate] | None = Field(default=None, min_length=1)


class PrescriptionRead(BaseModel):
    id: int
    visit_id: int
    prescribed_by_id: int
    prescription_date: date
    notes: str | None
    doctor_name: str
    medications: list[PrescriptionItemRead] = Field(validation_alias="items")

    model_config = {"from_attributes": True}


# ── Lab test ────────────────────────────────────────────────────────
class LabTestCreate(BaseModel):
    visit_id: int
    test_name: str = Field(min_length=1, max_length=200)
    test_date: date
    requested_by_id: int
    status: str = Field(min_length=1, max_length=20)
    results: str | None = None
    result_date: date | None = None
    normal_range: str | None = None
    interpretation: str | None = None


class LabTestUpdate(BaseModel):
    test_name: str | None = Field(default=None, min_length=1, max_length=200)
    test_date: date | None = None
    requested_by_id: int | None = None
    status: str | None = Field(default=None, min_length=1, max_length=20)
    results: str | None = None
    result_date: date | None = None
    normal_range: str | None = None
    interpretation: str | None = None


class LabTestRead(LabTestCreate):
    id: int
    doctor_name: str

    model_config = {"from_attributes": True}
