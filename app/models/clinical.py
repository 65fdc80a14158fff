"""
Clinical records: visits and everything recorded against a visit.

Visit ─┬─ Diagnosis ── Disease
       ├─ Prescription ── PrescriptionItem ── Medication
       └─ LabTest
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Integer, Numeric,
                        String, Text)
from sqlalchemy.orm import relationship

from app.db.base import Base


class Visit(Base):
    __tablename__ = "visits"

    id: int = Column("visit_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    patient_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("patients.patient_id"), nullable=False, index=True
    )
    visit_date: datetime = Column(DateTime(timezone=True), nullable=False, index=True)  # type: ignore[assignment]
    visit_type: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    # Outpatient | Inpatient | Emergency | Follow-up
    primary_complaint: str = Column(Text, nullable=False)  # type: ignore[assignment]
    initial_diagnosis: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    final_diagnosis: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    attending_doctor_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("staff.staff_id"), nullable=False, index=True
    )
    vital_signs: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    visit_notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    discharge_date: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    discharge_notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]

    patient = relationship("Patient", lazy="joined")
    attending_doctor = relationship("Staff", lazy="joined")

    @property
    def patient_name(self) -> str:
        return f"{self.patient.first_name} {self.patient.last_name}"

    @property
    def doctor_name(self) -> str:
        return self.attending_doctor.full_name


class Disease(Base):
    __tablename__ = "diseases"

    id: int = Column("disease_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    description: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    icd_code: str | None = Column(String(20), nullable=True, index=True)  # type: ignore[assignment]
    category: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]


class Diagnosis(Base):
    __tablename__ = "diagnoses"

    id: int = Column("diagnosis_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    visit_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("visits.visit_id"), nullable=False, index=True
    )
    disease_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("diseases.disease_id"), nullable=False, index=True
    )
    diagnosis_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    diagnosis_notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    diagnosing_doctor_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("staff.staff_id"), nullable=False
    )
    severity: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # Mild | Moderate | Severe | Critical
    status: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # Active | Resolved | Chronic

    disease = relationship("Disease", lazy="joined")
    diagnosing_doctor = relationship("Staff", lazy="joined")

    @property
    def disease_name(self) -> str:
        return self.disease.name

    @property
    def doctor_name(self) -> str:
        return self.diagnosing_doctor.full_name


class Medication(Base):
    __tablename__ = "medications"

    id: int = Column("medication_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    generic_name: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    description: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    dosage_form: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    strength: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    manufacturer: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    unit_price: Decimal = Column(Numeric(10, 2), nullable=False)  # type: ignore[assignment]


class Prescription(Base):
    __tablename__ = "prescriptions"

    id: int = Column("prescription_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    visit_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("visits.visit_id"), nullable=False, index=True
    )
    prescribed_by_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("staff.staff_id"), nullable=False
    )
    prescription_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]

    prescribed_by = relationship("Staff", lazy="joined")
    items = relationship(
        "PrescriptionItem",
        back_populates="prescription",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def doctor_name(self) -> str:
        return self.prescribed_by.full_name


class PrescriptionItem(Base):
    __tablename__ = "prescription_details"

    id: int = Column("detail_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    prescription_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("prescriptions.prescription_id"), nullable=False, index=True
    )
    medication_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("medications.medication_id"), nullable=False, index=True
    )
    dosage: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    frequency: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    duration: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    duration_unit: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    start_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    end_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    special_instructions: str | None = Column(Text, nullable=True)  # type: ignore[assignment]

    prescription = relationship("Prescription", back_populates="items")
    medication = relationship("Medication", lazy="joined")

    @property
    def medication_name(self) -> str:
        return self.medication.name

    @property
    def generic_name(self) -> str | None:
        return self.medication.generic_name


class LabTest(Base):
    __tablename__ = "lab_tests"

    id: int = Column("lab_test_id", Integer, primary_key=True, index=True)  # type: ignore[assignment]
    visit_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("visits.visit_id"), nullable=False, index=True
    )
    test_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    test_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    requested_by_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("staff.staff_id"), nullable=False
    )
    results: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    result_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    normal_range: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    interpretation: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    # Requested | In Progress | Completed | Cancelled

    requested_by = relationship("Staff", lazy="joined")

    @property
    def doctor_name(self) -> str:
        return self.requested_by.full_name
