"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (auth, departments, diagnoses, diseases,
                                  health, lab_tests, medications, patients,
                                  prescriptions, staff, visits)

api_router = APIRouter()

# Auth (register, login/logout, profile, password reset)
api_router.include_router(auth.router)

# People and reference data
api_router.include_router(patients.router)
api_router.include_router(staff.router)
api_router.include_router(departments.router)
api_router.include_router(diseases.router)
api_router.include_router(medications.router)

# Clinical records
api_router.include_router(visits.router)
api_router.include_router(diagnoses.router)
api_router.include_router(prescriptions.router)
api_router.include_router(lab_tests.router)

# Public health probe
api_router.include_router(health.router)
