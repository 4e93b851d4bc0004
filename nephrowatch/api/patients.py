from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from nephrowatch.api.deps import get_patient_repo
from nephrowatch.config import settings
from nephrowatch.schemas.patient import (
    PatientCreate,
    PatientDetail,
    PatientResponse,
    PatientSummary,
    PatientUpdate,
)
from nephrowatch.services.patients import PatientRepository
from nephrowatch.utils.cache import CacheKeys, clear_cache, get_cached, set_cached

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.get("/", response_model=list[PatientSummary])
async def list_patients(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    search: Optional[str] = None,
    repo: PatientRepository = Depends(get_patient_repo),
):
    """List all patients with optional search on first or last name."""
    cache_key = CacheKeys.patients(search, skip, limit)
    cached = await get_cached(cache_key)
    if cached is not None:
        return cached

    patients = await repo.list_patients(search=search, skip=skip, limit=limit)
    response = [PatientSummary.model_validate(p) for p in patients]
    await set_cached(cache_key, response, ttl_seconds=settings.response_cache_ttl_seconds)
    return response


@router.post("/", response_model=PatientResponse, status_code=201)
async def create_patient(
    patient_data: PatientCreate,
    repo: PatientRepository = Depends(get_patient_repo),
):
    """Create a new patient."""
    patient = await repo.create_patient(patient_data)
    await clear_cache(CacheKeys.patients_prefix())
    await clear_cache(CacheKeys.stats_prefix())
    return PatientResponse.model_validate(patient)


@router.get("/{patient_id}", response_model=PatientDetail)
async def get_patient(
    patient_id: int,
    repo: PatientRepository = Depends(get_patient_repo),
):
    """Get a patient with consultations, alerts and patient-specific thresholds."""
    patient = await repo.get_with_relations(patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return PatientDetail.model_validate(patient)


@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    patient_data: PatientUpdate,
    repo: PatientRepository = Depends(get_patient_repo),
):
    """Update a patient's information."""
    patient = await repo.update_patient(patient_id, patient_data)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    await clear_cache(CacheKeys.patients_prefix())
    return PatientResponse.model_validate(patient)


@router.delete("/{patient_id}", status_code=204)
async def delete_patient(
    patient_id: int,
    repo: PatientRepository = Depends(get_patient_repo),
):
    """Delete a patient with their consultations, alerts and thresholds."""
    deleted = await repo.delete_patient(patient_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Patient not found")
    await clear_cache(CacheKeys.patients_prefix())
    await clear_cache(CacheKeys.stats_prefix())
