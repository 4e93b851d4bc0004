import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from nephrowatch.api.deps import get_alert_engine, get_consultation_repo, get_patient_repo
from nephrowatch.config import settings
from nephrowatch.schemas.consultation import (
    ConsultationCreate,
    ConsultationResponse,
    ConsultationUpdate,
)
from nephrowatch.services.alerting.engine import AlertEngine
from nephrowatch.services.consultations import ConsultationRepository
from nephrowatch.services.patients import PatientRepository
from nephrowatch.utils.cache import CacheKeys, clear_cache

logger = logging.getLogger("nephrowatch.consultations")

router = APIRouter(prefix="/consultations", tags=["Consultations"])


@router.get("/", response_model=list[ConsultationResponse])
async def list_consultations(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repo: ConsultationRepository = Depends(get_consultation_repo),
):
    """List consultations, most recent visit first."""
    consultations = await repo.list_consultations(skip=skip, limit=limit)
    return [ConsultationResponse.model_validate(c) for c in consultations]


@router.get("/recent", response_model=list[ConsultationResponse])
async def list_recent_consultations(
    limit: int = Query(settings.recent_consultations_limit, ge=1, le=100),
    repo: ConsultationRepository = Depends(get_consultation_repo),
):
    """Latest consultations across all patients."""
    consultations = await repo.list_recent(limit=limit)
    return [ConsultationResponse.model_validate(c) for c in consultations]


@router.get("/patient/{patient_id}", response_model=list[ConsultationResponse])
async def list_patient_consultations(
    patient_id: int,
    repo: ConsultationRepository = Depends(get_consultation_repo),
    patients: PatientRepository = Depends(get_patient_repo),
):
    """Consultation history of one patient, most recent first."""
    if await patients.get_patient(patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    consultations = await repo.get_by_patient(patient_id)
    return [ConsultationResponse.model_validate(c) for c in consultations]


@router.get("/{consultation_id}", response_model=ConsultationResponse)
async def get_consultation(
    consultation_id: int,
    repo: ConsultationRepository = Depends(get_consultation_repo),
):
    """Get a specific consultation by ID."""
    consultation = await repo.get_consultation(consultation_id)
    if not consultation:
        raise HTTPException(status_code=404, detail="Consultation not found")
    return ConsultationResponse.model_validate(consultation)


@router.post("/", response_model=ConsultationResponse, status_code=201)
async def create_consultation(
    consultation_data: ConsultationCreate,
    repo: ConsultationRepository = Depends(get_consultation_repo),
    engine: AlertEngine = Depends(get_alert_engine),
):
    """Record a consultation and raise any clinical alerts it triggers."""
    try:
        consultation = await repo.create_consultation(consultation_data)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    try:
        await engine.on_consultation_created(consultation)
    except Exception:
        logger.exception("Alert evaluation failed for consultation %s", consultation.id)

    await clear_cache(CacheKeys.stats_prefix())
    return ConsultationResponse.model_validate(consultation)


@router.patch("/{consultation_id}", response_model=ConsultationResponse)
async def update_consultation(
    consultation_id: int,
    changes: ConsultationUpdate,
    repo: ConsultationRepository = Depends(get_consultation_repo),
    engine: AlertEngine = Depends(get_alert_engine),
):
    """Correct a consultation and re-evaluate its alerts."""
    consultation = await repo.update_consultation(consultation_id, changes)
    if not consultation:
        raise HTTPException(status_code=404, detail="Consultation not found")

    try:
        await engine.on_consultation_updated(consultation)
    except Exception:
        logger.exception("Alert re-evaluation failed for consultation %s", consultation.id)

    await clear_cache(CacheKeys.stats_prefix())
    return ConsultationResponse.model_validate(consultation)


@router.delete("/{consultation_id}", status_code=204)
async def delete_consultation(
    consultation_id: int,
    repo: ConsultationRepository = Depends(get_consultation_repo),
):
    """Delete a consultation; its alerts are kept without the consultation link."""
    deleted = await repo.delete_consultation(consultation_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Consultation not found")
    await clear_cache(CacheKeys.stats_prefix())
