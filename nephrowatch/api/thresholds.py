from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from nephrowatch.api.deps import get_patient_repo, get_threshold_repo
from nephrowatch.schemas.threshold import (
    ResolvedThresholdResponse,
    ThresholdResponse,
    ThresholdUpsert,
)
from nephrowatch.services.alerting.resolver import ThresholdResolver
from nephrowatch.services.alerting.rules import AlertType
from nephrowatch.services.patients import PatientRepository
from nephrowatch.services.thresholds import ThresholdRepository

router = APIRouter(prefix="/thresholds", tags=["Alert Thresholds"])


@router.get("/", response_model=list[ThresholdResponse])
async def list_global_thresholds(
    repo: ThresholdRepository = Depends(get_threshold_repo),
):
    """Thresholds applied to every patient without an override."""
    thresholds = await repo.list_global()
    return [ThresholdResponse.model_validate(t) for t in thresholds]


@router.get("/resolve", response_model=ResolvedThresholdResponse)
async def resolve_threshold(
    alert_type: AlertType = Query(..., alias="type", description="Metric type"),
    patient_id: Optional[int] = Query(None),
    repo: ThresholdRepository = Depends(get_threshold_repo),
):
    """Cut points the alert engine would apply, with where they come from."""
    levels = await ThresholdResolver(repo).resolve(alert_type, patient_id)
    return ResolvedThresholdResponse(
        type=alert_type,
        patient_id=patient_id,
        critical=levels.critical,
        high=levels.high,
        warning=levels.warning,
        source=levels.source,
    )


@router.get("/patient/{patient_id}", response_model=list[ThresholdResponse])
async def list_patient_thresholds(
    patient_id: int,
    repo: ThresholdRepository = Depends(get_threshold_repo),
    patients: PatientRepository = Depends(get_patient_repo),
):
    """Patient-specific overrides."""
    if await patients.get_patient(patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    thresholds = await repo.list_for_patient(patient_id)
    return [ThresholdResponse.model_validate(t) for t in thresholds]


@router.post("/", response_model=ThresholdResponse)
async def upsert_threshold(
    threshold: ThresholdUpsert,
    repo: ThresholdRepository = Depends(get_threshold_repo),
    patients: PatientRepository = Depends(get_patient_repo),
):
    """Create or replace the threshold for a metric, globally or for one patient."""
    if threshold.patient_id is not None:
        if await patients.get_patient(threshold.patient_id) is None:
            raise HTTPException(status_code=404, detail="Patient not found")
    row = await repo.upsert(threshold)
    return ThresholdResponse.model_validate(row)
