from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from nephrowatch.api.deps import get_alert_repo, get_patient_repo
from nephrowatch.schemas.alert import (
    AlertReadResponse,
    AlertResponse,
    AlertWithPatientResponse,
)
from nephrowatch.services.alerts import AlertRepository
from nephrowatch.services.patients import PatientRepository
from nephrowatch.utils.cache import CacheKeys, clear_cache

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get("/", response_model=list[AlertWithPatientResponse])
async def list_alerts(
    patient_id: Optional[int] = Query(None, description="Filter by patient ID"),
    unread_only: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repo: AlertRepository = Depends(get_alert_repo),
):
    """List alerts with their patient, most recent first."""
    alerts = await repo.list_alerts(
        patient_id=patient_id, unread_only=unread_only, skip=skip, limit=limit
    )
    return [AlertWithPatientResponse.model_validate(a) for a in alerts]


@router.get("/unread", response_model=list[AlertWithPatientResponse])
async def list_unread_alerts(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Alerts not yet acknowledged by a clinician."""
    alerts = await repo.list_alerts(unread_only=True, skip=skip, limit=limit)
    return [AlertWithPatientResponse.model_validate(a) for a in alerts]


@router.get("/patient/{patient_id}", response_model=list[AlertResponse])
async def list_patient_alerts(
    patient_id: int,
    repo: AlertRepository = Depends(get_alert_repo),
    patients: PatientRepository = Depends(get_patient_repo),
):
    """All alerts raised for one patient."""
    if await patients.get_patient(patient_id) is None:
        raise HTTPException(status_code=404, detail="Patient not found")
    alerts = await repo.list_alerts(patient_id=patient_id, limit=1000)
    return [AlertResponse.model_validate(a) for a in alerts]


@router.put("/{alert_id}/read", response_model=AlertReadResponse)
async def mark_alert_as_read(
    alert_id: int,
    repo: AlertRepository = Depends(get_alert_repo),
):
    """Acknowledge an alert."""
    alert = await repo.mark_as_read(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    await clear_cache(CacheKeys.stats_prefix())
    return AlertReadResponse(
        message="Alerte marquée comme lue",
        alert=AlertResponse.model_validate(alert),
    )
