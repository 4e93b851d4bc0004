"""Shared API dependencies."""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from nephrowatch.config import settings
from nephrowatch.database import get_db
from nephrowatch.services.alerting.engine import AlertEngine
from nephrowatch.services.alerts import AlertRepository, SQLAlertRepository
from nephrowatch.services.consultations import (
    ConsultationRepository,
    SQLConsultationRepository,
)
from nephrowatch.services.patients import PatientRepository, SQLPatientRepository
from nephrowatch.services.thresholds import SQLThresholdRepository, ThresholdRepository


async def require_api_key(x_api_key: str | None = Header(None, alias="X-API-Key")):
    """Require API key when configured."""
    if not settings.api_key:
        return None
    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
    return None


def get_patient_repo(db: AsyncSession = Depends(get_db)) -> PatientRepository:
    return SQLPatientRepository(db)


def get_consultation_repo(db: AsyncSession = Depends(get_db)) -> ConsultationRepository:
    return SQLConsultationRepository(db)


def get_alert_repo(db: AsyncSession = Depends(get_db)) -> AlertRepository:
    return SQLAlertRepository(db)


def get_threshold_repo(db: AsyncSession = Depends(get_db)) -> ThresholdRepository:
    return SQLThresholdRepository(db)


def get_alert_engine(
    thresholds: ThresholdRepository = Depends(get_threshold_repo),
    consultations: ConsultationRepository = Depends(get_consultation_repo),
    alerts: AlertRepository = Depends(get_alert_repo),
) -> AlertEngine:
    """Alert engine sharing the request's database session."""
    return AlertEngine(thresholds=thresholds, consultations=consultations, alerts=alerts)
