from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from nephrowatch.services.alerting.rules import AlertSeverity, AlertType


class AlertResponse(BaseModel):
    """Schema for a generated alert."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    consultation_id: Optional[int] = None
    type: AlertType
    severity: AlertSeverity
    message: str
    value: str
    threshold: str
    is_read: bool
    created_at: datetime


class AlertPatient(BaseModel):
    """Patient fields shown next to an alert."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    ckd_stage: int


class AlertWithPatientResponse(AlertResponse):
    """Alert joined with the patient it concerns."""

    patient: Optional[AlertPatient] = None


class AlertReadResponse(BaseModel):
    message: str
    alert: AlertResponse
