"""Pydantic schemas for API request/response validation."""

from nephrowatch.schemas.alert import (
    AlertPatient,
    AlertReadResponse,
    AlertResponse,
    AlertWithPatientResponse,
)
from nephrowatch.schemas.consultation import (
    ConsultationBase,
    ConsultationCreate,
    ConsultationResponse,
    ConsultationUpdate,
)
from nephrowatch.schemas.patient import (
    PatientBase,
    PatientCreate,
    PatientDetail,
    PatientResponse,
    PatientSummary,
    PatientUpdate,
)
from nephrowatch.schemas.stats import StatsResponse
from nephrowatch.schemas.threshold import (
    ResolvedThresholdResponse,
    ThresholdBase,
    ThresholdResponse,
    ThresholdUpsert,
)

__all__ = [
    # Patient
    "PatientBase",
    "PatientCreate",
    "PatientUpdate",
    "PatientResponse",
    "PatientSummary",
    "PatientDetail",
    # Consultation
    "ConsultationBase",
    "ConsultationCreate",
    "ConsultationUpdate",
    "ConsultationResponse",
    # Alert
    "AlertResponse",
    "AlertPatient",
    "AlertWithPatientResponse",
    "AlertReadResponse",
    # Threshold
    "ThresholdBase",
    "ThresholdUpsert",
    "ThresholdResponse",
    "ResolvedThresholdResponse",
    # Stats
    "StatsResponse",
]
