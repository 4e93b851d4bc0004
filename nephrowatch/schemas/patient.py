from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from nephrowatch.schemas.alert import AlertResponse
from nephrowatch.schemas.consultation import ConsultationResponse
from nephrowatch.schemas.threshold import ThresholdResponse


class PatientBase(BaseModel):
    """Base schema for patient data."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    medical_history: list[str] = Field(default_factory=list)
    ckd_stage: int = Field(1, ge=1, le=5)


class PatientCreate(PatientBase):
    """Schema for creating a new patient."""
    pass


class PatientUpdate(BaseModel):
    """Schema for updating a patient (all fields optional)."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    medical_history: Optional[list[str]] = None
    ckd_stage: Optional[int] = Field(None, ge=1, le=5)


class PatientResponse(PatientBase):
    """Schema for patient response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime

    full_name: str
    age: Optional[int] = None


class PatientSummary(BaseModel):
    """Brief patient summary for lists and alert listings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    ckd_stage: int


class PatientDetail(PatientResponse):
    """Patient with consultations, alerts and patient-specific thresholds."""

    consultations: list[ConsultationResponse] = Field(default_factory=list)
    alerts: list[AlertResponse] = Field(default_factory=list)
    thresholds: list[ThresholdResponse] = Field(default_factory=list)
