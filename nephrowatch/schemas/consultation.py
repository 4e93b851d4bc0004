from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ConsultationBase(BaseModel):
    """Vitals recorded during a consultation; every measurement is optional."""

    creatinine: Optional[Decimal] = Field(
        None, ge=0, max_digits=4, decimal_places=2, description="Creatinine in mg/dL"
    )
    weight: Optional[Decimal] = Field(
        None, gt=0, max_digits=5, decimal_places=2, description="Weight in kg"
    )
    systolic_bp: Optional[int] = Field(None, ge=30, le=300)
    diastolic_bp: Optional[int] = Field(None, ge=20, le=250)
    notes: Optional[str] = None


class ConsultationCreate(ConsultationBase):
    """Schema for recording a new consultation."""

    patient_id: int
    date: Optional[datetime] = Field(
        None, description="Visit timestamp; defaults to now. Naive values are read as UTC."
    )
    doctor_name: Optional[str] = Field(None, min_length=1, max_length=200)

    normalize_date = field_validator("date")(_as_utc)


class ConsultationUpdate(BaseModel):
    """Schema for correcting a consultation (all fields optional)."""

    date: Optional[datetime] = None
    creatinine: Optional[Decimal] = Field(None, ge=0, max_digits=4, decimal_places=2)
    weight: Optional[Decimal] = Field(None, gt=0, max_digits=5, decimal_places=2)
    systolic_bp: Optional[int] = Field(None, ge=30, le=300)
    diastolic_bp: Optional[int] = Field(None, ge=20, le=250)
    notes: Optional[str] = None
    doctor_name: Optional[str] = Field(None, min_length=1, max_length=200)

    normalize_date = field_validator("date")(_as_utc)


class ConsultationResponse(ConsultationBase):
    """Schema for consultation response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    date: datetime
    doctor_name: str
    created_at: datetime
