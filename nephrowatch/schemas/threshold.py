from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nephrowatch.services.alerting.rules import AlertType


class ThresholdBase(BaseModel):
    """Cut points for one metric type."""

    type: AlertType
    critical_value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    high_value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    warning_value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class ThresholdUpsert(ThresholdBase):
    """Create or update the threshold for ``(type, scope)``.

    The scope is global when ``patient_id`` is omitted.
    """

    patient_id: Optional[int] = None
    is_global: Optional[bool] = None

    @model_validator(mode="after")
    def validate_scope(self) -> "ThresholdUpsert":
        if self.patient_id is not None and self.is_global:
            raise ValueError("A patient-specific threshold cannot be global.")
        if self.patient_id is None and self.is_global is False:
            raise ValueError("patient_id is required for a patient-specific threshold.")
        self.is_global = self.patient_id is None
        return self


class ThresholdResponse(ThresholdBase):
    """Schema for a stored threshold."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: Optional[int] = None
    is_global: bool
    created_at: datetime
    updated_at: datetime


class ResolvedThresholdResponse(BaseModel):
    """Cut points the alert engine would apply for a metric and patient."""

    type: AlertType
    patient_id: Optional[int] = None
    critical: Optional[Decimal] = None
    high: Optional[Decimal] = None
    warning: Optional[Decimal] = None
    source: str
