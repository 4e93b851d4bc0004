from nephrowatch.models.alert import Alert
from nephrowatch.models.alert_threshold import AlertThreshold
from nephrowatch.models.base import Base, TimestampMixin
from nephrowatch.models.consultation import Consultation
from nephrowatch.models.patient import Patient

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Core Models
    "Patient",
    "Consultation",
    "Alert",
    "AlertThreshold",
]
