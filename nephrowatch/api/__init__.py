"""API Routes for NephroWatch."""

from nephrowatch.api import (
    alerts,
    consultations,
    health,
    patients,
    stats,
    thresholds,
)

__all__ = [
    "alerts",
    "consultations",
    "health",
    "patients",
    "stats",
    "thresholds",
]
