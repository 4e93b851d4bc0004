"""Repositories and the alert engine for NephroWatch.

This package intentionally avoids eager imports to prevent circular import
chains between schemas and the alerting vocabulary.
"""

from importlib import import_module

__all__ = [
    # Alerting
    "AlertEngine",
    # Repositories
    "PatientRepository",
    "SQLPatientRepository",
    "InMemoryPatientRepository",
    "ConsultationRepository",
    "SQLConsultationRepository",
    "InMemoryConsultationRepository",
    "AlertRepository",
    "SQLAlertRepository",
    "InMemoryAlertRepository",
    "ThresholdRepository",
    "SQLThresholdRepository",
    "InMemoryThresholdRepository",
    "InMemoryStore",
]

_LAZY_IMPORTS = {
    "AlertEngine": ("nephrowatch.services.alerting.engine", "AlertEngine"),
    "PatientRepository": ("nephrowatch.services.patients", "PatientRepository"),
    "SQLPatientRepository": ("nephrowatch.services.patients", "SQLPatientRepository"),
    "InMemoryPatientRepository": (
        "nephrowatch.services.patients",
        "InMemoryPatientRepository",
    ),
    "ConsultationRepository": (
        "nephrowatch.services.consultations",
        "ConsultationRepository",
    ),
    "SQLConsultationRepository": (
        "nephrowatch.services.consultations",
        "SQLConsultationRepository",
    ),
    "InMemoryConsultationRepository": (
        "nephrowatch.services.consultations",
        "InMemoryConsultationRepository",
    ),
    "AlertRepository": ("nephrowatch.services.alerts", "AlertRepository"),
    "SQLAlertRepository": ("nephrowatch.services.alerts", "SQLAlertRepository"),
    "InMemoryAlertRepository": ("nephrowatch.services.alerts", "InMemoryAlertRepository"),
    "ThresholdRepository": ("nephrowatch.services.thresholds", "ThresholdRepository"),
    "SQLThresholdRepository": ("nephrowatch.services.thresholds", "SQLThresholdRepository"),
    "InMemoryThresholdRepository": (
        "nephrowatch.services.thresholds",
        "InMemoryThresholdRepository",
    ),
    "InMemoryStore": ("nephrowatch.services.memory", "InMemoryStore"),
}


def __getattr__(name: str):
    target = _LAZY_IMPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    return getattr(import_module(module_name), attr_name)
