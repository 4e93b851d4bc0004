"""Shared backing store for the in-memory repositories (tests and local demos)."""

from __future__ import annotations

from collections import defaultdict
from typing import Any


class InMemoryStore:
    """Holds every collection so in-memory repositories can see each other's rows."""

    def __init__(self):
        self.patients: list[Any] = []
        self.consultations: list[Any] = []
        self.alerts: list[Any] = []
        self.thresholds: list[Any] = []
        self._next_ids: dict[str, int] = defaultdict(lambda: 1)

    def next_id(self, collection: str) -> int:
        value = self._next_ids[collection]
        self._next_ids[collection] = value + 1
        return value

    def patient(self, patient_id: int) -> Any | None:
        for patient in self.patients:
            if patient.id == patient_id:
                return patient
        return None

    def clear(self) -> None:
        self.patients.clear()
        self.consultations.clear()
        self.alerts.clear()
        self.thresholds.clear()
        self._next_ids.clear()
