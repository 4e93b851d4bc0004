"""Patient repository implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nephrowatch.models import Patient
from nephrowatch.schemas.patient import PatientCreate, PatientUpdate
from nephrowatch.services.memory import InMemoryStore

_REQUIRED_FIELDS = {"first_name", "last_name", "medical_history", "ckd_stage"}


class PatientRepository(Protocol):
    async def list_patients(self, search: Optional[str], skip: int, limit: int) -> list:
        ...

    async def get_patient(self, patient_id: int):
        ...

    async def get_with_relations(self, patient_id: int):
        ...

    async def create_patient(self, patient: PatientCreate):
        ...

    async def update_patient(self, patient_id: int, changes: PatientUpdate):
        ...

    async def delete_patient(self, patient_id: int) -> bool:
        ...

    async def count(self) -> int:
        ...


class SQLPatientRepository:
    """Patient repository backed by SQLAlchemy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_patients(
        self, search: Optional[str], skip: int, limit: int
    ) -> list[Patient]:
        query = select(Patient)
        if search:
            search_filter = f"%{search.lower()}%"
            query = query.where(
                (Patient.first_name.ilike(search_filter))
                | (Patient.last_name.ilike(search_filter))
            )
        query = query.order_by(Patient.last_name, Patient.first_name).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_patient(self, patient_id: int) -> Optional[Patient]:
        result = await self.db.execute(select(Patient).where(Patient.id == patient_id))
        return result.scalar_one_or_none()

    async def get_with_relations(self, patient_id: int) -> Optional[Patient]:
        result = await self.db.execute(
            select(Patient)
            .options(
                selectinload(Patient.consultations),
                selectinload(Patient.alerts),
                selectinload(Patient.thresholds),
            )
            .where(Patient.id == patient_id)
        )
        patient = result.scalar_one_or_none()
        if patient is not None:
            patient.consultations.sort(key=lambda c: (c.date, c.id), reverse=True)
            patient.alerts.sort(key=lambda a: (a.created_at, a.id), reverse=True)
        return patient

    async def create_patient(self, patient: PatientCreate) -> Patient:
        new_patient = Patient(**patient.model_dump())
        self.db.add(new_patient)
        await self.db.flush()
        await self.db.refresh(new_patient)
        return new_patient

    async def update_patient(
        self, patient_id: int, changes: PatientUpdate
    ) -> Optional[Patient]:
        patient = await self.get_patient(patient_id)
        if patient is None:
            return None
        for key, value in changes.model_dump(exclude_unset=True).items():
            if value is None and key in _REQUIRED_FIELDS:
                continue
            setattr(patient, key, value)
        await self.db.flush()
        await self.db.refresh(patient)
        return patient

    async def delete_patient(self, patient_id: int) -> bool:
        patient = await self.get_patient(patient_id)
        if not patient:
            return False
        # Consultations, alerts and thresholds go with the ON DELETE CASCADE keys.
        await self.db.delete(patient)
        await self.db.flush()
        return True

    async def count(self) -> int:
        total = await self.db.scalar(select(func.count()).select_from(Patient))
        return int(total or 0)


@dataclass
class InMemoryPatient:
    id: int
    first_name: str
    last_name: str
    date_of_birth: Optional[date]
    gender: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    emergency_contact: Optional[str]
    medical_history: list[str]
    ckd_stage: int
    created_at: datetime
    updated_at: datetime
    consultations: list = field(default_factory=list)
    alerts: list = field(default_factory=list)
    thresholds: list = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def age(self) -> Optional[int]:
        if not self.date_of_birth:
            return None
        today = date.today()
        return (
            today.year
            - self.date_of_birth.year
            - ((today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day))
        )


class InMemoryPatientRepository:
    """In-memory repository for tests and local demos."""

    def __init__(self, store: InMemoryStore | None = None):
        self.store = store or InMemoryStore()

    async def list_patients(
        self, search: Optional[str], skip: int, limit: int
    ) -> list[InMemoryPatient]:
        patients = self.store.patients
        if search:
            needle = search.lower()
            patients = [
                p
                for p in patients
                if needle in p.first_name.lower() or needle in p.last_name.lower()
            ]
        patients = sorted(patients, key=lambda p: (p.last_name, p.first_name))
        return patients[skip : skip + limit]

    async def get_patient(self, patient_id: int) -> Optional[InMemoryPatient]:
        return self.store.patient(patient_id)

    async def get_with_relations(self, patient_id: int) -> Optional[InMemoryPatient]:
        patient = self.store.patient(patient_id)
        if patient is None:
            return None
        patient.consultations = sorted(
            (c for c in self.store.consultations if c.patient_id == patient_id),
            key=lambda c: (c.date, c.id),
            reverse=True,
        )
        patient.alerts = sorted(
            (a for a in self.store.alerts if a.patient_id == patient_id),
            key=lambda a: (a.created_at, a.id),
            reverse=True,
        )
        patient.thresholds = [t for t in self.store.thresholds if t.patient_id == patient_id]
        return patient

    async def create_patient(self, patient: PatientCreate) -> InMemoryPatient:
        now = datetime.now(timezone.utc)
        new_patient = InMemoryPatient(
            id=self.store.next_id("patients"),
            created_at=now,
            updated_at=now,
            **patient.model_dump(),
        )
        self.store.patients.append(new_patient)
        return new_patient

    async def update_patient(
        self, patient_id: int, changes: PatientUpdate
    ) -> Optional[InMemoryPatient]:
        patient = self.store.patient(patient_id)
        if patient is None:
            return None
        for key, value in changes.model_dump(exclude_unset=True).items():
            if value is None and key in _REQUIRED_FIELDS:
                continue
            setattr(patient, key, value)
        patient.updated_at = datetime.now(timezone.utc)
        return patient

    async def delete_patient(self, patient_id: int) -> bool:
        patient = self.store.patient(patient_id)
        if patient is None:
            return False
        self.store.patients.remove(patient)
        self.store.consultations[:] = [
            c for c in self.store.consultations if c.patient_id != patient_id
        ]
        self.store.alerts[:] = [a for a in self.store.alerts if a.patient_id != patient_id]
        self.store.thresholds[:] = [
            t for t in self.store.thresholds if t.patient_id != patient_id
        ]
        return True

    async def count(self) -> int:
        return len(self.store.patients)
