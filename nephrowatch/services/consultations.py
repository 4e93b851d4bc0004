"""Consultation repository implementations.

``get_by_patient`` is the history query consumed by the alert engine: it returns
a plain list (never a live cursor) ordered by visit date, most recent first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nephrowatch.config import settings
from nephrowatch.models import Consultation, Patient
from nephrowatch.schemas.consultation import ConsultationCreate, ConsultationUpdate
from nephrowatch.services.memory import InMemoryStore

_REQUIRED_FIELDS = {"date", "doctor_name"}


class ConsultationRepository(Protocol):
    async def list_consultations(self, skip: int, limit: int) -> list:
        ...

    async def list_recent(self, limit: int) -> list:
        ...

    async def get_by_patient(self, patient_id: int) -> list:
        ...

    async def get_consultation(self, consultation_id: int):
        ...

    async def create_consultation(self, consultation: ConsultationCreate):
        ...

    async def update_consultation(
        self, consultation_id: int, changes: ConsultationUpdate
    ):
        ...

    async def delete_consultation(self, consultation_id: int) -> bool:
        ...

    async def count_between(self, start: datetime, end: datetime) -> int:
        ...


class SQLConsultationRepository:
    """Consultation repository backed by SQLAlchemy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_consultations(self, skip: int, limit: int) -> list[Consultation]:
        result = await self.db.execute(
            select(Consultation)
            .order_by(Consultation.date.desc(), Consultation.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_recent(self, limit: int) -> list[Consultation]:
        return await self.list_consultations(skip=0, limit=limit)

    async def get_by_patient(self, patient_id: int) -> list[Consultation]:
        result = await self.db.execute(
            select(Consultation)
            .where(Consultation.patient_id == patient_id)
            .order_by(Consultation.date.desc(), Consultation.id.desc())
        )
        return list(result.scalars().all())

    async def get_consultation(self, consultation_id: int) -> Optional[Consultation]:
        result = await self.db.execute(
            select(Consultation).where(Consultation.id == consultation_id)
        )
        return result.scalar_one_or_none()

    async def create_consultation(self, consultation: ConsultationCreate) -> Consultation:
        patient_result = await self.db.execute(
            select(Patient.id).where(Patient.id == consultation.patient_id)
        )
        if patient_result.scalar_one_or_none() is None:
            raise ValueError("Patient not found")

        new_consultation = Consultation(
            patient_id=consultation.patient_id,
            date=consultation.date or datetime.now(timezone.utc),
            creatinine=consultation.creatinine,
            weight=consultation.weight,
            systolic_bp=consultation.systolic_bp,
            diastolic_bp=consultation.diastolic_bp,
            notes=consultation.notes or "",
            doctor_name=consultation.doctor_name or settings.default_doctor_name,
        )
        self.db.add(new_consultation)
        await self.db.flush()
        await self.db.refresh(new_consultation)
        return new_consultation

    async def update_consultation(
        self, consultation_id: int, changes: ConsultationUpdate
    ) -> Optional[Consultation]:
        consultation = await self.get_consultation(consultation_id)
        if consultation is None:
            return None
        for key, value in changes.model_dump(exclude_unset=True).items():
            if value is None and key in _REQUIRED_FIELDS:
                continue
            setattr(consultation, key, value)
        await self.db.flush()
        await self.db.refresh(consultation)
        return consultation

    async def delete_consultation(self, consultation_id: int) -> bool:
        consultation = await self.get_consultation(consultation_id)
        if not consultation:
            return False
        await self.db.delete(consultation)
        await self.db.flush()
        return True

    async def count_between(self, start: datetime, end: datetime) -> int:
        total = await self.db.scalar(
            select(func.count())
            .select_from(Consultation)
            .where(Consultation.date >= start, Consultation.date < end)
        )
        return int(total or 0)


@dataclass
class InMemoryConsultation:
    id: int
    patient_id: int
    date: datetime
    creatinine: Optional[Decimal]
    weight: Optional[Decimal]
    systolic_bp: Optional[int]
    diastolic_bp: Optional[int]
    notes: Optional[str]
    doctor_name: str
    created_at: datetime


class InMemoryConsultationRepository:
    """In-memory repository for tests and local demos."""

    def __init__(self, store: InMemoryStore | None = None):
        self.store = store or InMemoryStore()

    def _ordered(self, rows) -> list[InMemoryConsultation]:
        return sorted(rows, key=lambda c: (c.date, c.id), reverse=True)

    async def list_consultations(self, skip: int, limit: int) -> list[InMemoryConsultation]:
        return self._ordered(self.store.consultations)[skip : skip + limit]

    async def list_recent(self, limit: int) -> list[InMemoryConsultation]:
        return await self.list_consultations(skip=0, limit=limit)

    async def get_by_patient(self, patient_id: int) -> list[InMemoryConsultation]:
        return self._ordered(
            c for c in self.store.consultations if c.patient_id == patient_id
        )

    async def get_consultation(self, consultation_id: int) -> Optional[InMemoryConsultation]:
        for consultation in self.store.consultations:
            if consultation.id == consultation_id:
                return consultation
        return None

    async def create_consultation(
        self, consultation: ConsultationCreate
    ) -> InMemoryConsultation:
        if self.store.patient(consultation.patient_id) is None:
            raise ValueError("Patient not found")
        now = datetime.now(timezone.utc)
        new_consultation = InMemoryConsultation(
            id=self.store.next_id("consultations"),
            patient_id=consultation.patient_id,
            date=consultation.date or now,
            creatinine=consultation.creatinine,
            weight=consultation.weight,
            systolic_bp=consultation.systolic_bp,
            diastolic_bp=consultation.diastolic_bp,
            notes=consultation.notes or "",
            doctor_name=consultation.doctor_name or settings.default_doctor_name,
            created_at=now,
        )
        self.store.consultations.append(new_consultation)
        return new_consultation

    async def update_consultation(
        self, consultation_id: int, changes: ConsultationUpdate
    ) -> Optional[InMemoryConsultation]:
        consultation = await self.get_consultation(consultation_id)
        if consultation is None:
            return None
        for key, value in changes.model_dump(exclude_unset=True).items():
            if value is None and key in _REQUIRED_FIELDS:
                continue
            setattr(consultation, key, value)
        return consultation

    async def delete_consultation(self, consultation_id: int) -> bool:
        for idx, consultation in enumerate(self.store.consultations):
            if consultation.id == consultation_id:
                del self.store.consultations[idx]
                for alert in self.store.alerts:
                    if alert.consultation_id == consultation_id:
                        alert.consultation_id = None
                return True
        return False

    async def count_between(self, start: datetime, end: datetime) -> int:
        return sum(1 for c in self.store.consultations if start <= c.date < end)
