"""Alert threshold repository implementations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nephrowatch.models import AlertThreshold
from nephrowatch.schemas.threshold import ThresholdUpsert
from nephrowatch.services.memory import InMemoryStore

logger = logging.getLogger(__name__)


class ThresholdRepository(Protocol):
    async def list_global(self) -> list:
        ...

    async def list_for_patient(self, patient_id: int) -> list:
        ...

    async def get_global(self, threshold_type: str):
        ...

    async def get_for_patient(self, patient_id: int, threshold_type: str):
        ...

    async def count(self) -> int:
        ...

    async def upsert(self, threshold: ThresholdUpsert):
        ...


class SQLThresholdRepository:
    """Threshold repository backed by SQLAlchemy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_global(self) -> list[AlertThreshold]:
        result = await self.db.execute(
            select(AlertThreshold)
            .where(AlertThreshold.is_global.is_(True))
            .order_by(AlertThreshold.type)
        )
        return list(result.scalars().all())

    async def list_for_patient(self, patient_id: int) -> list[AlertThreshold]:
        result = await self.db.execute(
            select(AlertThreshold)
            .where(AlertThreshold.patient_id == patient_id)
            .order_by(AlertThreshold.type)
        )
        return list(result.scalars().all())

    async def get_global(self, threshold_type: str) -> Optional[AlertThreshold]:
        # Most recent first so duplicate global rows never break resolution.
        result = await self.db.execute(
            select(AlertThreshold)
            .where(
                AlertThreshold.type == threshold_type,
                AlertThreshold.is_global.is_(True),
            )
            .order_by(AlertThreshold.updated_at.desc(), AlertThreshold.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def get_for_patient(
        self, patient_id: int, threshold_type: str
    ) -> Optional[AlertThreshold]:
        result = await self.db.execute(
            select(AlertThreshold)
            .where(
                AlertThreshold.type == threshold_type,
                AlertThreshold.patient_id == patient_id,
            )
            .order_by(AlertThreshold.updated_at.desc(), AlertThreshold.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def count(self) -> int:
        total = await self.db.scalar(select(func.count()).select_from(AlertThreshold))
        return int(total or 0)

    async def upsert(self, threshold: ThresholdUpsert) -> AlertThreshold:
        existing = await self._get_scoped(threshold)
        if existing is None:
            row = AlertThreshold(
                type=threshold.type.value,
                patient_id=threshold.patient_id,
                is_global=threshold.patient_id is None,
                critical_value=threshold.critical_value,
                high_value=threshold.high_value,
                warning_value=threshold.warning_value,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(row)
                    await self.db.flush()
            except IntegrityError:
                logger.info(
                    "Threshold %s (patient_id=%s) was created concurrently; updating it",
                    threshold.type.value,
                    threshold.patient_id,
                )
                existing = await self._get_scoped(threshold)
                if existing is None:
                    raise
            else:
                await self.db.refresh(row)
                return row

        existing.critical_value = threshold.critical_value
        existing.high_value = threshold.high_value
        existing.warning_value = threshold.warning_value
        await self.db.flush()
        await self.db.refresh(existing)
        return existing

    async def _get_scoped(self, threshold: ThresholdUpsert) -> Optional[AlertThreshold]:
        if threshold.patient_id is None:
            return await self.get_global(threshold.type.value)
        return await self.get_for_patient(threshold.patient_id, threshold.type.value)


@dataclass
class InMemoryThreshold:
    id: int
    type: str
    patient_id: Optional[int]
    critical_value: Optional[Decimal]
    high_value: Optional[Decimal]
    warning_value: Optional[Decimal]
    is_global: bool
    created_at: datetime
    updated_at: datetime


class InMemoryThresholdRepository:
    """In-memory repository for tests and local demos."""

    def __init__(self, store: InMemoryStore | None = None):
        self.store = store or InMemoryStore()

    async def list_global(self) -> list[InMemoryThreshold]:
        rows = [t for t in self.store.thresholds if t.is_global]
        return sorted(rows, key=lambda t: t.type)

    async def list_for_patient(self, patient_id: int) -> list[InMemoryThreshold]:
        rows = [t for t in self.store.thresholds if t.patient_id == patient_id]
        return sorted(rows, key=lambda t: t.type)

    async def get_global(self, threshold_type: str) -> Optional[InMemoryThreshold]:
        return self._latest(
            t for t in self.store.thresholds if t.is_global and t.type == threshold_type
        )

    async def get_for_patient(
        self, patient_id: int, threshold_type: str
    ) -> Optional[InMemoryThreshold]:
        return self._latest(
            t
            for t in self.store.thresholds
            if t.patient_id == patient_id and t.type == threshold_type
        )

    async def count(self) -> int:
        return len(self.store.thresholds)

    async def upsert(self, threshold: ThresholdUpsert) -> InMemoryThreshold:
        if threshold.patient_id is None:
            existing = await self.get_global(threshold.type.value)
        else:
            existing = await self.get_for_patient(threshold.patient_id, threshold.type.value)

        now = datetime.now(timezone.utc)
        if existing is not None:
            existing.critical_value = threshold.critical_value
            existing.high_value = threshold.high_value
            existing.warning_value = threshold.warning_value
            existing.updated_at = now
            return existing

        row = InMemoryThreshold(
            id=self.store.next_id("thresholds"),
            type=threshold.type.value,
            patient_id=threshold.patient_id,
            critical_value=threshold.critical_value,
            high_value=threshold.high_value,
            warning_value=threshold.warning_value,
            is_global=threshold.patient_id is None,
            created_at=now,
            updated_at=now,
        )
        self.store.thresholds.append(row)
        return row

    @staticmethod
    def _latest(rows) -> Optional[InMemoryThreshold]:
        ordered = sorted(rows, key=lambda t: (t.updated_at, t.id), reverse=True)
        return ordered[0] if ordered else None
