"""Alert repository implementations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from nephrowatch.models import Alert
from nephrowatch.services.alerting.rules import AlertDecision
from nephrowatch.services.memory import InMemoryStore


class AlertRepository(Protocol):
    async def list_alerts(
        self,
        patient_id: Optional[int] = None,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list:
        ...

    async def get_alert(self, alert_id: int):
        ...

    async def get_for_consultation(self, consultation_id: int, alert_type: str):
        ...

    async def create_alert(
        self,
        patient_id: int,
        consultation_id: Optional[int],
        decision: AlertDecision,
    ):
        ...

    async def update_alert(self, alert, decision: AlertDecision):
        ...

    async def delete_alert(self, alert) -> None:
        ...

    async def mark_as_read(self, alert_id: int):
        ...

    async def count_unread(self) -> int:
        ...


def _decision_changes(alert: Any, decision: AlertDecision) -> bool:
    return alert.severity != decision.severity.value or alert.value != decision.value


class SQLAlertRepository:
    """Alert repository backed by SQLAlchemy.

    Writes run inside a SAVEPOINT so a failed alert insert never rolls back the
    consultation that triggered it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_alerts(
        self,
        patient_id: Optional[int] = None,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Alert]:
        query = select(Alert).options(selectinload(Alert.patient))
        if patient_id is not None:
            query = query.where(Alert.patient_id == patient_id)
        if unread_only:
            query = query.where(Alert.is_read.is_(False))
        query = query.order_by(Alert.created_at.desc(), Alert.id.desc()).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_alert(self, alert_id: int) -> Optional[Alert]:
        result = await self.db.execute(select(Alert).where(Alert.id == alert_id))
        return result.scalar_one_or_none()

    async def get_for_consultation(
        self, consultation_id: int, alert_type: str
    ) -> Optional[Alert]:
        result = await self.db.execute(
            select(Alert).where(
                Alert.consultation_id == consultation_id,
                Alert.type == alert_type,
            )
        )
        return result.scalars().first()

    async def create_alert(
        self,
        patient_id: int,
        consultation_id: Optional[int],
        decision: AlertDecision,
    ) -> Alert:
        alert = Alert(
            patient_id=patient_id,
            consultation_id=consultation_id,
            type=decision.type.value,
            severity=decision.severity.value,
            message=decision.message,
            value=decision.value,
            threshold=decision.threshold,
            is_read=False,
        )
        async with self.db.begin_nested():
            self.db.add(alert)
            await self.db.flush()
        await self.db.refresh(alert)
        return alert

    async def update_alert(self, alert: Alert, decision: AlertDecision) -> Alert:
        async with self.db.begin_nested():
            if _decision_changes(alert, decision):
                alert.is_read = False
            alert.severity = decision.severity.value
            alert.message = decision.message
            alert.value = decision.value
            alert.threshold = decision.threshold
            await self.db.flush()
        return alert

    async def delete_alert(self, alert: Alert) -> None:
        async with self.db.begin_nested():
            await self.db.delete(alert)
            await self.db.flush()

    async def mark_as_read(self, alert_id: int) -> Optional[Alert]:
        alert = await self.get_alert(alert_id)
        if alert is None:
            return None
        alert.is_read = True
        await self.db.flush()
        await self.db.refresh(alert)
        return alert

    async def count_unread(self) -> int:
        total = await self.db.scalar(
            select(func.count()).select_from(Alert).where(Alert.is_read.is_(False))
        )
        return int(total or 0)


@dataclass
class InMemoryAlert:
    id: int
    patient_id: int
    consultation_id: Optional[int]
    type: str
    severity: str
    message: str
    value: str
    threshold: str
    is_read: bool
    created_at: datetime
    patient: Any = None


class InMemoryAlertRepository:
    """In-memory repository for tests and local demos."""

    def __init__(self, store: InMemoryStore | None = None):
        self.store = store or InMemoryStore()

    async def list_alerts(
        self,
        patient_id: Optional[int] = None,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[InMemoryAlert]:
        alerts = self.store.alerts
        if patient_id is not None:
            alerts = [a for a in alerts if a.patient_id == patient_id]
        if unread_only:
            alerts = [a for a in alerts if not a.is_read]
        alerts = sorted(alerts, key=lambda a: (a.created_at, a.id), reverse=True)
        for alert in alerts:
            alert.patient = self.store.patient(alert.patient_id)
        return alerts[skip : skip + limit]

    async def get_alert(self, alert_id: int) -> Optional[InMemoryAlert]:
        for alert in self.store.alerts:
            if alert.id == alert_id:
                return alert
        return None

    async def get_for_consultation(
        self, consultation_id: int, alert_type: str
    ) -> Optional[InMemoryAlert]:
        for alert in self.store.alerts:
            if alert.consultation_id == consultation_id and alert.type == alert_type:
                return alert
        return None

    async def create_alert(
        self,
        patient_id: int,
        consultation_id: Optional[int],
        decision: AlertDecision,
    ) -> InMemoryAlert:
        alert = InMemoryAlert(
            id=self.store.next_id("alerts"),
            patient_id=patient_id,
            consultation_id=consultation_id,
            type=decision.type.value,
            severity=decision.severity.value,
            message=decision.message,
            value=decision.value,
            threshold=decision.threshold,
            is_read=False,
            created_at=datetime.now(timezone.utc),
        )
        self.store.alerts.append(alert)
        return alert

    async def update_alert(self, alert: InMemoryAlert, decision: AlertDecision) -> InMemoryAlert:
        if _decision_changes(alert, decision):
            alert.is_read = False
        alert.severity = decision.severity.value
        alert.message = decision.message
        alert.value = decision.value
        alert.threshold = decision.threshold
        return alert

    async def delete_alert(self, alert: InMemoryAlert) -> None:
        self.store.alerts.remove(alert)

    async def mark_as_read(self, alert_id: int) -> Optional[InMemoryAlert]:
        alert = await self.get_alert(alert_id)
        if alert is None:
            return None
        alert.is_read = True
        return alert

    async def count_unread(self) -> int:
        return sum(1 for alert in self.store.alerts if not alert.is_read)
