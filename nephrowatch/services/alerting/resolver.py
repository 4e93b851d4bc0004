"""Threshold resolution: one precedence policy shared by every evaluator.

For each severity level the patient-specific cut point wins when it is set,
otherwise the global one applies. Hardcoded defaults are used only when neither
a patient-specific nor a global row exists for the metric.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from nephrowatch.schemas.threshold import ThresholdUpsert
from nephrowatch.services.alerting.rules import AlertType, ThresholdLevels

if TYPE_CHECKING:
    from nephrowatch.services.thresholds import ThresholdRepository

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS: dict[AlertType, ThresholdLevels] = {
    AlertType.creatinine: ThresholdLevels(
        critical=Decimal("3.0"),
        high=Decimal("2.0"),
        warning=Decimal("1.3"),
        source="default",
    ),
    # Systolic pressure in mmHg.
    AlertType.blood_pressure: ThresholdLevels(
        critical=Decimal("180"),
        high=Decimal("160"),
        warning=Decimal("140"),
        source="default",
    ),
}

_LEVEL_COLUMNS = (
    ("critical", "critical_value"),
    ("high", "high_value"),
    ("warning", "warning_value"),
)


class ThresholdResolver:
    """Resolve the cut points that apply to a metric for a patient."""

    def __init__(self, repository: "ThresholdRepository"):
        self.repository = repository

    async def resolve(
        self,
        alert_type: AlertType | str,
        patient_id: Optional[int] = None,
    ) -> ThresholdLevels:
        alert_type = AlertType(alert_type)
        patient_row = None
        if patient_id is not None:
            patient_row = await self.repository.get_for_patient(patient_id, alert_type.value)
        global_row = await self.repository.get_global(alert_type.value)

        if patient_row is None and global_row is None:
            return DEFAULT_THRESHOLDS.get(alert_type, ThresholdLevels())

        return merge_levels(patient_row, global_row)


def merge_levels(patient_row: Any, global_row: Any) -> ThresholdLevels:
    """Combine a patient row and a global row level by level."""
    levels: dict[str, Optional[Decimal]] = {}
    sources: set[str] = set()
    for level, column in _LEVEL_COLUMNS:
        patient_value = _level_value(patient_row, column)
        if patient_value is not None:
            levels[level] = patient_value
            sources.add("patient")
            continue
        global_value = _level_value(global_row, column)
        levels[level] = global_value
        if global_value is not None:
            sources.add("global")

    if len(sources) > 1:
        source = "mixed"
    elif sources:
        source = sources.pop()
    else:
        source = "patient" if patient_row is not None else "global"
    return ThresholdLevels(source=source, **levels)


def _level_value(row: Any, column: str) -> Optional[Decimal]:
    if row is None:
        return None
    value = getattr(row, column, None)
    if value is None:
        return None
    return Decimal(str(value))


async def ensure_default_thresholds(repository: "ThresholdRepository") -> int:
    """Create the global default row for every metric that has none.

    Patient-specific rows never stand in for a global row. Returns the number
    of rows created; a second call is a no-op.
    """
    created = 0
    for alert_type, levels in DEFAULT_THRESHOLDS.items():
        if await repository.get_global(alert_type.value) is not None:
            continue
        await repository.upsert(
            ThresholdUpsert(
                type=alert_type,
                critical_value=levels.critical,
                high_value=levels.high,
                warning_value=levels.warning,
            )
        )
        created += 1
    if created:
        logger.info("Seeded %d global default threshold(s)", created)
    return created
