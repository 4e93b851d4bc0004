"""Shared vocabulary of the alert engine: metric types, severities, cut points."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any, Optional, Protocol


class AlertType(StrEnum):
    creatinine = "creatinine"
    blood_pressure = "blood_pressure"
    weight_loss = "weight_loss"


class AlertSeverity(StrEnum):
    """Alert urgency with a total order: critical > high > warning.

    Comparisons use the clinical rank, never the string value.
    """

    warning = "warning"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def descending(cls) -> tuple["AlertSeverity", ...]:
        """Severities from most to least urgent."""
        return tuple(sorted(cls, reverse=True))


_SEVERITY_RANK = {
    AlertSeverity.warning: 1,
    AlertSeverity.high: 2,
    AlertSeverity.critical: 3,
}


@dataclass(frozen=True)
class ThresholdLevels:
    """Resolved cut points for one metric; a ``None`` level is disabled."""

    critical: Optional[Decimal] = None
    high: Optional[Decimal] = None
    warning: Optional[Decimal] = None
    source: str = "none"

    def for_severity(self, severity: AlertSeverity) -> Optional[Decimal]:
        return getattr(self, severity.value)

    def first_crossed(self, value: Decimal) -> Optional[tuple[AlertSeverity, Decimal]]:
        """Return the most urgent level whose cut point ``value`` reaches."""
        for severity in AlertSeverity.descending():
            cut_point = self.for_severity(severity)
            if cut_point is not None and value >= cut_point:
                return severity, cut_point
        return None


@dataclass(frozen=True)
class AlertDecision:
    """Outcome of one evaluator: what to persist as an alert."""

    type: AlertType
    severity: AlertSeverity
    message: str
    value: str
    threshold: str


class ConsultationLike(Protocol):
    id: Any
    patient_id: Any
    date: Any
    creatinine: Any
    weight: Any
    systolic_bp: Any
    diastolic_bp: Any


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a decimal-as-string field; empty values are treated as absent.

    Raises:
        ValueError: If the value is present but not numeric.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a numeric value: {value!r}") from exc
    if not parsed.is_finite():
        raise ValueError(f"Not a finite value: {value!r}")
    return parsed


def format_decimal(value: Decimal) -> str:
    """Render a decimal without trailing zeros or exponent (``70.00`` -> ``70``)."""
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "") else text


def format_cut_point(value: Decimal, min_places: int = 1) -> str:
    """Render a cut point with at least ``min_places`` decimals (``3`` -> ``3.0``)."""
    normalized = value.normalize()
    if normalized.as_tuple().exponent > -min_places:
        normalized = normalized.quantize(Decimal(1).scaleb(-min_places))
    return format(normalized, "f")
