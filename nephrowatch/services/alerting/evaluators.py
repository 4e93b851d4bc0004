"""Metric evaluators.

Each evaluator is a pure function ``(consultation, thresholds, history)`` that
returns at most one ``AlertDecision``: the most urgent severity that applies.
Missing measurements mean the metric is not applicable; malformed numbers raise
``ValueError`` and are contained by the engine.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from nephrowatch.services.alerting.rules import (
    AlertDecision,
    AlertSeverity,
    AlertType,
    ConsultationLike,
    ThresholdLevels,
    format_cut_point,
    format_decimal,
    to_decimal,
)

CREATININE_LABELS = {
    AlertSeverity.critical: "critical",
    AlertSeverity.high: "élevé",
    AlertSeverity.warning: "anormal",
}

BLOOD_PRESSURE_LABELS = {
    AlertSeverity.critical: "critique",
    AlertSeverity.high: "élevée",
    AlertSeverity.warning: "anormale",
}

WEIGHT_LOSS_MIN_KG = Decimal("2")
WEIGHT_LOSS_WINDOW_DAYS = 14
WEIGHT_LOSS_CRITICAL_DAYS = 7
WEIGHT_LOSS_THRESHOLD_LABEL = "-2kg/14jours"

Evaluator = Callable[
    [ConsultationLike, ThresholdLevels, Sequence[ConsultationLike]],
    Optional[AlertDecision],
]


def evaluate_creatinine(
    consultation: ConsultationLike,
    thresholds: ThresholdLevels,
    history: Sequence[ConsultationLike] = (),
) -> Optional[AlertDecision]:
    value = to_decimal(consultation.creatinine)
    if value is None:
        return None

    crossed = thresholds.first_crossed(value)
    if crossed is None:
        return None
    severity, cut_point = crossed
    shown = format_decimal(value)
    return AlertDecision(
        type=AlertType.creatinine,
        severity=severity,
        message=f"Niveau de créatinine {CREATININE_LABELS[severity]}: {shown} mg/dL",
        value=shown,
        threshold=f">{format_cut_point(cut_point)} mg/dL",
    )


def evaluate_blood_pressure(
    consultation: ConsultationLike,
    thresholds: ThresholdLevels,
    history: Sequence[ConsultationLike] = (),
) -> Optional[AlertDecision]:
    if consultation.systolic_bp is None or consultation.diastolic_bp is None:
        return None
    systolic = to_decimal(consultation.systolic_bp)
    diastolic = to_decimal(consultation.diastolic_bp)
    if systolic is None or diastolic is None:
        return None

    # Systolic pressure alone drives the severity; diastolic is reported.
    crossed = thresholds.first_crossed(systolic)
    if crossed is None:
        return None
    severity, cut_point = crossed
    reading = f"{format_decimal(systolic)}/{format_decimal(diastolic)}"
    return AlertDecision(
        type=AlertType.blood_pressure,
        severity=severity,
        message=f"Tension artérielle {BLOOD_PRESSURE_LABELS[severity]}: {reading} mmHg",
        value=reading,
        threshold=f">{format_decimal(cut_point)} mmHg",
    )


def evaluate_weight_loss(
    consultation: ConsultationLike,
    thresholds: ThresholdLevels,
    history: Sequence[ConsultationLike] = (),
) -> Optional[AlertDecision]:
    current_weight = to_decimal(consultation.weight)
    if current_weight is None:
        return None

    previous = latest_prior_weighing(consultation, history)
    if previous is None:
        return None
    previous_weight = to_decimal(previous.weight)

    delta = previous_weight - current_weight
    if delta < WEIGHT_LOSS_MIN_KG:
        return None

    days = elapsed_days(previous.date, consultation.date)
    if days > WEIGHT_LOSS_WINDOW_DAYS:
        return None

    severity = (
        AlertSeverity.critical
        if days <= WEIGHT_LOSS_CRITICAL_DAYS
        else AlertSeverity.high
    )
    return AlertDecision(
        type=AlertType.weight_loss,
        severity=severity,
        message=f"Perte de poids rapide: -{delta:.1f}kg en {days} jours",
        value=format_decimal(-delta),
        threshold=WEIGHT_LOSS_THRESHOLD_LABEL,
    )


def latest_prior_weighing(
    consultation: ConsultationLike,
    history: Sequence[ConsultationLike],
) -> Optional[ConsultationLike]:
    """Most recent other consultation with a weight, dated no later than this one."""
    candidates = [
        item
        for item in history
        if item.id != consultation.id
        and to_decimal(item.weight) is not None
        and item.date <= consultation.date
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda item: item.date)


def elapsed_days(start: datetime, end: datetime) -> int:
    """Whole days between two visits, counting a started day as a full day."""
    seconds = (end - start).total_seconds()
    return math.ceil(seconds / 86400)


@dataclass(frozen=True)
class MetricRule:
    """A registered evaluator and what it needs from the engine."""

    type: AlertType
    evaluate: Evaluator
    needs_history: bool = False


DEFAULT_RULES: tuple[MetricRule, ...] = (
    MetricRule(AlertType.creatinine, evaluate_creatinine),
    MetricRule(AlertType.blood_pressure, evaluate_blood_pressure),
    MetricRule(AlertType.weight_loss, evaluate_weight_loss, needs_history=True),
)
