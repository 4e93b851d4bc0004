"""Alert orchestrator run after each consultation write.

One pass per consultation: make sure default thresholds exist, then for each
registered metric resolve its cut points, evaluate, and persist at most one
alert. Every failure is logged and contained; a consultation is never rejected
because alerting went wrong.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from nephrowatch.logging import consultation_id_var
from nephrowatch.services.alerting.evaluators import DEFAULT_RULES, MetricRule
from nephrowatch.services.alerting.resolver import (
    ThresholdResolver,
    ensure_default_thresholds,
)

if TYPE_CHECKING:
    from nephrowatch.services.alerts import AlertRepository
    from nephrowatch.services.consultations import ConsultationRepository
    from nephrowatch.services.thresholds import ThresholdRepository

logger = logging.getLogger(__name__)


class AlertEngine:
    """Evaluate a consultation against every metric rule and store the alerts."""

    def __init__(
        self,
        thresholds: "ThresholdRepository",
        consultations: "ConsultationRepository",
        alerts: "AlertRepository",
        rules: Iterable[MetricRule] = DEFAULT_RULES,
    ):
        self.thresholds = thresholds
        self.consultations = consultations
        self.alerts = alerts
        self.rules: tuple[MetricRule, ...] = tuple(rules)
        self.resolver = ThresholdResolver(thresholds)

    async def on_consultation_created(self, consultation: Any) -> list:
        """Create alerts for a freshly recorded consultation.

        Returns the alerts written during this pass. Never raises.
        """
        return await self._run(consultation)

    async def on_consultation_updated(self, consultation: Any) -> list:
        """Re-evaluate an edited consultation.

        Alerts already stored for the same consultation and metric are updated
        in place; an alert whose metric no longer triggers is removed.
        """
        return await self._run(consultation)

    async def _run(self, consultation: Any) -> list:
        token = consultation_id_var.set(getattr(consultation, "id", None))
        try:
            await self._ensure_defaults()
            written = []
            history: Sequence[Any] | None = None
            for rule in self.rules:
                try:
                    if rule.needs_history and history is None:
                        history = await self.consultations.get_by_patient(
                            consultation.patient_id
                        )
                    alert = await self._apply_rule(rule, consultation, history or ())
                except Exception:
                    logger.exception("Alert rule %s failed", rule.type.value)
                    continue
                if alert is not None:
                    written.append(alert)
            logger.info(
                "Alert pass finished for patient %s: %d alert(s) written",
                consultation.patient_id,
                len(written),
            )
            return written
        except Exception:
            logger.exception("Alert pass aborted")
            return []
        finally:
            consultation_id_var.reset(token)

    async def _ensure_defaults(self) -> None:
        try:
            await ensure_default_thresholds(self.thresholds)
        except Exception:
            logger.exception("Default threshold bootstrap failed; continuing with stored thresholds")

    async def _apply_rule(
        self,
        rule: MetricRule,
        consultation: Any,
        history: Sequence[Any],
    ):
        levels = await self.resolver.resolve(rule.type, consultation.patient_id)
        decision = rule.evaluate(consultation, levels, history)

        existing = None
        if consultation.id is not None:
            existing = await self.alerts.get_for_consultation(
                consultation.id, rule.type.value
            )
        if decision is None:
            if existing is not None:
                logger.info(
                    "Clearing %s alert %s: the consultation no longer triggers it",
                    rule.type.value,
                    existing.id,
                )
                await self.alerts.delete_alert(existing)
            return None

        if existing is not None:
            logger.info(
                "Updating %s alert %s (%s)",
                decision.type.value,
                existing.id,
                decision.severity.value,
            )
            return await self.alerts.update_alert(existing, decision)

        logger.info(
            "Raising %s alert (%s) for patient %s",
            decision.type.value,
            decision.severity.value,
            consultation.patient_id,
        )
        return await self.alerts.create_alert(
            patient_id=consultation.patient_id,
            consultation_id=consultation.id,
            decision=decision,
        )
