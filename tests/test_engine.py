import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from nephrowatch.schemas.consultation import ConsultationUpdate
from nephrowatch.schemas.threshold import ThresholdUpsert
from nephrowatch.services.alerting.engine import AlertEngine
from nephrowatch.services.alerting.evaluators import DEFAULT_RULES, MetricRule
from nephrowatch.services.alerting.rules import AlertType


@pytest.mark.anyio
async def test_stage_four_patient_gets_two_critical_alerts_and_defaults_are_seeded(
    alert_engine, make_patient, make_consultation, alert_repository, threshold_repository
):
    patient = await make_patient(ckd_stage=4)
    consultation = await make_consultation(
        patient.id,
        creatinine=Decimal("3.2"),
        systolic_bp=185,
        diastolic_bp=110,
        weight=Decimal("72.1"),
    )

    written = await alert_engine.on_consultation_created(consultation)

    alerts = await alert_repository.list_alerts(patient_id=patient.id)
    assert len(written) == len(alerts) == 2
    by_type = {alert.type: alert for alert in alerts}
    assert set(by_type) == {"creatinine", "blood_pressure"}
    assert by_type["creatinine"].severity == "critical"
    assert by_type["creatinine"].threshold == ">3.0 mg/dL"
    assert by_type["blood_pressure"].severity == "critical"
    assert by_type["blood_pressure"].value == "185/110"
    for alert in alerts:
        assert alert.consultation_id == consultation.id
        assert alert.is_read is False
        assert alert.created_at is not None

    seeded = {row.type for row in await threshold_repository.list_global()}
    assert seeded == {"creatinine", "blood_pressure"}


@pytest.mark.anyio
async def test_partial_vitals_produce_only_applicable_alerts(
    alert_engine, make_patient, make_consultation, alert_repository
):
    patient = await make_patient()
    consultation = await make_consultation(patient.id, creatinine=Decimal("2.1"))

    written = await alert_engine.on_consultation_created(consultation)

    assert [alert.type for alert in written] == ["creatinine"]
    assert written[0].severity == "high"
    assert await alert_repository.count_unread() == 1


@pytest.mark.anyio
async def test_normal_consultation_raises_nothing(alert_engine, make_patient, make_consultation):
    patient = await make_patient()
    consultation = await make_consultation(
        patient.id,
        creatinine=Decimal("0.9"),
        systolic_bp=120,
        diastolic_bp=80,
        weight=Decimal("70"),
    )

    assert await alert_engine.on_consultation_created(consultation) == []


@pytest.mark.anyio
async def test_weight_loss_uses_patient_history(
    alert_engine, make_patient, make_consultation, alert_repository
):
    patient = await make_patient()
    start = datetime(2026, 9, 1, 9, 0, tzinfo=timezone.utc)
    first = await make_consultation(patient.id, date=start, weight=Decimal("70"))
    await alert_engine.on_consultation_created(first)
    second = await make_consultation(
        patient.id, date=start + timedelta(days=6), weight=Decimal("67.5")
    )

    written = await alert_engine.on_consultation_created(second)

    assert len(written) == 1
    assert written[0].type == "weight_loss"
    assert written[0].severity == "critical"
    assert written[0].value == "-2.5"
    assert written[0].consultation_id == second.id


@pytest.mark.anyio
async def test_patient_thresholds_override_global(
    alert_engine, make_patient, make_consultation, threshold_repository
):
    patient = await make_patient()
    await threshold_repository.upsert(
        ThresholdUpsert(
            type=AlertType.creatinine,
            patient_id=patient.id,
            critical_value=Decimal("2.0"),
        )
    )
    consultation = await make_consultation(patient.id, creatinine=Decimal("2.2"))

    written = await alert_engine.on_consultation_created(consultation)

    assert written[0].severity == "critical"
    assert written[0].threshold == ">2.0 mg/dL"
    seeded = {row.type for row in await threshold_repository.list_global()}
    assert seeded == {"creatinine", "blood_pressure"}


@pytest.mark.anyio
async def test_patient_override_does_not_suppress_global_defaults(
    alert_engine, make_patient, make_consultation, threshold_repository
):
    patient = await make_patient()
    await threshold_repository.upsert(
        ThresholdUpsert(
            type=AlertType.creatinine,
            patient_id=patient.id,
            critical_value=Decimal("5"),
        )
    )
    consultation = await make_consultation(
        patient.id, creatinine=Decimal("3.2"), systolic_bp=150, diastolic_bp=90
    )

    written = await alert_engine.on_consultation_created(consultation)

    by_type = {alert.type: alert for alert in written}
    # Critical comes from the patient row; high comes from the seeded global row.
    assert by_type["creatinine"].severity == "high"
    assert by_type["creatinine"].threshold == ">2.0 mg/dL"
    assert by_type["blood_pressure"].severity == "warning"
    seeded = {row.type for row in await threshold_repository.list_global()}
    assert seeded == {"creatinine", "blood_pressure"}

@pytest.mark.anyio
async def test_failing_rule_is_contained_and_others_still_run(
    threshold_repository,
    consultation_repository,
    alert_repository,
    make_patient,
    make_consultation,
    caplog,
):
    def _explode(consultation, thresholds, history):
        raise ValueError("malformed value")

    rules = (MetricRule(AlertType.creatinine, _explode),) + DEFAULT_RULES[1:]
    engine = AlertEngine(
        thresholds=threshold_repository,
        consultations=consultation_repository,
        alerts=alert_repository,
        rules=rules,
    )
    patient = await make_patient()
    consultation = await make_consultation(
        patient.id, creatinine=Decimal("3.5"), systolic_bp=190, diastolic_bp=100
    )

    with caplog.at_level(logging.ERROR):
        written = await engine.on_consultation_created(consultation)

    assert [alert.type for alert in written] == ["blood_pressure"]
    assert "Alert rule creatinine failed" in caplog.text


@pytest.mark.anyio
async def test_persistence_failure_is_contained(
    threshold_repository,
    consultation_repository,
    alert_repository,
    make_patient,
    make_consultation,
    monkeypatch,
):
    calls = []
    original_create = alert_repository.create_alert

    async def _flaky_create(**kwargs):
        calls.append(kwargs["decision"].type)
        if kwargs["decision"].type is AlertType.creatinine:
            raise RuntimeError("insert failed")
        return await original_create(**kwargs)

    monkeypatch.setattr(alert_repository, "create_alert", _flaky_create)
    engine = AlertEngine(threshold_repository, consultation_repository, alert_repository)
    patient = await make_patient()
    consultation = await make_consultation(
        patient.id, creatinine=Decimal("3.5"), systolic_bp=190, diastolic_bp=100
    )

    written = await engine.on_consultation_created(consultation)

    assert calls == [AlertType.creatinine, AlertType.blood_pressure]
    assert [alert.type for alert in written] == ["blood_pressure"]


@pytest.mark.anyio
async def test_seeding_failure_does_not_block_evaluation(
    alert_engine, threshold_repository, make_patient, make_consultation, monkeypatch
):
    async def _broken_upsert(_threshold):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(threshold_repository, "upsert", _broken_upsert)
    patient = await make_patient()
    consultation = await make_consultation(patient.id, systolic_bp=182, diastolic_bp=90)

    written = await alert_engine.on_consultation_created(consultation)

    # Resolution still falls back to hardcoded defaults.
    assert [alert.severity for alert in written] == ["critical"]


@pytest.mark.anyio
async def test_history_failure_only_skips_weight_loss(
    alert_engine, consultation_repository, make_patient, make_consultation, monkeypatch
):
    async def _broken_history(_patient_id):
        raise RuntimeError("history unavailable")

    monkeypatch.setattr(consultation_repository, "get_by_patient", _broken_history)
    patient = await make_patient()
    consultation = await make_consultation(
        patient.id, creatinine=Decimal("1.4"), weight=Decimal("60")
    )

    written = await alert_engine.on_consultation_created(consultation)

    assert [alert.type for alert in written] == ["creatinine"]


@pytest.mark.anyio
async def test_re_evaluation_updates_instead_of_duplicating(
    alert_engine, make_patient, make_consultation, consultation_repository, alert_repository
):
    patient = await make_patient()
    consultation = await make_consultation(patient.id, creatinine=Decimal("1.5"))
    await alert_engine.on_consultation_created(consultation)
    await alert_repository.mark_as_read(1)

    await alert_engine.on_consultation_created(consultation)
    alerts = await alert_repository.list_alerts(patient_id=patient.id)
    assert len(alerts) == 1
    # Nothing changed, so the acknowledgement is kept.
    assert alerts[0].is_read is True

    updated = await consultation_repository.update_consultation(
        consultation.id, ConsultationUpdate(creatinine=Decimal("3.1"))
    )
    await alert_engine.on_consultation_updated(updated)

    alerts = await alert_repository.list_alerts(patient_id=patient.id)
    assert len(alerts) == 1
    assert alerts[0].id == 1
    assert alerts[0].severity == "critical"
    assert alerts[0].value == "3.1"
    assert alerts[0].is_read is False


@pytest.mark.anyio
async def test_alert_logs_carry_consultation_id(
    alert_engine, make_patient, make_consultation, caplog
):
    from nephrowatch.logging import consultation_id_var

    patient = await make_patient()
    consultation = await make_consultation(patient.id, creatinine=Decimal("3.3"))
    seen = []

    class _Capture(logging.Handler):
        def emit(self, record):
            seen.append(consultation_id_var.get())

    handler = _Capture()
    engine_logger = logging.getLogger("nephrowatch.services.alerting.engine")
    engine_logger.addHandler(handler)
    try:
        with caplog.at_level(logging.INFO):
            await alert_engine.on_consultation_created(consultation)
    finally:
        engine_logger.removeHandler(handler)

    assert seen and set(seen) == {consultation.id}
    assert consultation_id_var.get() is None


@pytest.mark.anyio
async def test_correcting_a_value_clears_its_alert(
    alert_engine, make_patient, make_consultation, consultation_repository, alert_repository
):
    patient = await make_patient()
    consultation = await make_consultation(
        patient.id, creatinine=Decimal("3.2"), systolic_bp=185, diastolic_bp=110
    )
    await alert_engine.on_consultation_created(consultation)

    updated = await consultation_repository.update_consultation(
        consultation.id, ConsultationUpdate(creatinine=Decimal("0.9"))
    )
    written = await alert_engine.on_consultation_updated(updated)

    alerts = await alert_repository.list_alerts(patient_id=patient.id)
    assert [alert.type for alert in written] == ["blood_pressure"]
    assert [(alert.type, alert.severity) for alert in alerts] == [("blood_pressure", "critical")]
    assert await alert_repository.get_for_consultation(consultation.id, "creatinine") is None
