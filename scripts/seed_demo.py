#!/usr/bin/env python3
"""Insert demo patients and consultations, raising alerts through the engine."""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date
from decimal import Decimal

from nephrowatch.database import close_db, get_db_context, init_db
from nephrowatch.logging import configure_logging
from nephrowatch.schemas.consultation import ConsultationCreate
from nephrowatch.schemas.patient import PatientCreate
from nephrowatch.services.alerting.engine import AlertEngine
from nephrowatch.services.alerts import SQLAlertRepository
from nephrowatch.services.consultations import SQLConsultationRepository
from nephrowatch.services.patients import SQLPatientRepository
from nephrowatch.services.thresholds import SQLThresholdRepository

logger = logging.getLogger("nephrowatch.scripts.seed_demo")

DEMO_PATIENTS = [
    (
        PatientCreate(
            first_name="Marie",
            last_name="Kouadio",
            date_of_birth=date(1965, 3, 15),
            gender="Féminin",
            phone="+225 07 12 34 56 78",
            email="marie.kouadio@email.com",
            address="Abidjan, Cocody",
            emergency_contact="Jean Kouadio - 07 23 45 67 89",
            medical_history=["Diabète type 2", "Hypertension artérielle", "Néphropathie diabétique"],
            ckd_stage=3,
        ),
        {
            "creatinine": Decimal("2.8"),
            "weight": Decimal("68.5"),
            "systolic_bp": 165,
            "diastolic_bp": 95,
            "notes": "Aggravation de la fonction rénale. Créatinine en hausse significative.",
        },
    ),
    (
        PatientCreate(
            first_name="Kofi",
            last_name="Asante",
            date_of_birth=date(1958, 11, 22),
            gender="Masculin",
            phone="+225 05 98 76 54 32",
            email="kofi.asante@email.com",
            address="Abidjan, Treichville",
            emergency_contact="Ama Asante - 05 87 65 43 21",
            medical_history=["Glomérulonéphrite chronique", "Anémie"],
            ckd_stage=4,
        ),
        {
            "creatinine": Decimal("3.2"),
            "weight": Decimal("72.1"),
            "systolic_bp": 185,
            "diastolic_bp": 110,
            "notes": "Tension artérielle critique. Ajustement du traitement antihypertenseur.",
        },
    ),
    (
        PatientCreate(
            first_name="Fatou",
            last_name="Diallo",
            date_of_birth=date(1972, 7, 8),
            gender="Féminin",
            phone="+225 01 23 45 67 89",
            email="fatou.diallo@email.com",
            address="Abidjan, Marcory",
            emergency_contact="Ibrahim Diallo - 01 34 56 78 90",
            medical_history=["Polykystose rénale", "Hypertension"],
            ckd_stage=2,
        ),
        {
            "creatinine": Decimal("1.8"),
            "weight": Decimal("65.2"),
            "systolic_bp": 140,
            "diastolic_bp": 85,
            "notes": "Évolution stable. Continuer le traitement actuel.",
        },
    ),
]


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed NephroWatch with demo data.")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Seed even when patients already exist.",
    )
    return parser.parse_args()


async def seed(force: bool = False) -> int:
    """Create the demo patients; returns how many alerts were raised."""
    await init_db()
    raised = 0
    try:
        async with get_db_context() as session:
            patients = SQLPatientRepository(session)
            consultations = SQLConsultationRepository(session)
            engine = AlertEngine(
                thresholds=SQLThresholdRepository(session),
                consultations=consultations,
                alerts=SQLAlertRepository(session),
            )
            if not force and await patients.count() > 0:
                logger.info("Patients already present; skipping demo seed")
                return 0

            for patient_data, vitals in DEMO_PATIENTS:
                patient = await patients.create_patient(patient_data)
                consultation = await consultations.create_consultation(
                    ConsultationCreate(patient_id=patient.id, **vitals)
                )
                alerts = await engine.on_consultation_created(consultation)
                raised += len(alerts)
                logger.info("Seeded %s with %d alert(s)", patient.full_name, len(alerts))
    finally:
        await close_db()
    return raised


def main() -> int:
    args = _parse_args()
    configure_logging()
    raised = asyncio.run(seed(force=args.force))
    logger.info("Demo seed complete: %d alert(s) raised", raised)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
