"""Baseline schema: patients, consultations, alerts, alert thresholds.

Revision ID: 20261017_00
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op


revision = "20261017_00"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("emergency_contact", sa.Text(), nullable=True),
        sa.Column("medical_history", sa.JSON(), nullable=False),
        sa.Column("ckd_stage", sa.Integer(), nullable=False, comment="Clinician-assigned CKD stage 1-5"),
        *_timestamps(),
    )
    op.create_index("ix_patients_last_first", "patients", ["last_name", "first_name"])

    op.create_table(
        "consultations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("creatinine", sa.Numeric(4, 2), nullable=True, comment="Serum creatinine in mg/dL"),
        sa.Column("weight", sa.Numeric(5, 2), nullable=True, comment="Body weight in kg"),
        sa.Column("systolic_bp", sa.Integer(), nullable=True),
        sa.Column("diastolic_bp", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("doctor_name", sa.String(200), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_consultations_patient_id", "consultations", ["patient_id"])
    op.create_index("ix_consultations_patient_date", "consultations", ["patient_id", "date"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "consultation_id",
            sa.Integer(),
            sa.ForeignKey("consultations.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("threshold", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("consultation_id", "type", name="uq_alerts_consultation_type"),
    )
    op.create_index("ix_alerts_patient_id", "alerts", ["patient_id"])
    op.create_index("ix_alerts_consultation_id", "alerts", ["consultation_id"])
    op.create_index("ix_alerts_is_read_created", "alerts", ["is_read", "created_at"])

    op.create_table(
        "alert_thresholds",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("critical_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("high_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("warning_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_global", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_alert_thresholds_patient_id", "alert_thresholds", ["patient_id"])
    op.create_index(
        "uq_alert_thresholds_global_type",
        "alert_thresholds",
        ["type"],
        unique=True,
        postgresql_where=sa.text("is_global"),
    )
    op.create_index(
        "uq_alert_thresholds_patient_type",
        "alert_thresholds",
        ["patient_id", "type"],
        unique=True,
        postgresql_where=sa.text("patient_id IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_table("alert_thresholds")
    op.drop_table("alerts")
    op.drop_table("consultations")
    op.drop_table("patients")
