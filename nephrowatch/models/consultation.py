from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nephrowatch.models.base import Base

if TYPE_CHECKING:
    from nephrowatch.models.alert import Alert
    from nephrowatch.models.patient import Patient


class Consultation(Base):
    """A recorded clinical visit with the vitals the alert engine evaluates."""

    __tablename__ = "consultations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    creatinine: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(4, 2), nullable=True,
        comment="Serum creatinine in mg/dL"
    )
    weight: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(5, 2), nullable=True,
        comment="Body weight in kg"
    )
    systolic_bp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    diastolic_bp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    doctor_name: Mapped[str] = mapped_column(String(200), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship(back_populates="consultations")
    alerts: Mapped[list["Alert"]] = relationship(
        back_populates="consultation", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_consultations_patient_date", "patient_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<Consultation(id={self.id}, patient_id={self.patient_id}, date='{self.date}')>"
