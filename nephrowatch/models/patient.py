from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nephrowatch.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from nephrowatch.models.alert import Alert
    from nephrowatch.models.alert_threshold import AlertThreshold
    from nephrowatch.models.consultation import Consultation


class Patient(Base, TimestampMixin):
    """CKD patient with demographic data and disease stage."""

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[str | None] = mapped_column(Text, nullable=True)

    medical_history: Mapped[list[str]] = mapped_column(
        JSON, default=list, nullable=False
    )
    ckd_stage: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
        comment="Clinician-assigned CKD stage 1-5",
    )

    consultations: Mapped[list["Consultation"]] = relationship(
        back_populates="patient", cascade="all, delete-orphan", passive_deletes=True
    )
    alerts: Mapped[list["Alert"]] = relationship(
        back_populates="patient", cascade="all, delete-orphan", passive_deletes=True
    )
    thresholds: Mapped[list["AlertThreshold"]] = relationship(
        back_populates="patient", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_patients_last_first", "last_name", "first_name"),
    )

    @property
    def full_name(self) -> str:
        """Return the patient's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def age(self) -> int | None:
        """Calculate the patient's age."""
        if self.date_of_birth:
            today = date.today()
            return (
                today.year
                - self.date_of_birth.year
                - (
                    (today.month, today.day)
                    < (self.date_of_birth.month, self.date_of_birth.day)
                )
            )
        return None

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, name='{self.full_name}', ckd_stage={self.ckd_stage})>"
