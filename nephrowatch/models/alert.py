from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nephrowatch.models.base import Base

if TYPE_CHECKING:
    from nephrowatch.models.consultation import Consultation
    from nephrowatch.models.patient import Patient


class Alert(Base):
    """Clinical alert raised by the alert engine for one consultation and metric."""

    __tablename__ = "alerts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    consultation_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("consultations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="creatinine|blood_pressure|weight_loss",
    )
    severity: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="critical|high|warning",
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    threshold: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship(back_populates="alerts")
    consultation: Mapped[Optional["Consultation"]] = relationship(back_populates="alerts")

    __table_args__ = (
        UniqueConstraint("consultation_id", "type", name="uq_alerts_consultation_type"),
        Index("ix_alerts_is_read_created", "is_read", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Alert(id={self.id}, type='{self.type}', severity='{self.severity}')>"
