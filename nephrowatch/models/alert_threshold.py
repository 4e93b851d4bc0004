from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nephrowatch.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from nephrowatch.models.patient import Patient


class AlertThreshold(Base, TimestampMixin):
    """Configured cut points for one metric, either global or patient-specific.

    At most one row exists per ``(type, scope)``: one global row per type and
    one row per ``(patient_id, type)``. Both are enforced with partial unique
    indexes so that concurrent seeding cannot duplicate a key.
    """

    __tablename__ = "alert_thresholds"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    critical_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    high_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    warning_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    is_global: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    patient: Mapped[Optional["Patient"]] = relationship(back_populates="thresholds")

    __table_args__ = (
        Index(
            "uq_alert_thresholds_global_type",
            "type",
            unique=True,
            postgresql_where=text("is_global"),
        ),
        Index(
            "uq_alert_thresholds_patient_type",
            "patient_id",
            "type",
            unique=True,
            postgresql_where=text("patient_id IS NOT NULL"),
        ),
    )

    def __repr__(self) -> str:
        scope = "global" if self.is_global else f"patient={self.patient_id}"
        return f"<AlertThreshold(type='{self.type}', {scope})>"
