"""Alert ORM model — operator-facing alerts persisted outside the engine."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, UUIDPrimaryKeyMixin
from app.models.enums import AlertStatusEnum, AlertTypeEnum, SeverityEnum, enum_values


class Alert(Base, UUIDPrimaryKeyMixin):
    """Persisted alert; the status endpoint merges active rows with live anomalies."""

    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_status_ts", "status", "timestamp"),
    )

    type: Mapped[AlertTypeEnum] = mapped_column(
        Enum(
            AlertTypeEnum,
            name="alert_type",
            create_constraint=False,
            native_enum=True,
            values_callable=enum_values,
        ),
        nullable=False,
    )
    severity: Mapped[SeverityEnum] = mapped_column(
        Enum(
            SeverityEnum,
            name="alert_severity",
            create_constraint=False,
            native_enum=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=SeverityEnum.medium,
        server_default=SeverityEnum.medium.value,
    )
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    field: Mapped[str] = mapped_column(
        String(100), nullable=False, default="Sector A", server_default="Sector A"
    )
    confidence: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default="0"
    )
    status: Mapped[AlertStatusEnum] = mapped_column(
        Enum(
            AlertStatusEnum,
            name="alert_status",
            create_constraint=False,
            native_enum=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=AlertStatusEnum.active,
        server_default=AlertStatusEnum.active.value,
    )

    def __repr__(self) -> str:
        return f"<Alert id={self.id} type={self.type} severity={self.severity}>"
