"""Time-series sensor reading ORM model.

One row carries a full soil + weather snapshot for a crop type, mirroring the
``Reading`` record used by the rule engine.  Soil and weather columns are
nullable: imported history and synthesized readings do not always populate
every field, and the engine substitutes defaults for missing values.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimeSeriesMixin


class SensorReading(Base, TimeSeriesMixin):
    """Soil + weather snapshot for a single crop field."""

    __tablename__ = "sensor_readings"
    __table_args__ = (
        Index("ix_sensor_readings_crop_ts", "crop_type", "timestamp"),
        Index("ix_sensor_readings_ts", "timestamp"),
    )

    crop_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    field: Mapped[str | None] = mapped_column(String(100), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    # Soil
    soil_moisture: Mapped[float | None] = mapped_column(Float, nullable=True)
    soil_ph: Mapped[float | None] = mapped_column(Float, nullable=True)
    soil_temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    nitrogen: Mapped[float | None] = mapped_column(Float, nullable=True)
    phosphorus: Mapped[float | None] = mapped_column(Float, nullable=True)
    potassium: Mapped[float | None] = mapped_column(Float, nullable=True)
    soil_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Weather
    air_temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
    chance_of_rain: Mapped[float | None] = mapped_column(Float, nullable=True)
    wind_speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    solar_radiation: Mapped[float | None] = mapped_column(Float, nullable=True)

    fertilizer_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_simulated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )

    def __repr__(self) -> str:
        return (
            f"<SensorReading id={self.id} crop={self.crop_type!r} "
            f"ts={self.timestamp}>"
        )
