"""Crop ORM model — operator-maintained agronomic reference table.

A stored row overrides the built-in profile of the same name (see
``app.engine.profiles``); crops with no row fall back to the built-in table.
"""

from __future__ import annotations

from sqlalchemy import Enum, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.enums import GrowthStageEnum, enum_values


class Crop(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Agronomic reference: moisture band, water dose, root depth."""

    __tablename__ = "crops"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    moisture_min: Mapped[float] = mapped_column(Float, nullable=False)
    moisture_max: Mapped[float] = mapped_column(Float, nullable=False)
    water_per_irrigation: Mapped[float | None] = mapped_column(Float, nullable=True)
    root_depth_cm: Mapped[float] = mapped_column(
        Float, nullable=False, default=30.0, server_default="30"
    )
    crop_coefficient: Mapped[float | None] = mapped_column(Float, nullable=True)
    growth_stage: Mapped[GrowthStageEnum] = mapped_column(
        Enum(
            GrowthStageEnum,
            name="growth_stage",
            create_constraint=False,
            native_enum=True,
            values_callable=enum_values,
        ),
        nullable=False,
        default=GrowthStageEnum.vegetative,
        server_default=GrowthStageEnum.vegetative.value,
    )

    def __repr__(self) -> str:
        return (
            f"<Crop id={self.id} name={self.name!r} "
            f"range=[{self.moisture_min}, {self.moisture_max}]>"
        )
