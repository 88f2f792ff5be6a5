"""PostgreSQL-backed enum types for the ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.  Member
*values* (the display strings used across the API) are what the database
stores, so every column passes ``values_callable=enum_values``.
"""

from enum import StrEnum


def enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


# ── Alerts ──────────────────────────────────────────────────────────────────


class AlertTypeEnum(StrEnum):
    """Detected deviation category."""

    leak = "Leak"
    dry_stress = "Dry Stress"
    over_irrigation = "Over-Irrigation"
    abnormal_pattern = "Abnormal Pattern"
    general = "General"


class SeverityEnum(StrEnum):
    """Alert severity ladder."""

    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class AlertStatusEnum(StrEnum):
    active = "Active"
    resolved = "Resolved"


# ── Crop reference ──────────────────────────────────────────────────────────


class GrowthStageEnum(StrEnum):
    seedling = "Seedling"
    vegetative = "Vegetative"
    flowering = "Flowering"
    harvest = "Harvest"
