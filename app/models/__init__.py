"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from app.models import SensorReading, Crop, Alert
"""

# ── Alerts ──────────────────────────────────────────────────────────────────
from app.models.alerts import Alert

# ── Base & Mixins ───────────────────────────────────────────────────────────
from app.models.base import (
    Base,
    TimeSeriesMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Crop reference ──────────────────────────────────────────────────────────
from app.models.crops import Crop

# ── Enums ───────────────────────────────────────────────────────────────────
from app.models.enums import (
    AlertStatusEnum,
    AlertTypeEnum,
    GrowthStageEnum,
    SeverityEnum,
)

# ── Time-series sensor readings ─────────────────────────────────────────────
from app.models.sensors import SensorReading

__all__ = [
    # Alerts
    "Alert",
    "AlertStatusEnum",
    # Enums
    "AlertTypeEnum",
    # Base & mixins
    "Base",
    # Crop reference
    "Crop",
    "GrowthStageEnum",
    # Time-series
    "SensorReading",
    "SeverityEnum",
    "TimeSeriesMixin",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
