"""initial_schema

Revision ID: 3f1c7a52e9b0
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the sensor_readings, crops and alerts tables with their four
PostgreSQL enum types.  Enables uuid-ossp for server-side UUID defaults.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c7a52e9b0"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_ALERT_TYPE = postgresql.ENUM(
    "Leak",
    "Dry Stress",
    "Over-Irrigation",
    "Abnormal Pattern",
    "General",
    name="alert_type",
    create_type=False,
)
ENUM_ALERT_SEVERITY = postgresql.ENUM(
    "Low", "Medium", "High", "Critical", name="alert_severity", create_type=False
)
ENUM_ALERT_STATUS = postgresql.ENUM(
    "Active", "Resolved", name="alert_status", create_type=False
)
ENUM_GROWTH_STAGE = postgresql.ENUM(
    "Seedling",
    "Vegetative",
    "Flowering",
    "Harvest",
    name="growth_stage",
    create_type=False,
)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Create enum types ────────────────────────────────────────────
    ENUM_ALERT_TYPE.create(op.get_bind(), checkfirst=True)
    ENUM_ALERT_SEVERITY.create(op.get_bind(), checkfirst=True)
    ENUM_ALERT_STATUS.create(op.get_bind(), checkfirst=True)
    ENUM_GROWTH_STAGE.create(op.get_bind(), checkfirst=True)

    # ── 2. Tables ───────────────────────────────────────────────────────

    # sensor_readings
    op.create_table(
        "sensor_readings",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column(
            "ingested_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("crop_type", sa.String(100), nullable=True),
        sa.Column("field", sa.String(100), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("soil_moisture", sa.Float(), nullable=True),
        sa.Column("soil_ph", sa.Float(), nullable=True),
        sa.Column("soil_temperature", sa.Float(), nullable=True),
        sa.Column("nitrogen", sa.Float(), nullable=True),
        sa.Column("phosphorus", sa.Float(), nullable=True),
        sa.Column("potassium", sa.Float(), nullable=True),
        sa.Column("soil_type", sa.String(50), nullable=True),
        sa.Column("air_temperature", sa.Float(), nullable=True),
        sa.Column("humidity", sa.Float(), nullable=True),
        sa.Column("chance_of_rain", sa.Float(), nullable=True),
        sa.Column("wind_speed", sa.Float(), nullable=True),
        sa.Column("solar_radiation", sa.Float(), nullable=True),
        sa.Column("fertilizer_name", sa.String(100), nullable=True),
        sa.Column(
            "is_simulated",
            sa.Boolean(),
            server_default=sa.text("true"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_sensor_readings_crop_ts", "sensor_readings", ["crop_type", "timestamp"]
    )
    op.create_index("ix_sensor_readings_ts", "sensor_readings", ["timestamp"])

    # crops
    op.create_table(
        "crops",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("moisture_min", sa.Float(), nullable=False),
        sa.Column("moisture_max", sa.Float(), nullable=False),
        sa.Column("water_per_irrigation", sa.Float(), nullable=True),
        sa.Column(
            "root_depth_cm", sa.Float(), server_default=sa.text("30"), nullable=False
        ),
        sa.Column("crop_coefficient", sa.Float(), nullable=True),
        sa.Column(
            "growth_stage",
            ENUM_GROWTH_STAGE,
            server_default="Vegetative",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # alerts
    op.create_table(
        "alerts",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("type", ENUM_ALERT_TYPE, nullable=False),
        sa.Column(
            "severity", ENUM_ALERT_SEVERITY, server_default="Medium", nullable=False
        ),
        sa.Column("message", sa.String(1000), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "field", sa.String(100), server_default="Sector A", nullable=False
        ),
        sa.Column("confidence", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "status", ENUM_ALERT_STATUS, server_default="Active", nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alerts_status_ts", "alerts", ["status", "timestamp"])


def downgrade() -> None:
    # ── Drop tables ─────────────────────────────────────────────────────
    op.drop_table("alerts")
    op.drop_table("crops")
    op.drop_table("sensor_readings")

    # ── Drop enum types ─────────────────────────────────────────────────
    ENUM_GROWTH_STAGE.drop(op.get_bind(), checkfirst=True)
    ENUM_ALERT_STATUS.drop(op.get_bind(), checkfirst=True)
    ENUM_ALERT_SEVERITY.drop(op.get_bind(), checkfirst=True)
    ENUM_ALERT_TYPE.drop(op.get_bind(), checkfirst=True)
