"""Sensor reading storage and lookup."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.engine.profiles import CropProfile, get_profile
from app.models.alerts import Alert
from app.models.crops import Crop
from app.models.enums import AlertStatusEnum
from app.models.sensors import SensorReading
from app.schemas.intelligence import Anomaly
from app.schemas.readings import CropProfileOut, CropStats, Reading, SoilBlock, WeatherBlock


def to_reading(row: SensorReading) -> Reading:
	return Reading(
		crop_type=row.crop_type,
		timestamp=row.timestamp,
		field=row.field,
		soil=SoilBlock(
			moisture=row.soil_moisture,
			ph=row.soil_ph,
			temperature=row.soil_temperature,
			nitrogen=row.nitrogen,
			phosphorus=row.phosphorus,
			potassium=row.potassium,
			soil_type=row.soil_type,
		),
		weather=WeatherBlock(
			temperature=row.air_temperature,
			humidity=row.humidity,
			chance_of_rain=row.chance_of_rain,
			wind_speed=row.wind_speed,
			solar_radiation=row.solar_radiation,
		),
		fertilizer_name=row.fertilizer_name,
		is_simulated=row.is_simulated,
	)


def to_row(reading: Reading) -> SensorReading:
	soil = reading.soil or SoilBlock()
	weather = reading.weather or WeatherBlock()
	return SensorReading(
		crop_type=reading.crop_type,
		field=reading.field,
		timestamp=reading.timestamp or datetime.now(UTC),
		soil_moisture=soil.moisture,
		soil_ph=soil.ph,
		soil_temperature=soil.temperature,
		nitrogen=soil.nitrogen,
		phosphorus=soil.phosphorus,
		potassium=soil.potassium,
		soil_type=soil.soil_type,
		air_temperature=weather.temperature,
		humidity=weather.humidity,
		chance_of_rain=weather.chance_of_rain,
		wind_speed=weather.wind_speed,
		solar_radiation=weather.solar_radiation,
		fertilizer_name=reading.fertilizer_name,
		is_simulated=reading.is_simulated,
	)


def profile_from_crop(crop: Crop, fallback: CropProfile) -> CropProfile:
	return CropProfile(
		name=crop.name,
		moisture_min=crop.moisture_min,
		moisture_max=crop.moisture_max,
		water_per_irrigation=(
			crop.water_per_irrigation if crop.water_per_irrigation is not None else fallback.water_per_irrigation
		),
		root_depth=crop.root_depth_cm,
		crop_coefficient=crop.crop_coefficient,
	)


def profile_out(profile: CropProfile) -> CropProfileOut:
	return CropProfileOut(
		name=profile.name,
		moisture_min=profile.moisture_min,
		moisture_max=profile.moisture_max,
		water_per_irrigation=profile.water_per_irrigation,
		root_depth=profile.root_depth,
		crop_coefficient=profile.crop_coefficient,
	)


def _mean(values: Sequence[float | None]) -> float:
	present = [v for v in values if v is not None]
	return sum(present) / len(present) if present else 0.0


def crop_stats(readings: Sequence[Reading]) -> CropStats:
	if not readings:
		return CropStats()
	return CropStats(
		total_records=len(readings),
		avg_moisture=_mean([r.moisture for r in readings]),
		avg_temperature=_mean([r.weather.temperature if r.weather else None for r in readings]),
		avg_nitrogen=_mean([r.soil.nitrogen if r.soil else None for r in readings]),
		avg_phosphorus=_mean([r.soil.phosphorus if r.soil else None for r in readings]),
		avg_potassium=_mean([r.soil.potassium if r.soil else None for r in readings]),
	)


class ReadingService:
	def __init__(self, db: AsyncSession):
		self.db = db

	@staticmethod
	def _crop_filter(crop_type: str | None):
		if not crop_type or crop_type == "All":
			return None
		return func.lower(func.trim(SensorReading.crop_type)) == crop_type.strip().lower()

	async def add_reading(self, reading: Reading) -> SensorReading:
		row = to_row(reading)
		self.db.add(row)
		await self.db.flush()
		return row

	async def latest(self, crop_type: str | None = None) -> Reading | None:
		stmt = select(SensorReading).order_by(SensorReading.timestamp.desc()).limit(1)
		condition = self._crop_filter(crop_type)
		if condition is not None:
			stmt = stmt.where(condition)
		row = (await self.db.execute(stmt)).scalar_one_or_none()
		return to_reading(row) if row is not None else None

	async def recent(self, limit: int = 50, crop_type: str | None = None) -> list[Reading]:
		"""Newest ``limit`` readings, returned oldest first."""
		stmt = select(SensorReading).order_by(SensorReading.timestamp.desc()).limit(limit)
		condition = self._crop_filter(crop_type)
		if condition is not None:
			stmt = stmt.where(condition)
		rows = (await self.db.execute(stmt)).scalars().all()
		return [to_reading(row) for row in reversed(rows)]

	async def window(
		self,
		*,
		hours: float,
		limit: int,
		crop_type: str | None = None,
		now: datetime | None = None,
	) -> list[Reading]:
		"""Readings from the last ``hours`` hours (newest ``limit``), returned oldest first."""
		cutoff = (now or datetime.now(UTC)) - timedelta(hours=hours)
		stmt = (
			select(SensorReading)
			.where(SensorReading.timestamp >= cutoff)
			.order_by(SensorReading.timestamp.desc())
			.limit(limit)
		)
		condition = self._crop_filter(crop_type)
		if condition is not None:
			stmt = stmt.where(condition)
		rows = (await self.db.execute(stmt)).scalars().all()
		return [to_reading(row) for row in reversed(rows)]

	async def since(self, days: float, now: datetime | None = None, crop_type: str | None = None) -> list[Reading]:
		cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
		stmt = select(SensorReading).where(SensorReading.timestamp >= cutoff).order_by(SensorReading.timestamp.asc())
		condition = self._crop_filter(crop_type)
		if condition is not None:
			stmt = stmt.where(condition)
		rows = (await self.db.execute(stmt)).scalars().all()
		return [to_reading(row) for row in rows]

	async def crop_types(self) -> list[str]:
		stmt = select(func.trim(SensorReading.crop_type)).where(SensorReading.crop_type.is_not(None)).distinct()
		values = (await self.db.execute(stmt)).scalars().all()
		return sorted({value for value in values if value})

	async def count(self, crop_type: str | None = None) -> int:
		stmt = select(func.count()).select_from(SensorReading)
		condition = self._crop_filter(crop_type)
		if condition is not None:
			stmt = stmt.where(condition)
		return int((await self.db.execute(stmt)).scalar_one())

	async def latest_per_crop(self) -> list[Reading]:
		stmt = (
			select(SensorReading)
			.distinct(SensorReading.crop_type)
			.order_by(SensorReading.crop_type, SensorReading.timestamp.desc())
		)
		rows = (await self.db.execute(stmt)).scalars().all()
		return [to_reading(row) for row in rows]

	async def get_crop(self, name: str | None) -> Crop | None:
		if not name:
			return None
		stmt = select(Crop).where(func.lower(Crop.name) == name.strip().lower())
		return (await self.db.execute(stmt)).scalar_one_or_none()

	async def crop_profile(self, name: str | None) -> CropProfile:
		"""A stored crop row wins over the built-in profile of the same name."""
		builtin = get_profile(name)
		crop = await self.get_crop(name)
		if crop is None:
			return builtin
		return profile_from_crop(crop, builtin)

	async def active_alerts(self, limit: int = 5) -> list[Anomaly]:
		stmt = (
			select(Alert)
			.where(Alert.status == AlertStatusEnum.active)
			.order_by(Alert.timestamp.desc())
			.limit(limit)
		)
		rows = (await self.db.execute(stmt)).scalars().all()
		return [
			Anomaly(
				id=str(row.id),
				type=row.type,
				severity=row.severity,
				message=row.message,
				confidence=row.confidence,
				field=row.field,
				timestamp=row.timestamp,
				status=row.status,
			)
			for row in rows
		]
