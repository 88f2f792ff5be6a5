"""Pydantic schemas for sensor readings, crop listings and per-crop statistics."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RainForecast(BaseModel):
	model_config = ConfigDict(frozen=True)

	next_rain_hours: float | None = None
	next_rain_chance: float | None = None


class SoilBlock(BaseModel):
	model_config = ConfigDict(frozen=True)

	moisture: float | None = None
	ph: float | None = None
	temperature: float | None = None
	nitrogen: float | None = None
	phosphorus: float | None = None
	potassium: float | None = None
	soil_type: str | None = None


class WeatherBlock(BaseModel):
	model_config = ConfigDict(frozen=True)

	temperature: float | None = None
	humidity: float | None = None
	chance_of_rain: float | None = None
	wind_speed: float | None = None
	solar_radiation: float | None = None
	forecast: RainForecast | None = None


class Reading(BaseModel):
	"""One soil + weather snapshot. Every block and field is optional."""

	model_config = ConfigDict(frozen=True)

	crop_type: str | None = None
	timestamp: datetime | None = None
	field: str | None = None
	soil: SoilBlock | None = None
	weather: WeatherBlock | None = None
	fertilizer_name: str | None = None
	is_simulated: bool = False

	@property
	def moisture(self) -> float | None:
		return self.soil.moisture if self.soil is not None else None


class CropProfileOut(BaseModel):
	name: str
	moisture_min: float
	moisture_max: float
	water_per_irrigation: float
	root_depth: float
	crop_coefficient: float | None = None


class CropSummary(BaseModel):
	crop_type: str
	crop: CropProfileOut | None = None
	record_count: int = 0
	latest: Reading | None = None
	last_update: datetime | None = None


class CropStats(BaseModel):
	total_records: int = 0
	avg_moisture: float = 0.0
	avg_temperature: float = 0.0
	avg_nitrogen: float = 0.0
	avg_phosphorus: float = 0.0
	avg_potassium: float = 0.0


class CropDataResponse(BaseModel):
	crop_type: str
	crop: CropProfileOut | None = None
	data: list[Reading] = Field(default_factory=list)
	stats: CropStats = Field(default_factory=CropStats)
