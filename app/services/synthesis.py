"""Background generator of simulated sensor readings."""

from __future__ import annotations

import asyncio
import json
import random
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.schemas.readings import Reading, SoilBlock, WeatherBlock
from app.services.reading_service import ReadingService

logger = structlog.get_logger("tridentrix.synthesis")

DEFAULT_CROPS = ("Wheat", "Rice", "Maize", "Tomato", "Sugarcane")

SOIL_BY_CROP = {
	"rice": "clay",
	"wheat": "loam",
	"maize": "sandy loam",
	"cotton": "black",
	"sugarcane": "alluvial",
}
FERTILIZER_BY_CROP = {
	"rice": "Urea",
	"wheat": "DAP",
	"maize": "NPK",
	"cotton": "Urea",
	"sugarcane": "MOP",
}


def _clamp(value: float, low: float, high: float) -> float:
	return max(low, min(high, value))


def _is_daytime(now: datetime) -> bool:
	return 6 <= now.hour <= 18


def synthesize_reading(
	latest: Reading | None,
	crop_type: str | None,
	now: datetime,
	rng: random.Random,
) -> Reading:
	"""Next simulated reading, drifting from ``latest`` where it exists.

	Moisture drifts down 70% of the time (evaporation) and stays within 20-80%.
	"""
	soil = latest.soil if latest is not None else None
	weather = latest.weather if latest is not None else None
	base_temp = (weather.temperature if weather else None) or 25.0
	base_humidity = (weather.humidity if weather else None) or 50.0
	base_moisture = (soil.moisture if soil else None) or 40.0
	crop = crop_type or (latest.crop_type if latest is not None else None) or "Wheat"
	key = crop.lower()

	daytime = _is_daytime(now)
	temp_shift = (rng.random() - 0.5) * 6 + (1 if daytime else -1) * rng.random() * 4
	humidity_shift = (rng.random() - 0.5) * 15
	moisture_shift = (rng.random() - 0.5) * 8
	trend = -1 if rng.random() > 0.3 else 1
	moisture = _clamp(base_moisture + moisture_shift + trend * rng.random() * 2, 20, 80)

	return Reading(
		crop_type=crop,
		timestamp=now,
		soil=SoilBlock(
			moisture=round(moisture, 2),
			ph=round(6.5 + (rng.random() - 0.5), 2),
			temperature=round(base_temp - 2 + rng.random() * 4, 2),
			soil_type=SOIL_BY_CROP.get(key, "loam"),
			nitrogen=round(30 + rng.random() * 30, 2),
			phosphorus=round(15 + rng.random() * 20, 2),
			potassium=round(25 + rng.random() * 25, 2),
		),
		weather=WeatherBlock(
			temperature=round(_clamp(base_temp + temp_shift, 15, 35), 2),
			humidity=round(_clamp(base_humidity + humidity_shift, 30, 90), 2),
			chance_of_rain=round(rng.random() * 30, 2),
			wind_speed=round(5 + rng.random() * 10, 2),
			solar_radiation=round(400 + rng.random() * 600, 2) if daytime else 0.0,
		),
		fertilizer_name=FERTILIZER_BY_CROP.get(key, "NPK"),
		is_simulated=True,
	)


class ReadingSynthesizer:
	"""Owns one asyncio task that writes a reading per crop every interval."""

	def __init__(
		self,
		session_factory: Callable[[], AsyncSession],
		redis_client: Redis | None = None,
		settings: Settings | None = None,
		rng: random.Random | None = None,
	):
		self.session_factory = session_factory
		self.redis_client = redis_client
		self.settings = settings or get_settings()
		self.rng = rng or random.Random()
		self._task: asyncio.Task[None] | None = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	def start(self) -> None:
		if self.running:
			logger.info("synthesis_already_running")
			return
		self._task = asyncio.create_task(self._run(), name="reading-synthesis")
		logger.info("synthesis_started", interval_seconds=self.settings.synthesis_interval_seconds)

	async def stop(self) -> None:
		if self._task is None:
			return
		self._task.cancel()
		try:
			await self._task
		except asyncio.CancelledError:
			pass
		self._task = None
		logger.info("synthesis_stopped")

	async def _run(self) -> None:
		while True:
			try:
				await self.generate_for_all_crops()
			except (SQLAlchemyError, OSError) as exc:
				logger.warning("synthesis_cycle_failed", error=str(exc))
			except Exception:
				logger.exception("synthesis_cycle_crashed")
			await asyncio.sleep(self.settings.synthesis_interval_seconds)

	async def generate_for_all_crops(self, now: datetime | None = None) -> list[Reading]:
		now = now or datetime.now(UTC)
		generated: list[Reading] = []
		async with self.session_factory() as session:
			service = ReadingService(session)
			crop_types = await service.crop_types() or list(DEFAULT_CROPS)
			for crop_type in crop_types:
				latest = await service.latest(crop_type)
				reading = synthesize_reading(latest, crop_type, now, self.rng)
				await service.add_reading(reading)
				generated.append(reading)
			await session.commit()

		for reading in generated:
			await self._publish(reading)
		logger.info("synthesis_cycle_complete", crops=len(generated))
		return generated

	async def _publish(self, reading: Reading) -> None:
		if self.redis_client is None:
			return
		payload = {"event_type": "reading", "reading": reading.model_dump(mode="json")}
		try:
			await self.redis_client.publish(self.settings.live_channel, json.dumps(payload))
		except RedisError as exc:
			logger.warning("synthesis_publish_failed", error=str(exc))
