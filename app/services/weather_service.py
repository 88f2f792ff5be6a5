"""Current weather + short-range rain outlook from OpenWeather, with a simulated fallback."""

from __future__ import annotations

import random
import time

import httpx
import structlog

from app.config import Settings, get_settings
from app.schemas.readings import RainForecast, WeatherBlock

logger = structlog.get_logger("tridentrix.weather")

FORECAST_SLOTS = 4  # 3-hour slots, next 12 hours


class WeatherService:
	def __init__(
		self,
		settings: Settings | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
		rng: random.Random | None = None,
	):
		self.settings = settings or get_settings()
		self.transport = transport
		self.rng = rng or random.Random()

	def simulated(self) -> WeatherBlock:
		return WeatherBlock(
			temperature=28.0,
			humidity=65.0,
			chance_of_rain=round(self.rng.random() * 40, 1),
			wind_speed=round(8 + self.rng.random() * 10, 1),
			solar_radiation=round(400 + self.rng.random() * 200, 1),
			forecast=RainForecast(next_rain_hours=None, next_rain_chance=0.0),
		)

	async def current(self, latitude: float | None = None, longitude: float | None = None) -> WeatherBlock:
		if not self.settings.openweather_api_key:
			return self.simulated()

		params = {
			"lat": self.settings.default_latitude if latitude is None else latitude,
			"lon": self.settings.default_longitude if longitude is None else longitude,
			"appid": self.settings.openweather_api_key,
			"units": "metric",
		}
		base = self.settings.openweather_base_url
		try:
			async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
				current_response = await client.get(f"{base}/weather", params=params)
				current_response.raise_for_status()
				forecast_response = await client.get(f"{base}/forecast", params=params)
				forecast_response.raise_for_status()
			return self._parse(current_response.json(), forecast_response.json())
		except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
			logger.warning("weather_fetch_failed", error=str(exc))
			return self.simulated()

	@staticmethod
	def _parse(current: dict, forecast: dict, now: float | None = None) -> WeatherBlock:
		now = time.time() if now is None else now
		slots = (forecast.get("list") or [])[:FORECAST_SLOTS]
		rain_slot = next(
			(slot for slot in slots if (slot.get("weather") or [{}])[0].get("main") == "Rain"),
			None,
		)
		chance = 0.0
		next_rain_hours: float | None = None
		if rain_slot is not None:
			chance = float(min(100.0, (rain_slot.get("pop") or 0) * 100))
			next_rain_hours = float((rain_slot["dt"] - now) // 3600)

		wind = current.get("wind") or {}
		clouds = current.get("clouds")
		solar = (100 - clouds.get("all", 0)) * 5 if isinstance(clouds, dict) else 500
		return WeatherBlock(
			temperature=current["main"]["temp"],
			humidity=current["main"]["humidity"],
			chance_of_rain=float(round(chance)),
			wind_speed=float(wind.get("speed") or 0) * 3.6,
			solar_radiation=float(solar),
			forecast=RainForecast(next_rain_hours=next_rain_hours, next_rain_chance=float(round(chance))),
		)
