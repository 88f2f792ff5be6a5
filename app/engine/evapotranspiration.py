"""Simplified Penman-Monteith daily evapotranspiration estimate."""

from __future__ import annotations

import math

from app.engine.profiles import DEFAULT_CROP_COEFFICIENT
from app.schemas.readings import WeatherBlock

DEFAULT_TEMPERATURE_C = 28.0
DEFAULT_HUMIDITY_PCT = 65.0
DEFAULT_WIND_SPEED_KMH = 10.0
DEFAULT_SOLAR_RADIATION_WM2 = 500.0
DEFAULT_CHANCE_OF_RAIN_PCT = 0.0


def resolve_weather(weather: WeatherBlock | None) -> tuple[float, float, float, float]:
	"""Return (temperature, humidity, wind_speed, solar_radiation) with neutral defaults."""
	if weather is None:
		weather = WeatherBlock()
	return (
		DEFAULT_TEMPERATURE_C if weather.temperature is None else weather.temperature,
		DEFAULT_HUMIDITY_PCT if weather.humidity is None else weather.humidity,
		DEFAULT_WIND_SPEED_KMH if weather.wind_speed is None else weather.wind_speed,
		DEFAULT_SOLAR_RADIATION_WM2 if weather.solar_radiation is None else weather.solar_radiation,
	)


def estimate_daily_et(weather: WeatherBlock | None, crop_coefficient: float | None = None) -> float:
	"""Daily crop evapotranspiration in mm/day. Never negative."""
	temperature, humidity, wind_speed, solar_radiation = resolve_weather(weather)
	kc = DEFAULT_CROP_COEFFICIENT if crop_coefficient is None else crop_coefficient

	denominator = temperature + 237.3
	if denominator <= 0:
		return 0.0

	vapor_pressure_deficit = (1 - humidity / 100) * 0.611 * math.exp(17.27 * temperature / denominator)
	et0 = (0.408 * solar_radiation * vapor_pressure_deficit + 0.063 * wind_speed * vapor_pressure_deficit) / denominator
	return max(0.0, et0 * kc * 24)
