"""Weighted 0-100 yield health score from nutrients, pH, moisture and climate."""

from __future__ import annotations

import math

from app.engine.profiles import CropProfile, get_profile
from app.schemas.readings import Reading

WEIGHTS = {
	"nitrogen": 0.15,
	"phosphorus": 0.10,
	"potassium": 0.10,
	"ph": 0.10,
	"moisture": 0.35,
	"temperature": 0.10,
	"solar": 0.10,
}

NUTRIENT_TARGETS = {"nitrogen": 80.0, "phosphorus": 45.0, "potassium": 50.0}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
	return max(low, min(high, value))


def _closeness(value: float | None, target: float) -> float:
	return _clamp(1 - abs(target - (value or 0.0)) / target)


def moisture_score(moisture: float | None, profile: CropProfile) -> float:
	if moisture is None:
		return 0.5
	if profile.moisture_min <= moisture <= profile.moisture_max:
		return 1.0
	if moisture < profile.moisture_min:
		return max(0.2, moisture / profile.moisture_min)
	return max(0.3, 1 - (moisture - profile.moisture_max) / (profile.moisture_max * 0.5))


def predict_yield_health(reading: Reading, profile: CropProfile | None = None) -> int:
	if reading.soil is None or reading.weather is None:
		return 0
	soil, weather = reading.soil, reading.weather
	profile = profile or get_profile(reading.crop_type)

	scores = {
		"nitrogen": _closeness(soil.nitrogen, NUTRIENT_TARGETS["nitrogen"]),
		"phosphorus": _closeness(soil.phosphorus, NUTRIENT_TARGETS["phosphorus"]),
		"potassium": _closeness(soil.potassium, NUTRIENT_TARGETS["potassium"]),
		"ph": 0.7 if soil.ph is None else _clamp(1 - abs(6.5 - soil.ph) / 3),
		"moisture": moisture_score(soil.moisture, profile),
		"temperature": 0.7 if weather.temperature is None else _clamp(1 - abs(25 - weather.temperature) / 15),
		"solar": 0.6 if weather.solar_radiation is None else min(1.0, weather.solar_radiation / 600),
	}
	total = sum(scores[key] * weight for key, weight in WEIGHTS.items()) * 100
	return math.floor(_clamp(total, 0.0, 100.0) + 0.5)
