"""Weather-aware irrigation recommendation rules."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from app.engine.evapotranspiration import DEFAULT_CHANCE_OF_RAIN_PCT, estimate_daily_et
from app.engine.profiles import CropProfile, get_profile
from app.models.enums import SeverityEnum
from app.schemas.intelligence import Recommendation, RecommendationAction
from app.schemas.readings import Reading, WeatherBlock

OVER_IRRIGATION_FACTOR = 1.1
RAIN_DELAY_WINDOW_HOURS = 6
RAIN_DELAY_MIN_CHANCE_PCT = 50
IRRIGATION_RATE_L_PER_MIN = 1.5


def optimal_irrigation_time(now: datetime) -> str:
	"""Early morning or evening slots keep evaporation low."""
	if 5 <= now.hour < 7:
		return "06:00 AM"
	if 18 <= now.hour < 20:
		return "07:00 PM"
	return "06:00 AM (Tomorrow)"


def hours_until_next_irrigation(moisture: float, target: float, daily_et: float) -> float:
	deficit = target - moisture
	if deficit <= 0:
		return 24.0
	if daily_et <= 0:
		return 48.0
	hourly_et = daily_et / 24
	return max(1.0, min(48.0, deficit / (hourly_et / 10)))


def recommendation_priority(action: RecommendationAction, moisture: float, profile: CropProfile) -> SeverityEnum:
	if action == RecommendationAction.irrigate:
		if moisture < profile.moisture_min * 0.7:
			return SeverityEnum.critical
		if moisture < profile.moisture_min:
			return SeverityEnum.high
		return SeverityEnum.medium
	if action == RecommendationAction.stop:
		return SeverityEnum.high
	return SeverityEnum.low


def _rain_outlook(weather: WeatherBlock | None) -> tuple[float | None, float]:
	if weather is None:
		return None, DEFAULT_CHANCE_OF_RAIN_PCT
	forecast = weather.forecast
	rain_hours = forecast.next_rain_hours if forecast is not None else None
	chance = weather.chance_of_rain
	if chance is None and forecast is not None:
		chance = forecast.next_rain_chance
	return rain_hours, DEFAULT_CHANCE_OF_RAIN_PCT if chance is None else chance


def generate_recommendation(
	reading: Reading,
	profile: CropProfile | None = None,
	history: Sequence[Reading] = (),
	now: datetime | None = None,
) -> Recommendation:
	"""Pick one irrigation action for the latest reading.

	``history`` is accepted so callers can pass the same window used for
	anomaly detection; the current rules only look at the latest reading.
	"""
	moisture = reading.moisture
	if moisture is None:
		return Recommendation(action=RecommendationAction.pending, reason="Collecting initial data...")

	profile = profile or get_profile(reading.crop_type)
	now = now or datetime.now()
	daily_et = estimate_daily_et(reading.weather, profile.crop_coefficient)
	et = round(daily_et, 1)

	if moisture > profile.moisture_max * OVER_IRRIGATION_FACTOR:
		return Recommendation(
			action=RecommendationAction.stop,
			reason=f"Moisture ({moisture:.1f}%) exceeds safe range. Risk of waterlogging.",
			amount=0.0,
			duration=0,
			recommended_time="N/A",
			hours_until_next=24,
			priority=recommendation_priority(RecommendationAction.stop, moisture, profile),
			et=et,
		)

	action = RecommendationAction.maintain
	reason = "Moisture levels are optimal."
	amount = 0.0
	duration = 0
	hours: float | None = None

	if moisture < profile.moisture_min:
		rain_hours, rain_chance = _rain_outlook(reading.weather)
		if rain_hours is not None and rain_hours < RAIN_DELAY_WINDOW_HOURS and rain_chance > RAIN_DELAY_MIN_CHANCE_PCT:
			action = RecommendationAction.delay
			reason = f"Rain expected in {rain_hours:g} hours ({rain_chance:g}% chance). Delaying irrigation."
			hours = rain_hours + 2
		else:
			action = RecommendationAction.irrigate
			deficit = profile.moisture_max - moisture
			deficit_volume = deficit / 100 * profile.root_depth * 10
			base = profile.water_per_irrigation
			amount = max(base * 0.5, min(base * 1.5, deficit_volume + daily_et * 0.5))
			duration = math.ceil(amount / IRRIGATION_RATE_L_PER_MIN)
			hours = hours_until_next_irrigation(moisture, profile.moisture_max, daily_et)
			reason = (
				f"Moisture ({moisture:.1f}%) below threshold ({profile.moisture_min:g}%). "
				f"Deficit: {deficit:.1f}%."
			)
	elif moisture < profile.midpoint:
		action = RecommendationAction.monitor
		hours = hours_until_next_irrigation(moisture, profile.moisture_max, daily_et)
		reason = f"Moisture in lower optimal range. Next irrigation in ~{math.ceil(hours)} hours."

	return Recommendation(
		action=action,
		reason=reason,
		amount=round(amount, 1),
		duration=duration,
		recommended_time=optimal_irrigation_time(now),
		hours_until_next=math.ceil(hours) if hours is not None else None,
		priority=recommendation_priority(action, moisture, profile),
		et=et,
	)
