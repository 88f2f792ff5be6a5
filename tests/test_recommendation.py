from __future__ import annotations

from datetime import datetime

from conftest import make_reading

from app.engine.profiles import CropProfile, get_profile
from app.engine.recommendation import generate_recommendation, hours_until_next_irrigation, optimal_irrigation_time
from app.models.enums import SeverityEnum
from app.schemas.intelligence import RecommendationAction
from app.schemas.readings import Reading

NOON = datetime(2026, 6, 1, 12, 0)


def test_missing_moisture_is_pending() -> None:
	recommendation = generate_recommendation(Reading(crop_type="Wheat"), now=NOON)
	assert recommendation.action == RecommendationAction.pending
	assert recommendation.reason == "Collecting initial data..."


def test_waterlogged_soil_stops_irrigation() -> None:
	recommendation = generate_recommendation(make_reading(60), now=NOON)
	assert recommendation.action == RecommendationAction.stop
	assert recommendation.priority == SeverityEnum.high
	assert recommendation.amount == 0.0
	assert recommendation.duration == 0
	assert recommendation.hours_until_next == 24
	assert recommendation.recommended_time == "N/A"


def test_dry_soil_irrigates_with_clamped_amount() -> None:
	recommendation = generate_recommendation(make_reading(20), now=NOON)
	wheat = get_profile("Wheat")
	assert recommendation.action == RecommendationAction.irrigate
	assert recommendation.amount == wheat.water_per_irrigation * 1.5
	assert recommendation.duration == 35
	assert recommendation.priority == SeverityEnum.critical
	assert recommendation.et is not None and recommendation.et > 0
	assert recommendation.recommended_time == "06:00 AM (Tomorrow)"
	assert 1 <= recommendation.hours_until_next <= 48


def test_irrigation_amount_has_a_floor() -> None:
	shallow = CropProfile("Shallow", 30, 32, 40, 1)
	reading = make_reading(29, humidity=100)
	recommendation = generate_recommendation(reading, shallow, now=NOON)
	assert recommendation.action == RecommendationAction.irrigate
	assert recommendation.amount == 20.0
	assert recommendation.duration == 14
	assert recommendation.priority == SeverityEnum.high


def test_imminent_rain_delays_irrigation() -> None:
	reading = make_reading(20, chance_of_rain=80, next_rain_hours=3)
	recommendation = generate_recommendation(reading, now=NOON)
	assert recommendation.action == RecommendationAction.delay
	assert recommendation.hours_until_next == 5
	assert recommendation.amount == 0.0
	assert recommendation.priority == SeverityEnum.low


def test_rain_already_starting_still_delays() -> None:
	reading = make_reading(20, chance_of_rain=90, next_rain_hours=0)
	recommendation = generate_recommendation(reading, now=NOON)
	assert recommendation.action == RecommendationAction.delay
	assert recommendation.hours_until_next == 2


def test_unlikely_rain_does_not_delay() -> None:
	reading = make_reading(20, chance_of_rain=40, next_rain_hours=3)
	assert generate_recommendation(reading, now=NOON).action == RecommendationAction.irrigate


def test_lower_optimal_band_is_monitored() -> None:
	recommendation = generate_recommendation(make_reading(35), now=NOON)
	assert recommendation.action == RecommendationAction.monitor
	assert recommendation.priority == SeverityEnum.low
	assert recommendation.hours_until_next is not None


def test_upper_optimal_band_is_maintained() -> None:
	recommendation = generate_recommendation(make_reading(45), now=NOON)
	assert recommendation.action == RecommendationAction.maintain
	assert recommendation.reason == "Moisture levels are optimal."
	assert recommendation.hours_until_next is None


def test_unknown_crop_uses_default_profile() -> None:
	# Default band is 30-60, so 55 is above the midpoint but within range.
	reading = make_reading(55, crop_type="Quinoa")
	assert generate_recommendation(reading, now=NOON).action == RecommendationAction.maintain


def test_optimal_time_slots() -> None:
	assert optimal_irrigation_time(datetime(2026, 6, 1, 6, 15)) == "06:00 AM"
	assert optimal_irrigation_time(datetime(2026, 6, 1, 19, 0)) == "07:00 PM"
	assert optimal_irrigation_time(datetime(2026, 6, 1, 23, 0)) == "06:00 AM (Tomorrow)"


def test_hours_until_next_irrigation_bounds() -> None:
	assert hours_until_next_irrigation(50, 40, 5) == 24.0
	assert hours_until_next_irrigation(30, 50, 0) == 48.0
	assert hours_until_next_irrigation(49.99, 50, 500) == 1.0
	assert hours_until_next_irrigation(10, 50, 0.1) == 48.0
