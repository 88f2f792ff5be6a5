"""Water savings against a fixed daily irrigation schedule."""

from __future__ import annotations

import math
from collections.abc import Sequence

from app.schemas.intelligence import Recommendation, WaterSavings
from app.schemas.readings import Reading

MIN_RECORDS = 7
BASELINE_L_PER_DAY = 40.0
DEFAULT_EVENT_AMOUNT = 35.0
EVENT_WINDOW = 168  # one week of hourly samples


def count_irrigation_events(history: Sequence[Reading]) -> int:
	"""Count consecutive pairs where the earlier sample sits >5% below the later one."""
	events = 0
	for earlier, later in zip(history, history[1:]):
		if earlier.moisture is None or later.moisture is None:
			continue
		if earlier.moisture < later.moisture * 0.95:
			events += 1
	return events


def estimate_water_savings(history: Sequence[Reading], recommendation: Recommendation | None = None) -> WaterSavings:
	"""``history`` is ordered oldest first."""
	if len(history) < MIN_RECORDS:
		return WaterSavings()

	oldest, newest = history[0].timestamp, history[-1].timestamp
	days = 0
	if oldest is not None and newest is not None:
		days = math.ceil(abs((newest - oldest).total_seconds()) / 86400)
	baseline = BASELINE_L_PER_DAY * days

	events = count_irrigation_events(history[-EVENT_WINDOW:])
	amount = recommendation.amount if recommendation is not None and recommendation.amount else DEFAULT_EVENT_AMOUNT
	optimized = events * amount

	saved = max(0.0, baseline - optimized)
	percentage = saved / baseline * 100 if baseline > 0 else 0.0

	return WaterSavings(
		saved_liters=round(saved, 1),
		percentage=round(percentage, 1),
		baseline_liters=round(baseline, 1),
		optimized_liters=round(optimized, 1),
		irrigation_event_count=events,
		days_analyzed=min(7, days),
	)
