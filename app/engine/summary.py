"""History summary for the analytics endpoint."""

from __future__ import annotations

from collections.abc import Sequence

from app.engine.profiles import CropProfile, get_profile
from app.schemas.intelligence import HistorySummary
from app.schemas.readings import Reading

IRRIGATION_RISE_PCT = 5.0


def _mean(values: list[float]) -> float:
	return sum(values) / len(values) if values else 0.0


def summarize_history(history: Sequence[Reading], profile: CropProfile | None = None) -> HistorySummary:
	"""Averages, irrigation events and in-band efficiency over an oldest-first window."""
	if not history:
		return HistorySummary()

	profile = profile or get_profile(history[-1].crop_type)
	moistures = [r.moisture for r in history if r.moisture is not None]
	temperatures = [
		r.weather.temperature for r in history if r.weather is not None and r.weather.temperature is not None
	]

	irrigation_events = 0
	for earlier, later in zip(history, history[1:]):
		if earlier.moisture is None or later.moisture is None:
			continue
		if later.moisture > earlier.moisture + IRRIGATION_RISE_PCT:
			irrigation_events += 1

	in_band = sum(1 for m in moistures if profile.moisture_min <= m <= profile.moisture_max)
	efficiency = in_band / len(history) * 100

	return HistorySummary(
		avg_moisture=round(_mean(moistures), 1),
		avg_temperature=round(_mean(temperatures), 1),
		irrigation_events=irrigation_events,
		efficiency=round(efficiency, 1),
		data_points=len(history),
	)
