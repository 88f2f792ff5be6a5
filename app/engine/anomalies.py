"""Anomaly detection over a chronological window of readings.

Four independent checks run against the latest reading; any subset may fire:

* Leak: a sharp moisture drop between the last two records that weather
  evaporation cannot explain.
* Dry Stress: moisture well under the crop minimum for most of the window.
* Over-Irrigation: moisture well over the crop maximum for part of the window.
* Abnormal Pattern: high variance across the recent moisture values.
"""

from __future__ import annotations

import statistics
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from app.engine.evapotranspiration import estimate_daily_et
from app.engine.profiles import CropProfile, get_profile
from app.models.enums import AlertTypeEnum, SeverityEnum
from app.schemas.intelligence import Anomaly
from app.schemas.readings import Reading

MIN_HISTORY = 5
RECENT_WINDOW = 10
DEFAULT_FIELD = "Field 1"


@dataclass(frozen=True, slots=True)
class AnomalyThresholds:
	leak_drop_pct: float = 8.0
	leak_window_hours: float = 2.0
	leak_et_factor: float = 2.0
	variance_sigma: float = 15.0


DEFAULT_THRESHOLDS = AnomalyThresholds()


def _leak(
	latest: Reading,
	previous: Reading,
	moisture: float,
	profile: CropProfile,
	thresholds: AnomalyThresholds,
) -> tuple[float, float] | None:
	"""Return (drop, hours) when the latest pair looks like a leak."""
	previous_moisture = previous.moisture
	if previous_moisture is None or latest.timestamp is None or previous.timestamp is None:
		return None

	change = moisture - previous_moisture
	hours = (latest.timestamp - previous.timestamp).total_seconds() / 3600
	if change >= -thresholds.leak_drop_pct or not 0 <= hours < thresholds.leak_window_hours:
		return None

	expected_drop = estimate_daily_et(latest.weather, profile.crop_coefficient) * (hours / 24) / 10
	if abs(change) <= abs(expected_drop) * thresholds.leak_et_factor:
		return None
	return abs(change), hours


def detect_anomalies(
	history: Sequence[Reading],
	current: Reading | None = None,
	profile: CropProfile | None = None,
	thresholds: AnomalyThresholds | None = None,
	now: datetime | None = None,
) -> list[Anomaly]:
	"""Run every check against ``current`` (or the newest history entry).

	``history`` must be ordered oldest first. Fewer than five records, or a
	latest reading without soil moisture, yields no anomalies.
	"""
	if len(history) < MIN_HISTORY:
		return []

	latest = current or history[-1]
	moisture = latest.moisture
	if moisture is None:
		return []

	thresholds = thresholds or DEFAULT_THRESHOLDS
	profile = profile or get_profile(latest.crop_type)
	moisture_min, moisture_max = profile.moisture_min, profile.moisture_max
	recent = history[-RECENT_WINDOW:]
	field = latest.field or DEFAULT_FIELD
	timestamp = latest.timestamp or now or datetime.now(UTC)

	def _anomaly(kind: AlertTypeEnum, severity: SeverityEnum, message: str, confidence: float) -> Anomaly:
		return Anomaly(
			type=kind,
			severity=severity,
			message=message,
			confidence=round(confidence, 1),
			field=field,
			timestamp=timestamp,
		)

	anomalies: list[Anomaly] = []

	leak = _leak(latest, history[-2], moisture, profile, thresholds)
	if leak is not None:
		drop, hours = leak
		anomalies.append(
			_anomaly(
				AlertTypeEnum.leak,
				SeverityEnum.high,
				f"Sudden moisture drop of {drop:.1f}% in {hours:.1f} hours. Possible leak or pipe break.",
				min(95.0, 70 + drop * 2),
			)
		)

	low_count = sum(1 for r in recent if r.moisture is not None and r.moisture < moisture_min)
	if moisture < moisture_min * 0.8 and low_count >= 5:
		anomalies.append(
			_anomaly(
				AlertTypeEnum.dry_stress,
				SeverityEnum.critical if moisture < moisture_min * 0.6 else SeverityEnum.high,
				f"Soil moisture ({moisture:.1f}%) below threshold for extended period. Crop stress risk.",
				min(95.0, 75 + (moisture_min - moisture) * 2),
			)
		)

	high_count = sum(1 for r in recent if r.moisture is not None and r.moisture > moisture_max * 1.1)
	if moisture > moisture_max * 1.15 and high_count >= 3:
		anomalies.append(
			_anomaly(
				AlertTypeEnum.over_irrigation,
				SeverityEnum.high if moisture > moisture_max * 1.3 else SeverityEnum.medium,
				f"Moisture ({moisture:.1f}%) exceeds safe range. Risk of waterlogging and root rot.",
				min(90.0, 60 + (moisture - moisture_max) * 1.5),
			)
		)

	values = [r.moisture for r in recent if r.moisture is not None]
	if len(values) >= MIN_HISTORY:
		sigma = statistics.pstdev(values)
		if sigma > thresholds.variance_sigma:
			anomalies.append(
				_anomaly(
					AlertTypeEnum.abnormal_pattern,
					SeverityEnum.medium,
					f"High moisture variability detected (σ={sigma:.1f}%). Possible sensor issue or inconsistent irrigation.",
					min(85.0, 50 + sigma * 2),
				)
			)

	return anomalies
