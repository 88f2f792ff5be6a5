from __future__ import annotations

from datetime import UTC, datetime

from conftest import make_history, make_reading

from app.engine.anomalies import AnomalyThresholds, detect_anomalies
from app.models.enums import AlertTypeEnum, SeverityEnum


def _types(anomalies: list) -> list[AlertTypeEnum]:
	return [anomaly.type for anomaly in anomalies]


def test_short_history_yields_nothing() -> None:
	assert detect_anomalies(make_history([10, 10, 10, 10])) == []


def test_latest_without_moisture_yields_nothing() -> None:
	history = make_history([10] * 6)
	assert detect_anomalies(history, current=make_reading(None)) == []


def test_steady_in_range_history_is_clean() -> None:
	assert detect_anomalies(make_history([40, 41, 40, 42, 41, 40])) == []


def test_sustained_dry_stress_is_high() -> None:
	anomalies = detect_anomalies(make_history([22] * 10))
	assert _types(anomalies) == [AlertTypeEnum.dry_stress]
	assert anomalies[0].severity == SeverityEnum.high
	assert anomalies[0].confidence == 91.0
	assert anomalies[0].field == "Field 1"


def test_severe_dry_stress_is_critical() -> None:
	anomalies = detect_anomalies(make_history([15] * 10))
	assert anomalies[0].type == AlertTypeEnum.dry_stress
	assert anomalies[0].severity == SeverityEnum.critical
	assert anomalies[0].confidence == 95.0


def test_dry_stress_needs_enough_low_readings() -> None:
	assert detect_anomalies(make_history([40, 40, 40, 40, 40, 40, 25, 24, 23, 22])) == []


def test_over_irrigation_is_medium_when_moderate() -> None:
	anomalies = detect_anomalies(make_history([60] * 5))
	assert _types(anomalies) == [AlertTypeEnum.over_irrigation]
	assert anomalies[0].severity == SeverityEnum.medium
	assert anomalies[0].confidence == 75.0


def test_over_irrigation_is_high_when_extreme() -> None:
	anomalies = detect_anomalies(make_history([70] * 5))
	assert anomalies[0].type == AlertTypeEnum.over_irrigation
	assert anomalies[0].severity == SeverityEnum.high


def test_erratic_moisture_is_an_abnormal_pattern() -> None:
	anomalies = detect_anomalies(make_history([50, 10, 50, 10, 50, 10, 50]))
	assert _types(anomalies) == [AlertTypeEnum.abnormal_pattern]
	assert anomalies[0].severity == SeverityEnum.medium
	assert "σ=" in anomalies[0].message


def test_sudden_drop_within_window_is_a_leak() -> None:
	anomalies = detect_anomalies(make_history([45, 45, 45, 45, 45, 30]))
	assert _types(anomalies) == [AlertTypeEnum.leak]
	assert anomalies[0].severity == SeverityEnum.high
	assert anomalies[0].confidence == 95.0
	assert "15.0%" in anomalies[0].message


def test_drop_outside_window_is_not_a_leak() -> None:
	assert detect_anomalies(make_history([45, 45, 45, 45, 45, 30], step_hours=3)) == []


def test_out_of_order_timestamps_are_not_a_leak() -> None:
	history = make_history([45, 45, 45, 45, 45, 30])
	history[-1] = make_reading(30, timestamp=datetime(2026, 5, 31, 0, 0, tzinfo=UTC))
	assert detect_anomalies(history) == []


def test_leak_thresholds_are_configurable() -> None:
	history = make_history([45, 45, 45, 45, 45, 30])
	assert detect_anomalies(history, thresholds=AnomalyThresholds(leak_drop_pct=20.0)) == []


def test_variance_threshold_is_configurable() -> None:
	history = make_history([40, 41, 40, 42, 41, 40])
	anomalies = detect_anomalies(history, thresholds=AnomalyThresholds(variance_sigma=0.1))
	assert _types(anomalies) == [AlertTypeEnum.abnormal_pattern]


def test_anomaly_carries_reading_field_and_timestamp() -> None:
	history = make_history([22] * 10)
	latest = history[-1].model_copy(update={"field": "North plot"})
	anomalies = detect_anomalies(history, current=latest)
	assert anomalies[0].field == "North plot"
	assert anomalies[0].timestamp == latest.timestamp
