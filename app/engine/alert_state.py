"""Traffic-light states for the indicator device, notifications and field cards."""

from __future__ import annotations

from collections.abc import Sequence

from app.models.enums import AlertTypeEnum, SeverityEnum
from app.schemas.intelligence import Anomaly, DeviceState, Recommendation, RecommendationAction


def moisture_alert_state(moisture: float | None) -> DeviceState:
	if moisture is None:
		return DeviceState.normal
	if 40 <= moisture <= 60:
		return DeviceState.normal
	if 30 <= moisture < 40 or 60 < moisture <= 75:
		return DeviceState.caution
	return DeviceState.critical


def device_state(anomalies: Sequence[Anomaly], recommendation: Recommendation | None = None) -> DeviceState:
	"""Escalate on the worst alert first, then on the recommendation priority."""
	if any(a.severity == SeverityEnum.critical or a.type == AlertTypeEnum.leak for a in anomalies):
		return DeviceState.critical

	priority = recommendation.priority if recommendation is not None else None
	if any(a.severity == SeverityEnum.high for a in anomalies) or priority == SeverityEnum.high:
		return DeviceState.caution
	if priority == SeverityEnum.critical:
		return DeviceState.critical
	if priority == SeverityEnum.medium or (
		recommendation is not None and recommendation.action == RecommendationAction.irrigate
	):
		return DeviceState.caution
	return DeviceState.normal


def field_status(moisture: float | None, yield_health: int) -> SeverityEnum:
	value = moisture if moisture is not None else 0.0
	if value < 25 or yield_health < 50:
		return SeverityEnum.critical
	if value < 30 or yield_health < 70:
		return SeverityEnum.high
	return SeverityEnum.low
