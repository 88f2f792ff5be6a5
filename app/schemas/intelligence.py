"""Pydantic schemas for rule-engine outputs: recommendations, anomalies, savings, status."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from app.models.enums import AlertStatusEnum, AlertTypeEnum, SeverityEnum
from app.schemas.readings import CropProfileOut, Reading, WeatherBlock


class RecommendationAction(StrEnum):
	irrigate = "Irrigate"
	delay = "Delay"
	stop = "Stop"
	monitor = "Monitor"
	maintain = "Maintain"
	pending = "Pending"


class DeviceState(StrEnum):
	normal = "normal"
	caution = "caution"
	critical = "critical"


class Recommendation(BaseModel):
	action: RecommendationAction
	reason: str
	amount: float = 0.0
	duration: int = 0
	recommended_time: str | None = None
	hours_until_next: int | None = None
	priority: SeverityEnum = SeverityEnum.low
	et: float | None = None


class Anomaly(BaseModel):
	id: str | None = None
	type: AlertTypeEnum
	severity: SeverityEnum
	message: str
	confidence: float = Field(ge=0.0, le=100.0)
	field: str = "Field 1"
	timestamp: datetime
	status: AlertStatusEnum = AlertStatusEnum.active


class WaterSavings(BaseModel):
	saved_liters: float = 0.0
	percentage: float = 0.0
	baseline_liters: float = 0.0
	optimized_liters: float = 0.0
	irrigation_event_count: int = 0
	days_analyzed: int = 0


class HistorySummary(BaseModel):
	avg_moisture: float = 0.0
	avg_temperature: float = 0.0
	irrigation_events: int = 0
	anomalies: int = 0
	efficiency: float = 0.0
	data_points: int = 0
	source: str = "database"


class StatusResponse(BaseModel):
	reading: Reading
	crop: CropProfileOut
	recommendation: Recommendation
	alerts: list[Anomaly] = Field(default_factory=list)
	yield_health: int = Field(ge=0, le=100)
	water_savings: WaterSavings = Field(default_factory=WaterSavings)
	weather: WeatherBlock | None = None
	alert_state: DeviceState = DeviceState.normal
	device_state: DeviceState = DeviceState.normal
	source: str = "database"
	timestamp: datetime


class FieldStatus(BaseModel):
	field_id: str
	field_name: str
	crop: str
	moisture: float = 0.0
	temperature: float = 0.0
	humidity: float = 0.0
	nitrogen: float = 0.0
	phosphorus: float = 0.0
	potassium: float = 0.0
	soil_type: str = "Loamy"
	recommendation: Recommendation
	yield_health: int = 0
	status: SeverityEnum
	timestamp: datetime | None = None
