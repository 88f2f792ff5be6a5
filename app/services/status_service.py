"""Dashboard status assembly: readings in, recommendation/alerts/savings/health out."""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.engine.alert_state import device_state, field_status, moisture_alert_state
from app.engine.anomalies import AnomalyThresholds, detect_anomalies
from app.engine.health import predict_yield_health
from app.engine.profiles import get_profile
from app.engine.recommendation import generate_recommendation
from app.engine.savings import estimate_water_savings
from app.engine.summary import summarize_history
from app.models.enums import AlertTypeEnum, SeverityEnum
from app.schemas.intelligence import (
	Anomaly,
	DeviceState,
	FieldStatus,
	HistorySummary,
	Recommendation,
	RecommendationAction,
	StatusResponse,
)
from app.schemas.readings import CropDataResponse, CropSummary, Reading, SoilBlock, WeatherBlock
from app.services.esp32 import DeviceLink
from app.services.reading_service import ReadingService, crop_stats, profile_out
from app.services.telegram import TelegramNotifier
from app.services.weather_service import WeatherService

logger = structlog.get_logger("tridentrix.status")

HISTORY_WINDOW = 50
STORAGE_ERRORS = (SQLAlchemyError, OSError)


def thresholds_from_settings(settings: Settings) -> AnomalyThresholds:
	return AnomalyThresholds(
		leak_drop_pct=settings.leak_drop_pct,
		leak_window_hours=settings.leak_window_hours,
		leak_et_factor=settings.leak_et_factor,
		variance_sigma=settings.variance_sigma,
	)


def merge_weather(reading: Reading, fetched: WeatherBlock | None) -> Reading:
	"""Overlay the fetched weather on the stored one, keeping stored values the fetch lacks."""
	if fetched is None:
		return reading
	base = reading.weather or WeatherBlock()
	overlay = {key: value for key, value in fetched.model_dump().items() if value is not None}
	merged = base.model_copy(update={**overlay, "forecast": fetched.forecast or base.forecast})
	return reading.model_copy(update={"weather": merged})


def mock_status(now: datetime | None = None) -> StatusResponse:
	now = now or datetime.now(UTC)
	profile = get_profile("Tomato")
	reading = Reading(
		crop_type="Tomato",
		timestamp=now,
		soil=SoilBlock(moisture=45.0, ph=6.5, nitrogen=140.0, phosphorus=45.0, potassium=160.0, soil_type="Loamy"),
		weather=WeatherBlock(temperature=28.0, humidity=65.0),
		is_simulated=True,
	)
	return StatusResponse(
		reading=reading,
		crop=profile_out(profile),
		recommendation=Recommendation(
			action=RecommendationAction.maintain,
			reason="Conditions are optimal (offline mode).",
		),
		alerts=[
			Anomaly(
				id="mock1",
				type=AlertTypeEnum.general,
				severity=SeverityEnum.low,
				message="Offline mode: data is simulated",
				confidence=100.0,
				timestamp=now,
			)
		],
		yield_health=predict_yield_health(reading, profile),
		weather=reading.weather,
		alert_state=DeviceState.normal,
		device_state=DeviceState.normal,
		source="mock",
		timestamp=now,
	)


class StatusService:
	def __init__(
		self,
		db: AsyncSession,
		weather: WeatherService | None = None,
		settings: Settings | None = None,
		rng: random.Random | None = None,
	):
		self.db = db
		self.readings = ReadingService(db)
		self.settings = settings or get_settings()
		self.weather = weather
		self.thresholds = thresholds_from_settings(self.settings)
		self.rng = rng or random.Random()

	async def get_status(self, now: datetime | None = None) -> StatusResponse:
		now = now or datetime.now(UTC)
		try:
			latest = await self.readings.latest()
			if latest is None:
				raise LookupError("No sensor readings stored yet")
			# Anomaly and savings rules compare consecutive samples of one field.
			history = await self.readings.recent(HISTORY_WINDOW, crop_type=latest.crop_type)
			profile = await self.readings.crop_profile(latest.crop_type)
			stored_alerts = await self.readings.active_alerts()
		except STORAGE_ERRORS as exc:
			logger.warning("status_storage_unavailable", error=str(exc))
			return mock_status(now)

		fetched = await self.weather.current() if self.weather is not None else None
		reading = merge_weather(latest, fetched)

		recommendation = generate_recommendation(reading, profile, history, now)
		anomalies = detect_anomalies(history, reading, profile, self.thresholds, now)
		savings = estimate_water_savings(history, recommendation)
		yield_health = predict_yield_health(reading, profile)

		return StatusResponse(
			reading=reading,
			crop=profile_out(profile),
			recommendation=recommendation,
			alerts=[*anomalies, *stored_alerts],
			yield_health=yield_health,
			water_savings=savings,
			weather=fetched or reading.weather,
			alert_state=moisture_alert_state(reading.moisture),
			device_state=device_state(anomalies, recommendation),
			timestamp=now,
		)

	async def get_history(self, hours: float = 24, limit: int = 100, now: datetime | None = None) -> list[Reading]:
		now = now or datetime.now(UTC)
		try:
			return await self.readings.window(hours=hours, limit=limit, now=now)
		except STORAGE_ERRORS as exc:
			logger.warning("history_storage_unavailable", error=str(exc))
			return [
				Reading(
					crop_type="Tomato",
					timestamp=now - timedelta(hours=i),
					soil=SoilBlock(moisture=round(40 + self.rng.random() * 10, 2)),
					weather=WeatherBlock(
						temperature=round(25 + self.rng.random() * 5, 2),
						humidity=round(60 + self.rng.random() * 10, 2),
					),
					is_simulated=True,
				)
				for i in reversed(range(20))
			]

	async def get_analytics(
		self,
		days: float = 7,
		crop_type: str | None = None,
		now: datetime | None = None,
	) -> HistorySummary:
		"""Summarize one crop's window; defaults to the crop of the newest reading."""
		now = now or datetime.now(UTC)
		try:
			if crop_type is None:
				latest = await self.readings.latest()
				if latest is None:
					return HistorySummary()
				crop_type = latest.crop_type
			history = await self.readings.since(days, now, crop_type=crop_type)
			if not history:
				return HistorySummary()
			profile = await self.readings.crop_profile(crop_type or history[-1].crop_type)
		except STORAGE_ERRORS as exc:
			logger.warning("analytics_storage_unavailable", error=str(exc))
			return HistorySummary(
				avg_moisture=45.5,
				avg_temperature=28.2,
				irrigation_events=5,
				anomalies=2,
				efficiency=85.0,
				source="mock",
			)

		summary = summarize_history(history, profile)
		anomalies = detect_anomalies(history, profile=profile, thresholds=self.thresholds, now=now)
		return summary.model_copy(update={"anomalies": len(anomalies)})

	async def get_fields(self, now: datetime | None = None) -> list[FieldStatus]:
		now = now or datetime.now(UTC)
		fields: list[FieldStatus] = []
		for index, reading in enumerate(await self.readings.latest_per_crop()):
			profile = await self.readings.crop_profile(reading.crop_type)
			recommendation = generate_recommendation(reading, profile, now=now)
			yield_health = predict_yield_health(reading, profile)
			soil = reading.soil or SoilBlock()
			weather = reading.weather or WeatherBlock()
			name = reading.crop_type or f"field-{index + 1}"
			status = (
				field_status(reading.moisture, yield_health)
				if recommendation.action == RecommendationAction.pending
				else recommendation.priority
			)
			fields.append(
				FieldStatus(
					field_id=name,
					field_name=f"Field {name}",
					crop=name,
					moisture=soil.moisture or 0.0,
					temperature=weather.temperature or 0.0,
					humidity=weather.humidity or 0.0,
					nitrogen=soil.nitrogen or 0.0,
					phosphorus=soil.phosphorus or 0.0,
					potassium=soil.potassium or 0.0,
					soil_type=soil.soil_type or "Loamy",
					recommendation=recommendation,
					yield_health=yield_health,
					status=status,
					timestamp=reading.timestamp or now,
				)
			)
		return fields

	async def list_crops(self) -> list[CropSummary]:
		summaries: list[CropSummary] = []
		for crop_type in await self.readings.crop_types():
			latest = await self.readings.latest(crop_type)
			crop = await self.readings.get_crop(crop_type)
			summaries.append(
				CropSummary(
					crop_type=crop_type,
					crop=profile_out(await self.readings.crop_profile(crop_type)) if crop is not None else None,
					record_count=await self.readings.count(crop_type),
					latest=latest,
					last_update=latest.timestamp if latest is not None else None,
				)
			)
		return summaries

	async def crop_data(
		self,
		crop_type: str,
		hours: float = 24,
		limit: int = 100,
		now: datetime | None = None,
	) -> CropDataResponse:
		if not crop_type.strip():
			raise ValueError("Crop type is required.")
		data = await self.readings.window(hours=hours, limit=limit, crop_type=crop_type, now=now)
		if not data:
			return CropDataResponse(crop_type=crop_type)
		crop = await self.readings.get_crop(crop_type)
		return CropDataResponse(
			crop_type=crop_type,
			crop=profile_out(await self.readings.crop_profile(crop_type)) if crop is not None else None,
			data=data,
			stats=crop_stats(data),
		)


async def dispatch_status_updates(
	status: StatusResponse,
	device: DeviceLink | None,
	notifier: TelegramNotifier | None,
) -> None:
	"""Push a status to the indicator device and, when not normal, to Telegram.

	Runs after the response is sent; failures are logged only.
	"""
	if status.source == "mock":
		return
	anomalies = [alert for alert in status.alerts if alert.id is None]
	if device is not None:
		try:
			result = await device.update_from_status(anomalies, status.recommendation)
			if not result.success:
				logger.info("esp32_update_skipped", message=result.message)
		except Exception as exc:
			logger.warning("esp32_update_failed", error=str(exc))

	if notifier is None or status.alert_state == DeviceState.normal:
		return
	try:
		result = await notifier.send_alert(
			status.alert_state,
			status.reading,
			status.alerts,
			status.recommendation,
			status.reading.crop_type,
		)
		if result.success:
			logger.info("telegram_alert_sent", state=status.alert_state.value)
		else:
			logger.info("telegram_alert_not_sent", message=result.message or result.error)
	except Exception as exc:
		logger.warning("telegram_alert_failed", error=str(exc))
