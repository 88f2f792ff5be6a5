"""Telegram Bot API notifier with per-chat spacing and alert cooldowns."""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime

import httpx
import structlog

from app.config import Settings, get_settings
from app.schemas.devices import NotificationResult
from app.schemas.intelligence import Anomaly, DeviceState, Recommendation
from app.schemas.readings import Reading
from app.services.cooldown import CooldownTable

logger = structlog.get_logger("tridentrix.telegram")

MAX_ALERTS_IN_MESSAGE = 3

_TITLES = {
	DeviceState.critical: ("🔴", "🚨 CRITICAL ALERT"),
	DeviceState.caution: ("🟡", "⚠️ CAUTION ALERT"),
	DeviceState.normal: ("🟢", "✅ NORMAL STATUS"),
}


def _fmt(value: float | None, digits: int = 1) -> str:
	return "N/A" if value is None else f"{value:.{digits}f}"


def format_reading(reading: Reading | None) -> str:
	if reading is None:
		return "N/A"
	soil = reading.soil
	weather = reading.weather

	lines = ["📊 *Sensor Data:*"]
	lines.append(f"• Moisture: {_fmt(soil.moisture if soil else None)}%")
	lines.append(f"• Temperature: {_fmt(weather.temperature if weather else None)}°C")
	lines.append(f"• Humidity: {_fmt(weather.humidity if weather else None)}%")
	n = soil.nitrogen if soil and soil.nitrogen is not None else 0
	p = soil.phosphorus if soil and soil.phosphorus is not None else 0
	k = soil.potassium if soil and soil.potassium is not None else 0
	lines.append(f"• NPK: N{n:g} P{p:g} K{k:g}")
	if reading.crop_type:
		lines.append(f"• Crop: {reading.crop_type}")
	if soil and soil.soil_type:
		lines.append(f"• Soil Type: {soil.soil_type}")
	if soil and soil.ph is not None:
		lines.append(f"• pH: {soil.ph:.2f}")
	if weather and weather.wind_speed:
		lines.append(f"• Wind Speed: {weather.wind_speed:.1f} km/h")
	if weather and weather.chance_of_rain is not None:
		lines.append(f"• Rain Chance: {weather.chance_of_rain:g}%")
	return "\n".join(lines)


def format_alert(
	state: DeviceState,
	reading: Reading | None,
	alerts: Sequence[Anomaly] = (),
	recommendation: Recommendation | None = None,
	crop_name: str | None = None,
	now: datetime | None = None,
) -> str:
	emoji, title = _TITLES[state]
	sections = [f"{emoji} *{title}*", ""]
	if crop_name:
		sections.append(f"🌾 *Crop:* {crop_name}")
	sections.append(f"📊 *Status:* {state.value.upper()}")
	sections.append(f"🕐 *Time:* {(now or datetime.now()).strftime('%Y-%m-%d %H:%M:%S')}")
	sections.append("")
	sections.append(format_reading(reading))

	if alerts:
		sections.append("")
		sections.append("🚨 *Active Alerts:*")
		for alert in list(alerts)[:MAX_ALERTS_IN_MESSAGE]:
			sections.append(f"• {alert.type.value}: {alert.message}")

	if recommendation is not None:
		sections.append("")
		sections.append("💡 *Recommendation:*")
		sections.append(f"• Action: {recommendation.action.value}")
		sections.append(f"• Reason: {recommendation.reason}")
		if recommendation.amount:
			sections.append(f"• Water Amount: {recommendation.amount:g} L/m²")
		if recommendation.duration:
			sections.append(f"• Duration: {recommendation.duration} minutes")
		if recommendation.recommended_time:
			sections.append(f"• Best Time: {recommendation.recommended_time}")
	return "\n".join(sections)


def alert_key(state: DeviceState, crop_name: str | None, moisture: float | None) -> str:
	"""Cooldown key; a new whole-percent moisture value gets its own key."""
	floor = str(math.floor(moisture)) if moisture else "unknown"
	return f"{state.value}-{crop_name or 'general'}-{floor}"


class TelegramNotifier:
	def __init__(
		self,
		settings: Settings | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
		clock: Callable[[], float] = time.monotonic,
		sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
	):
		self.settings = settings or get_settings()
		self.transport = transport
		self.clock = clock
		self.sleep = sleep
		self.chat_id: str | None = self.settings.telegram_chat_id or None
		self.cooldowns = CooldownTable(self.settings.telegram_alert_cooldown_seconds, clock=clock)
		self._last_sent: dict[str, float] = {}
		self._lock = asyncio.Lock()

	@property
	def token(self) -> str:
		return self.settings.telegram_bot_token

	@property
	def enabled(self) -> bool:
		return bool(self.token) and self.settings.telegram_enabled

	@property
	def api_url(self) -> str | None:
		if not self.token:
			return None
		return f"{self.settings.telegram_api_base}/bot{self.token}"

	def set_chat_id(self, chat_id: str) -> None:
		self.chat_id = chat_id
		logger.info("telegram_chat_id_set", chat_id=chat_id)

	async def send_message(self, text: str) -> NotificationResult:
		if not self.token:
			return NotificationResult(success=False, message="Bot token not configured")
		if not self.settings.telegram_enabled:
			return NotificationResult(success=False, message="Telegram service is disabled")
		if not self.chat_id:
			logger.warning("telegram_chat_id_missing")
			return NotificationResult(success=False, message="Chat ID not configured")

		async with self._lock:
			chat_id = self.chat_id
			last = self._last_sent.get(chat_id)
			if last is not None:
				wait = self.settings.telegram_min_delay_seconds - (self.clock() - last)
				if wait > 0:
					await self.sleep(wait)
			return await self._send_direct(chat_id, text)

	async def _send_direct(self, chat_id: str, text: str) -> NotificationResult:
		body = {
			"chat_id": chat_id,
			"text": text,
			"parse_mode": "Markdown",
			"disable_web_page_preview": True,
		}
		try:
			async with httpx.AsyncClient(
				timeout=self.settings.telegram_timeout_seconds,
				transport=self.transport,
			) as client:
				response = await client.post(f"{self.api_url}/sendMessage", json=body)
				response.raise_for_status()
				payload = response.json()
		except httpx.HTTPStatusError as exc:
			description = None
			try:
				description = exc.response.json().get("description")
			except ValueError:
				description = None
			logger.warning("telegram_send_failed", status_code=exc.response.status_code, error=description)
			return NotificationResult(success=False, error=description or str(exc))
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("telegram_send_failed", error=str(exc))
			return NotificationResult(success=False, error=str(exc))

		self._last_sent[chat_id] = self.clock()
		message_id = (payload.get("result") or {}).get("message_id") if isinstance(payload, dict) else None
		logger.info("telegram_message_sent", chat_id=chat_id, message_id=message_id)
		return NotificationResult(success=True, message_id=message_id)

	async def send_alert(
		self,
		state: DeviceState,
		reading: Reading | None,
		alerts: Sequence[Anomaly] = (),
		recommendation: Recommendation | None = None,
		crop_name: str | None = None,
	) -> NotificationResult:
		key = alert_key(state, crop_name, reading.moisture if reading else None)
		if self.cooldowns.is_cooling(key):
			logger.info("telegram_alert_cooldown", key=key)
			return NotificationResult(success=False, message="Alert in cooldown")

		text = format_alert(state, reading, alerts, recommendation, crop_name)
		result = await self.send_message(text)
		if result.success:
			self.cooldowns.mark(key)
		return result
