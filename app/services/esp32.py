"""HTTP link to the ESP32 traffic-light indicator."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import httpx
import structlog

from app.config import Settings, get_settings
from app.engine.alert_state import device_state
from app.schemas.devices import DeviceConfig, DeviceResult
from app.schemas.intelligence import Anomaly, DeviceState, Recommendation

logger = structlog.get_logger("tridentrix.esp32")

VALID_STATES = tuple(state.value for state in DeviceState)


class DeviceLink:
	"""Pushes ``normal``/``caution``/``critical`` to ``GET /set?state=``.

	Failures come back as ``DeviceResult(success=False)``; nothing here raises
	for network errors.
	"""

	def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
		self.settings = settings or get_settings()
		self.transport = transport
		self.last_state: str | None = None

	@property
	def enabled(self) -> bool:
		return self.settings.esp32_enabled

	@property
	def url(self) -> str:
		return f"http://{self.settings.esp32_host}:{self.settings.esp32_port}"

	def _client(self) -> httpx.AsyncClient:
		return httpx.AsyncClient(timeout=self.settings.esp32_timeout_seconds, transport=self.transport)

	async def set_state(self, state: str) -> DeviceResult:
		if not self.enabled:
			return DeviceResult(success=False, message="ESP32 service is disabled")
		if state not in VALID_STATES:
			return DeviceResult(
				success=False,
				message=f"Invalid state. Must be one of: {', '.join(VALID_STATES)}",
			)
		if self.last_state == state:
			return DeviceResult(success=True, state=state, message=f"State already set to {state}", skipped=True)

		url = f"{self.url}/set"
		now = datetime.now(UTC)
		try:
			async with self._client() as client:
				response = await client.get(url, params={"state": state})
		except httpx.HTTPError as exc:
			logger.warning("esp32_unreachable", url=url, state=state, error=str(exc))
			return DeviceResult(
				success=False,
				state=state,
				message=str(exc) or "Failed to communicate with ESP32",
				error=type(exc).__name__,
				url=self.url,
				timestamp=now,
			)

		if response.status_code == 200 and response.text.strip() == "OK":
			self.last_state = state
			logger.info("esp32_state_set", state=state)
			return DeviceResult(
				success=True,
				state=state,
				message=f"ESP32 state set to {state}",
				status_code=response.status_code,
				timestamp=now,
			)

		logger.warning("esp32_bad_response", state=state, status_code=response.status_code)
		return DeviceResult(
			success=False,
			state=state,
			message=f"ESP32 responded with status {response.status_code}",
			status_code=response.status_code,
			timestamp=now,
		)

	async def update_from_status(
		self,
		anomalies: Sequence[Anomaly],
		recommendation: Recommendation | None,
	) -> DeviceResult:
		return await self.set_state(device_state(anomalies, recommendation).value)

	def config(self) -> DeviceConfig:
		return DeviceConfig(
			enabled=self.enabled,
			host=self.settings.esp32_host,
			port=self.settings.esp32_port,
			url=self.url,
			last_state=self.last_state,
		)

	async def test_connection(self) -> DeviceResult:
		url = f"{self.url}/set?state=normal"
		try:
			async with self._client() as client:
				response = await client.get(f"{self.url}/set", params={"state": DeviceState.normal.value})
		except httpx.HTTPError as exc:
			return DeviceResult(
				success=False,
				message=f"Cannot reach ESP32: {exc}",
				error=type(exc).__name__,
				url=self.url,
			)
		ok = response.status_code == 200
		return DeviceResult(
			success=ok,
			status_code=response.status_code,
			message="ESP32 is reachable" if ok else "ESP32 responded but with error",
			url=url,
		)
