from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest

from app.config import Settings
from app.models.enums import AlertTypeEnum, SeverityEnum
from app.schemas.intelligence import Anomaly, Recommendation, RecommendationAction
from app.services.esp32 import DeviceLink


def _settings(**overrides: object) -> Settings:
	values = {"esp32_host": "10.0.0.5", "esp32_port": 8080, "esp32_enabled": True}
	values.update(overrides)
	return Settings(**values)


def _transport(requests: list[httpx.Request], body: str = "OK", status: int = 200) -> httpx.MockTransport:
	def handler(request: httpx.Request) -> httpx.Response:
		requests.append(request)
		return httpx.Response(status, text=body)

	return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_disabled_device_is_not_contacted() -> None:
	requests: list[httpx.Request] = []
	link = DeviceLink(_settings(esp32_enabled=False), transport=_transport(requests))
	result = await link.set_state("normal")
	assert result.success is False
	assert result.message == "ESP32 service is disabled"
	assert requests == []


@pytest.mark.asyncio
async def test_invalid_state_is_rejected() -> None:
	result = await DeviceLink(_settings()).set_state("purple")
	assert result.success is False
	assert result.message == "Invalid state. Must be one of: normal, caution, critical"


@pytest.mark.asyncio
async def test_set_state_calls_device() -> None:
	requests: list[httpx.Request] = []
	link = DeviceLink(_settings(), transport=_transport(requests))

	result = await link.set_state("caution")

	assert result.success is True
	assert result.state == "caution"
	assert result.status_code == 200
	assert link.last_state == "caution"
	assert str(requests[0].url) == "http://10.0.0.5:8080/set?state=caution"


@pytest.mark.asyncio
async def test_repeated_state_is_skipped() -> None:
	requests: list[httpx.Request] = []
	link = DeviceLink(_settings(), transport=_transport(requests))
	await link.set_state("critical")
	result = await link.set_state("critical")
	assert result.success is True
	assert result.skipped is True
	assert len(requests) == 1


@pytest.mark.asyncio
async def test_unexpected_body_is_a_failure() -> None:
	link = DeviceLink(_settings(), transport=_transport([], body="ERR"))
	result = await link.set_state("normal")
	assert result.success is False
	assert result.message == "ESP32 responded with status 200"
	assert link.last_state is None


@pytest.mark.asyncio
async def test_unreachable_device_reports_error_type() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectError("no route to host", request=request)

	link = DeviceLink(_settings(), transport=httpx.MockTransport(handler))
	result = await link.set_state("normal")
	assert result.success is False
	assert result.error == "ConnectError"
	assert result.url == "http://10.0.0.5:8080"


@pytest.mark.asyncio
async def test_update_from_status_maps_leak_to_critical() -> None:
	requests: list[httpx.Request] = []
	link = DeviceLink(_settings(), transport=_transport(requests))
	leak = Anomaly(
		type=AlertTypeEnum.leak,
		severity=SeverityEnum.high,
		message="drop",
		confidence=90.0,
		timestamp=datetime(2026, 6, 1, tzinfo=UTC),
	)
	result = await link.update_from_status([leak], Recommendation(action=RecommendationAction.maintain, reason="ok"))
	assert result.state == "critical"
	assert requests[0].url.params["state"] == "critical"


def test_config_reports_address_and_last_state() -> None:
	link = DeviceLink(_settings())
	link.last_state = "normal"
	config = link.config()
	assert config.url == "http://10.0.0.5:8080"
	assert config.port == 8080
	assert config.last_state == "normal"


@pytest.mark.asyncio
async def test_connection_probe() -> None:
	ok = await DeviceLink(_settings(), transport=_transport([])).test_connection()
	assert ok.success is True
	assert ok.message == "ESP32 is reachable"

	broken = await DeviceLink(_settings(), transport=_transport([], status=500)).test_connection()
	assert broken.success is False
	assert broken.message == "ESP32 responded but with error"
