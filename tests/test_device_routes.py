from __future__ import annotations

import httpx
import pytest
from httpx import AsyncClient

from app.config import Settings
from app.main import app
from app.services.esp32 import DeviceLink
from app.services.telegram import TelegramNotifier


class RecordingSleep:
	async def __call__(self, seconds: float) -> None:
		return None


def _device(requests: list[httpx.Request]) -> DeviceLink:
	def handler(request: httpx.Request) -> httpx.Response:
		requests.append(request)
		return httpx.Response(200, text="OK")

	return DeviceLink(Settings(esp32_host="esp.local", esp32_port=80), transport=httpx.MockTransport(handler))


def _notifier(requests: list[httpx.Request], chat_id: str = "") -> TelegramNotifier:
	def handler(request: httpx.Request) -> httpx.Response:
		requests.append(request)
		return httpx.Response(200, json={"ok": True, "result": {"message_id": len(requests)}})

	settings = Settings(telegram_bot_token="TOKEN", telegram_chat_id=chat_id, telegram_enabled=True)
	return TelegramNotifier(settings, transport=httpx.MockTransport(handler), sleep=RecordingSleep())


@pytest.mark.asyncio
async def test_set_device_state(client: AsyncClient) -> None:
	requests: list[httpx.Request] = []
	app.state.device = _device(requests)

	response = await client.post("/api/v1/devices/esp32/set", json={"state": " Caution "})

	assert response.status_code == 200
	body = response.json()
	assert body["success"] is True
	assert body["state"] == "caution"
	assert requests[0].url.params["state"] == "caution"


@pytest.mark.asyncio
async def test_set_invalid_device_state(client: AsyncClient) -> None:
	app.state.device = _device([])

	response = await client.post("/api/v1/devices/esp32/set", json={"state": "blue"})

	assert response.status_code == 200
	assert response.json()["success"] is False
	assert response.json()["message"].startswith("Invalid state")


@pytest.mark.asyncio
async def test_device_config_and_probe(client: AsyncClient) -> None:
	requests: list[httpx.Request] = []
	app.state.device = _device(requests)
	await client.post("/api/v1/devices/esp32/set", json={"state": "normal"})

	config = await client.get("/api/v1/devices/esp32/config")
	probe = await client.get("/api/v1/devices/esp32/test")

	assert config.json() == {
		"enabled": True,
		"host": "esp.local",
		"port": 80,
		"url": "http://esp.local:80",
		"last_state": "normal",
	}
	assert probe.json()["message"] == "ESP32 is reachable"
	assert len(requests) == 2


@pytest.mark.asyncio
async def test_device_is_created_on_first_use(client: AsyncClient) -> None:
	response = await client.get("/api/v1/devices/esp32/config")
	assert response.status_code == 200
	assert isinstance(app.state.device, DeviceLink)


@pytest.mark.asyncio
async def test_webhook_binds_chat_and_confirms(client: AsyncClient) -> None:
	requests: list[httpx.Request] = []
	notifier = _notifier(requests)
	app.state.notifier = notifier

	response = await client.post(
		"/api/v1/telegram/webhook",
		json={"update_id": 1, "message": {"chat": {"id": 123456}, "text": "/start"}},
	)

	assert response.json() == {"ok": True, "chat_id": "123456"}
	assert notifier.chat_id == "123456"
	assert len(requests) == 1


@pytest.mark.asyncio
async def test_webhook_without_chat_is_ignored(client: AsyncClient) -> None:
	requests: list[httpx.Request] = []
	app.state.notifier = _notifier(requests)

	response = await client.post("/api/v1/telegram/webhook", json={"update_id": 2})

	assert response.json() == {"ok": True}
	assert requests == []


@pytest.mark.asyncio
async def test_set_chat_id(client: AsyncClient) -> None:
	notifier = _notifier([])
	app.state.notifier = notifier

	response = await client.post("/api/v1/telegram/chat-id", json={"chat_id": 987})
	blank = await client.post("/api/v1/telegram/chat-id", json={"chat_id": "  "})

	assert response.json() == {"success": True, "chat_id": "987"}
	assert notifier.chat_id == "987"
	assert blank.status_code == 400
	assert blank.json()["detail"] == "Chat ID is required"


@pytest.mark.asyncio
async def test_send_test_message(client: AsyncClient) -> None:
	requests: list[httpx.Request] = []
	app.state.notifier = _notifier(requests, chat_id="42")

	response = await client.post("/api/v1/telegram/test", json={})

	assert response.status_code == 200
	assert response.json()["success"] is True
	assert b"Test message from Tridentrix" in requests[0].content


@pytest.mark.asyncio
async def test_send_test_message_without_chat(client: AsyncClient) -> None:
	app.state.notifier = _notifier([])

	response = await client.post("/api/v1/telegram/test", json={"message": "ping"})

	assert response.status_code == 200
	assert response.json() == {"success": False, "message": "Chat ID not configured", "message_id": None, "error": None}
