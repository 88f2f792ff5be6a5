"""Pydantic schemas for the ESP32 indicator and Telegram bot endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class DeviceStateRequest(BaseModel):
	state: str = Field(min_length=1, max_length=20)


class DeviceResult(BaseModel):
	success: bool
	message: str
	state: str | None = None
	skipped: bool = False
	status_code: int | None = None
	error: str | None = None
	url: str | None = None
	timestamp: datetime | None = None


class DeviceConfig(BaseModel):
	enabled: bool
	host: str
	port: int
	url: str
	last_state: str | None = None


class NotificationResult(BaseModel):
	success: bool
	message: str | None = None
	message_id: int | None = None
	error: str | None = None


class ChatIdRequest(BaseModel):
	chat_id: str | int

	@property
	def normalized(self) -> str:
		return str(self.chat_id).strip()


class TelegramTestRequest(BaseModel):
	message: str | None = None


class TelegramUpdate(BaseModel):
	"""Subset of a Telegram Bot API update payload."""

	update_id: int | None = None
	message: dict[str, Any] | None = None

	def chat_id(self) -> str | None:
		if not self.message:
			return None
		chat = self.message.get("chat")
		if not isinstance(chat, dict) or chat.get("id") is None:
			return None
		return str(chat["id"])
