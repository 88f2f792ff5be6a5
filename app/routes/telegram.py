"""Telegram bot routes: webhook binding, manual chat id and test message."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request, status

from app.schemas.devices import ChatIdRequest, NotificationResult, TelegramTestRequest, TelegramUpdate
from app.services.telegram import TelegramNotifier

router = APIRouter(prefix="/telegram", tags=["telegram"])

DEFAULT_TEST_MESSAGE = "Test message from Tridentrix"


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="telegram failure")


def _notifier(request: Request) -> TelegramNotifier:
	notifier = getattr(request.app.state, "notifier", None)
	if notifier is None:
		notifier = TelegramNotifier()
		request.app.state.notifier = notifier
	return notifier


@router.post("/webhook")
async def webhook(update: TelegramUpdate, request: Request) -> dict[str, Any]:
	chat_id = update.chat_id()
	if chat_id is None:
		return {"ok": True}
	notifier = _notifier(request)
	try:
		notifier.set_chat_id(chat_id)
		await notifier.send_message(
			f"*Tridentrix bot connected*\n\nChat ID: {chat_id}\n\n"
			"Alerts for critical and caution states will be sent here."
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return {"ok": True, "chat_id": chat_id}


@router.post("/chat-id")
async def set_chat_id(payload: ChatIdRequest, request: Request) -> dict[str, Any]:
	chat_id = payload.normalized
	if not chat_id:
		raise _map_error(ValueError("Chat ID is required"))
	_notifier(request).set_chat_id(chat_id)
	return {"success": True, "chat_id": chat_id}


@router.post("/test", response_model=NotificationResult)
async def send_test(payload: TelegramTestRequest, request: Request) -> NotificationResult:
	try:
		return await _notifier(request).send_message(payload.message or DEFAULT_TEST_MESSAGE)
	except Exception as exc:
		raise _map_error(exc) from exc
