"""WebSocket live feed route."""

from __future__ import annotations

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.config import get_settings

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/live")
async def ws_live_feed(websocket: WebSocket) -> None:
	await websocket.accept()

	redis_client = getattr(websocket.app.state, "redis", None)
	if redis_client is None:
		await websocket.send_json({"error": "redis_unavailable"})
		await websocket.close(code=1011)
		return

	crop_filter = (websocket.query_params.get("crop_type") or "").strip().lower()
	channel = get_settings().live_channel
	pubsub = redis_client.pubsub()
	await pubsub.subscribe(channel)

	try:
		while True:
			message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
			if message is not None and message.get("type") == "message":
				payload = message.get("data")
				if isinstance(payload, bytes):
					payload = payload.decode("utf-8")
				if isinstance(payload, str):
					try:
						event = json.loads(payload)
					except json.JSONDecodeError:
						await websocket.send_text(payload)
					else:
						if _matches(event, crop_filter):
							await websocket.send_json(event)
			await asyncio.sleep(0.05)
	except WebSocketDisconnect:
		return
	finally:
		await pubsub.unsubscribe(channel)
		await pubsub.close()


def _matches(event: object, crop_filter: str) -> bool:
	if not crop_filter or not isinstance(event, dict):
		return True
	reading = event.get("reading")
	crop = reading.get("crop_type") if isinstance(reading, dict) else None
	return isinstance(crop, str) and crop.strip().lower() == crop_filter
