"""ESP32 indicator routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from app.schemas.devices import DeviceConfig, DeviceResult, DeviceStateRequest
from app.services.esp32 import DeviceLink

router = APIRouter(prefix="/devices/esp32", tags=["devices"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="device failure")


def _device(request: Request) -> DeviceLink:
	device = getattr(request.app.state, "device", None)
	if device is None:
		device = DeviceLink()
		request.app.state.device = device
	return device


@router.post("/set", response_model=DeviceResult)
async def set_state(payload: DeviceStateRequest, request: Request) -> DeviceResult:
	try:
		return await _device(request).set_state(payload.state.strip().lower())
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/config", response_model=DeviceConfig)
async def get_config(request: Request) -> DeviceConfig:
	return _device(request).config()


@router.get("/test", response_model=DeviceResult)
async def test_connection(request: Request) -> DeviceResult:
	try:
		return await _device(request).test_connection()
	except Exception as exc:
		raise _map_error(exc) from exc
