"""Dashboard routes: live status, history, analytics and per-field cards."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.intelligence import FieldStatus, HistorySummary, StatusResponse
from app.schemas.readings import Reading
from app.services.status_service import STORAGE_ERRORS, StatusService, dispatch_status_updates

router = APIRouter(tags=["status"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, STORAGE_ERRORS):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database not connected")
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="status failure")


def _service(request: Request, db: AsyncSession) -> StatusService:
	return StatusService(db, getattr(request.app.state, "weather", None))


@router.get("/status", response_model=StatusResponse)
async def get_status(
	request: Request,
	background_tasks: BackgroundTasks,
	db: AsyncSession = Depends(get_db),
) -> StatusResponse:
	service = _service(request, db)
	try:
		payload = await service.get_status()
	except Exception as exc:
		raise _map_error(exc) from exc

	background_tasks.add_task(
		dispatch_status_updates,
		payload,
		getattr(request.app.state, "device", None),
		getattr(request.app.state, "notifier", None),
	)
	return payload


@router.get("/history", response_model=list[Reading])
async def get_history(
	request: Request,
	limit: int = Query(default=100, ge=1, le=1000),
	hours: float = Query(default=24, gt=0, le=24 * 90),
	db: AsyncSession = Depends(get_db),
) -> list[Reading]:
	service = _service(request, db)
	try:
		return await service.get_history(hours=hours, limit=limit)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/analytics", response_model=HistorySummary)
async def get_analytics(
	request: Request,
	days: float = Query(default=7, gt=0, le=365),
	crop_type: str | None = Query(default=None, min_length=1),
	db: AsyncSession = Depends(get_db),
) -> HistorySummary:
	service = _service(request, db)
	try:
		return await service.get_analytics(days=days, crop_type=crop_type)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/fields", response_model=list[FieldStatus])
async def get_fields(request: Request, db: AsyncSession = Depends(get_db)) -> list[FieldStatus]:
	service = _service(request, db)
	try:
		return await service.get_fields()
	except Exception as exc:
		raise _map_error(exc) from exc
