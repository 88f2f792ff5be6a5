"""Per-crop reading routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.readings import CropDataResponse, CropSummary
from app.services.status_service import STORAGE_ERRORS, StatusService

router = APIRouter(prefix="/crops", tags=["crops"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, STORAGE_ERRORS):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database not connected")
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="crop lookup failure")


@router.get("", response_model=list[CropSummary])
async def list_crops(request: Request, db: AsyncSession = Depends(get_db)) -> list[CropSummary]:
	service = StatusService(db, getattr(request.app.state, "weather", None))
	try:
		return await service.list_crops()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/{crop_type}", response_model=CropDataResponse)
async def get_crop_data(
	crop_type: str,
	request: Request,
	limit: int = Query(default=100, ge=1, le=1000),
	hours: float = Query(default=24, gt=0, le=24 * 90),
	db: AsyncSession = Depends(get_db),
) -> CropDataResponse:
	service = StatusService(db, getattr(request.app.state, "weather", None))
	try:
		return await service.crop_data(crop_type, hours=hours, limit=limit)
	except Exception as exc:
		raise _map_error(exc) from exc
