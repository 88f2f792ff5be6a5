"""Prediction, crop suitability and image analysis routes."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, status

from app.engine.suitability import recommend_crops
from app.schemas.prediction import (
	CropRecommendationRequest,
	CropRecommendationResponse,
	PredictRequest,
	PredictResponse,
)
from app.schemas.vision import ImageAnalysis, ImageAnalysisRequest
from app.services.prediction_service import PredictionService
from app.services.vision_service import VisionClient

router = APIRouter(tags=["prediction"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="prediction failure")


@router.post("/predict", response_model=PredictResponse)
async def predict(payload: PredictRequest) -> PredictResponse:
	service = PredictionService()
	try:
		return await service.predict(payload.reading, payload.image_analysis, payload.crop_type)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/recommend-crops", response_model=CropRecommendationResponse)
async def recommend(payload: CropRecommendationRequest) -> CropRecommendationResponse:
	try:
		suggestions = recommend_crops(payload.soil, payload.weather)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CropRecommendationResponse(recommendations=suggestions, timestamp=datetime.now(UTC))


@router.post("/analyze-image", response_model=ImageAnalysis)
async def analyze_image(payload: ImageAnalysisRequest) -> ImageAnalysis:
	client = VisionClient()
	try:
		return await client.analyze(payload.image, payload.crop_type, payload.reading, payload.language)
	except Exception as exc:
		raise _map_error(exc) from exc
