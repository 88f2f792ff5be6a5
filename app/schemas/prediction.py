"""Pydantic schemas for irrigation/health prediction and crop suitability."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.readings import Reading, SoilBlock, WeatherBlock
from app.schemas.vision import ImageAnalysis


class PredictionFeatures(BaseModel):
	"""Flat feature vector sent to the external model."""

	temperature: float = 25.0
	humidity: float = 50.0
	soil_moisture: float = 40.0
	soil_type: str = "Loamy"
	nitrogen: float = 40.0
	phosphorus: float = 20.0
	potassium: float = 30.0
	crop_type: str = "Wheat"
	image_health_status: str = "unknown"
	image_confidence: float = 0.0
	image_labels: list[str] = Field(default_factory=list)
	timestamp: datetime | None = None


class IrrigationAssessment(BaseModel):
	status: str
	message: str
	amount: float = 0.0
	assessment: str | None = None


class HealthAssessment(BaseModel):
	status: str
	image_status: str = "unknown"
	message: str
	confidence: float = 0.7


class PredictionOutcome(BaseModel):
	irrigation: IrrigationAssessment
	health: HealthAssessment
	status: str
	recommendations: list[str] = Field(default_factory=list)
	water_amount: float = 0.0
	urgency: str = "normal"
	crop_type: str | None = None


class PredictionInsights(PredictionOutcome):
	"""Model answer merged with image analysis."""

	disease_detected: bool = False
	disease_name: str = "None"
	disease_type: str = "None"
	crop_condition: str = "perfect"
	reason: str = "No issues detected"
	moisture_level: str = "optimal"
	soil_level: str = "good"


class PredictRequest(BaseModel):
	reading: Reading
	image_analysis: ImageAnalysis | None = None
	crop_type: str | None = None


class PredictResponse(BaseModel):
	success: bool = True
	source: str
	predictions: PredictionInsights
	input: PredictionFeatures
	timestamp: datetime


class CropRecommendationRequest(BaseModel):
	soil: SoilBlock | None = None
	weather: WeatherBlock | None = None


class MarketInfo(BaseModel):
	demand: str
	price: str
	season: str
	best_season: str


class CropSuggestion(BaseModel):
	crop: str
	suitability: int = Field(ge=0, le=100)
	market: MarketInfo
	reason: str
	reasons: list[dict[str, Any]] = Field(default_factory=list)
	ph_match: bool = False
	climate_match: bool = False


class CropRecommendationResponse(BaseModel):
	success: bool = True
	recommendations: list[CropSuggestion] = Field(default_factory=list)
	timestamp: datetime
