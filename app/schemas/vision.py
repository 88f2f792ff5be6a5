"""Pydantic schemas for crop-image analysis."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.chat import ChatLanguage
from app.schemas.readings import Reading


class ImageAnalysisRequest(BaseModel):
	image: str = Field(min_length=1, description="Base64 image, optionally with a data: URL prefix")
	crop_type: str = "Unknown"
	reading: Reading | None = None
	language: ChatLanguage = ChatLanguage.en


class ImageAnalysis(BaseModel):
	success: bool = True
	crop_type: str = "Unknown"
	health_status: str = "unknown"
	disease_detected: bool = False
	disease_name: str = "None"
	disease_cause: str = "None"
	disease_type: str = "None"
	crop_condition: str = "perfect"
	reason: str | None = None
	market_demand: str = "Medium"
	market_reason: str = "N/A"
	cultivation_season: str = "N/A"
	cultivation_advice: str = "N/A"
	fertilizer_suggestions: list[str] = Field(default_factory=list)
	soil_suggestion: str = "N/A"
	irrigation_status: str = "N/A"
	moisture_level: str = "optimal"
	soil_level: str = "good"
	confidence: float = Field(default=0.7, ge=0.0, le=1.0)
	issues: list[str] = Field(default_factory=list)
	recommendations: list[str] = Field(default_factory=list)
	error: str | None = None
	raw_response: str | None = None
