"""Irrigation and crop-health prediction: external model, then Gemini, then rules."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from app.config import Settings, get_settings
from app.engine.prediction import features_from_reading, merge_insights, rule_based_prediction
from app.schemas.prediction import PredictionFeatures, PredictResponse
from app.schemas.readings import Reading
from app.schemas.vision import ImageAnalysis
from app.services.gemini_client import GeminiClient, GeminiUnavailableError, extract_json_object

logger = structlog.get_logger("tridentrix.prediction")


def build_prediction_prompt(features: PredictionFeatures, image: ImageAnalysis | None) -> str:
	issues = ", ".join(image.issues) if image and image.issues else "none"
	return (
		"You are an expert agricultural AI. Analyze the following sensor data and image analysis "
		"to predict irrigation needs and crop health.\n\n"
		"Sensor Data:\n"
		f"- Temperature: {features.temperature}°C\n"
		f"- Humidity: {features.humidity}%\n"
		f"- Soil Moisture: {features.soil_moisture}%\n"
		f"- Soil Type: {features.soil_type}\n"
		f"- NPK: N={features.nitrogen}, P={features.phosphorus}, K={features.potassium}\n"
		f"- Crop Type: {features.crop_type}\n\n"
		"Image Analysis:\n"
		f"- Health Status: {image.health_status if image else 'unknown'}\n"
		f"- Issues: {issues}\n\n"
		"Provide predictions in JSON format:\n"
		"{\n"
		'  "irrigation_status": "less|perfect|too_much|no_water_needed",\n'
		'  "water_amount": number (L/m²),\n'
		'  "health_status": "normal|caution|critical",\n'
		'  "confidence": 0.0-1.0,\n'
		'  "recommendations": ["rec1", "rec2", "rec3"]\n'
		"}\n\n"
		"Rules:\n"
		'- If humidity > 70%, irrigation_status = "no_water_needed"\n'
		'- If soil_moisture < 30%, irrigation_status = "less", water_amount = 40 - soil_moisture\n'
		'- If soil_moisture > 60%, irrigation_status = "too_much"\n'
		'- If image health = "rotten" or "unhealthy", health_status = "critical"\n'
		'- If image health = "dry", health_status = "caution"\n'
		"- Provide actionable recommendations based on the analysis."
	)


class PredictionService:
	def __init__(
		self,
		settings: Settings | None = None,
		gemini: GeminiClient | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		self.settings = settings or get_settings()
		self.gemini = gemini or GeminiClient(self.settings)
		self.transport = transport

	async def _model_prediction(self, features: PredictionFeatures) -> dict[str, Any]:
		async with httpx.AsyncClient(
			timeout=self.settings.ml_api_timeout_seconds,
			transport=self.transport,
		) as client:
			response = await client.post(self.settings.ml_api_url, json=features.model_dump(mode="json"))
			response.raise_for_status()
			payload = response.json()
		if not isinstance(payload, dict):
			raise ValueError("model returned a non-object payload")
		return payload

	async def _gemini_prediction(self, features: PredictionFeatures, image: ImageAnalysis | None) -> dict[str, Any] | None:
		text = await self.gemini.generate([{"text": build_prediction_prompt(features, image)}])
		parsed = extract_json_object(text)
		if parsed is None or not parsed.get("irrigation_status"):
			return None
		return parsed

	async def predict(
		self,
		reading: Reading,
		image: ImageAnalysis | None = None,
		crop_type: str | None = None,
	) -> PredictResponse:
		now = datetime.now(UTC)
		features = features_from_reading(reading, image, crop_type, now)

		source = "ml"
		output: dict[str, Any] | None
		try:
			output = await self._model_prediction(features)
		except (httpx.HTTPError, ValueError) as exc:
			logger.info("ml_api_unavailable", error=str(exc))
			output = None

		if output is None:
			source = "gemini"
			try:
				output = await self._gemini_prediction(features, image)
			except (GeminiUnavailableError, httpx.HTTPError, ValueError) as exc:
				logger.info("gemini_prediction_unavailable", error=str(exc))
				output = None

		if output is None:
			source = "rules"
			output = rule_based_prediction(features).model_dump()

		insights = merge_insights(output, features, image)
		logger.info("prediction_complete", source=source, status=insights.status, crop_type=insights.crop_type)
		return PredictResponse(success=True, source=source, predictions=insights, input=features, timestamp=now)
