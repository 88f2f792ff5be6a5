"""Crop-image analysis through Gemini with keyword and fallback parsing."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from app.schemas.chat import LANGUAGE_NAMES, ChatLanguage
from app.schemas.readings import Reading
from app.schemas.vision import ImageAnalysis
from app.services.gemini_client import GeminiClient, GeminiUnavailableError, extract_json_object

logger = structlog.get_logger("tridentrix.vision")

KNOWN_CROPS = ("rice", "wheat", "maize", "corn", "tomato", "sugarcane", "potato", "cotton", "soybean")
FALLBACK_RECOMMENDATION = "Unable to analyze image. Please ensure good lighting and clear focus."

_CONFIDENCE = re.compile(r"confidence[:\s]+([0-9.]+)", re.IGNORECASE)
_DATA_URL = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")

# model JSON key -> ImageAnalysis field
_TEXT_FIELDS = {
	"cropType": "crop_type",
	"healthStatus": "health_status",
	"diseaseName": "disease_name",
	"diseaseCause": "disease_cause",
	"marketDemand": "market_demand",
	"marketReason": "market_reason",
	"cultivationSeason": "cultivation_season",
	"cultivationAdvice": "cultivation_advice",
	"soilSuggestion": "soil_suggestion",
	"irrigationStatus": "irrigation_status",
	"moistureLevel": "moisture_level",
	"soilLevel": "soil_level",
}

_MOISTURE_KEYWORDS = (
	("low", ("low moisture", "dry soil", "dehydrated")),
	("high", ("high moisture", "wet", "saturated")),
	("medium", ("medium moisture", "moderate")),
	("optimal", ("optimal moisture", "adequate")),
)
_SOIL_KEYWORDS = (
	("poor", ("poor soil", "bad soil", "degraded")),
	("fair", ("fair soil", "average soil")),
	("good", ("good soil", "healthy soil")),
	("excellent", ("excellent soil", "rich soil", "fertile")),
)


def strip_data_url(image: str) -> str:
	return _DATA_URL.sub("", image.strip())


def _fmt(value: Any) -> str:
	return "N/A" if value is None else str(value)


def build_prompt(reading: Reading | None, language: ChatLanguage) -> str:
	target = LANGUAGE_NAMES.get(language, "English")
	sensor_block = ""
	if reading is not None:
		soil = reading.soil
		weather = reading.weather
		sensor_block = (
			"\nCURRENT SENSOR DATA:\n"
			f"- Temperature: {_fmt(weather.temperature if weather else None)}°C\n"
			f"- Humidity: {_fmt(weather.humidity if weather else None)}%\n"
			f"- Soil Moisture: {_fmt(soil.moisture if soil else None)}%\n"
			f"- NPK: N={_fmt(soil.nitrogen if soil else None)}, "
			f"P={_fmt(soil.phosphorus if soil else None)}, K={_fmt(soil.potassium if soil else None)}\n"
			f"- Soil Type: {_fmt(soil.soil_type if soil else None)}\n"
		)
	return (
		"You are an expert agricultural AI. Analyze this crop image comprehensively, "
		"integrating the provided sensor data if available.\n\n"
		f"You MUST provide your entire response in {target} language ONLY. "
		f"Translate all explanations into {target}; keep numbers and terms such as pH and NPK.\n"
		f"{sensor_block}\n"
		"REQUIRED ANALYSIS:\n"
		"1. Crop type detection.\n"
		'2. Health status: "perfect", "dry", "rotten" or "diseased".\n'
		"3. Disease name and cause, if diseased.\n"
		"4. Market demand (High/Medium/Low) with a reason, and the best cultivation season.\n"
		"5. Fertilizer suggestions for the current conditions.\n"
		"6. Soil type or amendments for this crop.\n"
		"7. Irrigation requirement from both the image and the sensor data.\n\n"
		f"Respond in JSON (all values in {target}):\n"
		"{\n"
		'  "cropType": "exact crop name",\n'
		'  "healthStatus": "perfect|dry|rotten|diseased",\n'
		'  "diseaseName": "specific disease name or \'None\'",\n'
		'  "diseaseCause": "cause of the disease or \'None\'",\n'
		'  "marketDemand": "High/Medium/Low",\n'
		'  "marketReason": "explanation of market demand",\n'
		'  "cultivationSeason": "recommended season",\n'
		'  "cultivationAdvice": "advice on cultivation if diseased",\n'
		'  "fertilizerSuggestions": ["fertilizer 1", "fertilizer 2"],\n'
		'  "soilSuggestion": "best soil/amendments",\n'
		'  "irrigationStatus": "irrigation plan",\n'
		'  "moistureLevel": "low|medium|high|optimal",\n'
		'  "soilLevel": "poor|fair|good|excellent",\n'
		'  "confidence": 0.0-1.0,\n'
		'  "issues": ["issue1"],\n'
		'  "recommendations": ["recommendation 1"]\n'
		"}"
	)


def _as_list(value: Any) -> list[str]:
	if value is None:
		return []
	if isinstance(value, list):
		return [str(item) for item in value]
	return [str(value)]


def _match_keywords(text: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str | None:
	for level, phrases in table:
		if any(phrase in text for phrase in phrases):
			return level
	return None


def parse_analysis(text: str, crop_type: str = "Unknown") -> ImageAnalysis:
	"""Structured JSON first, then keyword extraction over the raw text."""
	values: dict[str, Any] = {"crop_type": crop_type or "Unknown"}
	parsed = extract_json_object(text)
	if parsed is not None:
		for key, field in _TEXT_FIELDS.items():
			if parsed.get(key):
				values[field] = str(parsed[key])
		values["fertilizer_suggestions"] = _as_list(parsed.get("fertilizerSuggestions"))
		values["issues"] = _as_list(parsed.get("issues"))
		values["recommendations"] = _as_list(parsed.get("recommendations"))
		try:
			if parsed.get("confidence"):
				values["confidence"] = float(parsed["confidence"])
		except (TypeError, ValueError):
			logger.info("vision_confidence_unparseable", value=parsed.get("confidence"))

	lower = text.lower()
	if values["crop_type"] in ("Unknown", crop_type):
		detected = next((crop for crop in KNOWN_CROPS if crop in lower), None)
		if detected is not None:
			values["crop_type"] = detected.capitalize()

	if "moisture" in lower or "water" in lower:
		level = _match_keywords(lower, _MOISTURE_KEYWORDS)
		if level is not None:
			values["moisture_level"] = level
	if "soil" in lower:
		level = _match_keywords(lower, _SOIL_KEYWORDS)
		if level is not None:
			values["soil_level"] = level

	match = _CONFIDENCE.search(text)
	if match is not None:
		try:
			values["confidence"] = float(match.group(1))
		except ValueError:
			pass
	values["confidence"] = min(1.0, max(0.0, float(values.get("confidence", 0.7))))

	health = values.get("health_status", "unknown")
	disease = values.get("disease_name", "None")
	if not values.get("recommendations"):
		if health == "diseased":
			values["recommendations"] = [
				f"Apply treatment for {disease if disease != 'None' else 'detected disease'}",
				"Check soil moisture and NPK levels",
				"Consider crop rotation if disease persists",
			]
		elif health == "dry" or values.get("moisture_level") == "low":
			values["recommendations"] = [
				"Increase irrigation frequency and amount",
				"Monitor soil moisture levels closely",
			]
		elif health == "perfect":
			values["recommendations"] = [
				"Continue current irrigation and fertilization schedule",
				"Maintain optimal growing conditions",
			]

	values["disease_detected"] = health == "diseased" or disease not in ("None", "")
	values["raw_response"] = text
	return ImageAnalysis(**values)


def fallback_analysis(error: str, crop_type: str = "Unknown") -> ImageAnalysis:
	return ImageAnalysis(
		success=False,
		crop_type=crop_type or "Unknown",
		health_status="unknown",
		confidence=0.5,
		recommendations=[FALLBACK_RECOMMENDATION],
		error=error,
	)


class VisionClient:
	def __init__(self, gemini: GeminiClient | None = None):
		self.gemini = gemini or GeminiClient()

	async def analyze(
		self,
		image: str,
		crop_type: str = "Unknown",
		reading: Reading | None = None,
		language: ChatLanguage = ChatLanguage.en,
	) -> ImageAnalysis:
		parts = [
			{"text": build_prompt(reading, language)},
			{"inline_data": {"mime_type": "image/jpeg", "data": strip_data_url(image)}},
		]
		try:
			text = await self.gemini.generate(parts)
		except (GeminiUnavailableError, httpx.HTTPError, ValueError) as exc:
			logger.warning("vision_analysis_failed", error=str(exc))
			return fallback_analysis(str(exc), crop_type)
		return parse_analysis(text, crop_type)
