"""Farm assistant: Gemini answers grounded in the latest reading, with a local fallback."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.engine.health import predict_yield_health
from app.engine.profiles import CropProfile
from app.engine.recommendation import generate_recommendation
from app.engine.suitability import recommend_crops
from app.schemas.chat import LANGUAGE_NAMES, ChatLanguage, ChatRequest, ChatResponse, ChatSource
from app.schemas.intelligence import RecommendationAction
from app.schemas.prediction import PredictionInsights
from app.schemas.readings import Reading
from app.schemas.vision import ImageAnalysis
from app.services.gemini_client import GeminiClient, GeminiUnavailableError
from app.services.prediction_service import PredictionService
from app.services.reading_service import ReadingService

logger = structlog.get_logger("tridentrix.chat")

INTENT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
	("recommend", ("recommend", "suggest", "best crop", "what crop", "which crop", "crop for")),
	("irrigation", ("irrigation", "water", "irrigate", "watering")),
	("moisture", ("moisture", "soil", "dry", "wet")),
	("health", ("health", "yield", "disease", "problem")),
	("weather", ("weather", "temperature", "temp", "climate")),
	("nutrients", ("fertilizer", "nutrient", "npk", "nitrogen", "phosphorus", "potassium")),
	("help", ("help", "what can", "how to", "guide")),
)

CAPABILITIES = (
	"- Crop recommendations\n"
	"- Irrigation scheduling\n"
	"- Soil analysis\n"
	"- Crop health monitoring\n"
	"- Nutrient management\n"
	"- Weather impact analysis"
)


def classify_intent(message: str) -> str:
	lower = message.lower()
	for intent, keywords in INTENT_KEYWORDS:
		if any(keyword in lower for keyword in keywords):
			return intent
	return "general"


def _num(value: float | None, digits: int = 1) -> str:
	return "N/A" if value is None else f"{value:.{digits}f}"


def build_chat_prompt(
	message: str,
	language: ChatLanguage,
	reading: Reading | None,
	predictions: PredictionInsights | None,
	image: ImageAnalysis | None,
	crop_type: str | None,
) -> str:
	target = LANGUAGE_NAMES.get(language, "English")
	lines = [
		'You are "Tridentrix", an expert AI Agriculture Assistant.',
		f"You MUST provide your entire response in {target} language ONLY, even if the user asks in English.",
		"Translate all explanations; keep numbers and terms such as pH and NPK.",
		"",
		"Provide helpful, accurate advice based on the following data:",
	]
	if reading is not None:
		soil = reading.soil
		weather = reading.weather
		lines.append("Current Sensor Data:")
		lines.append(f"- Temperature: {_num(weather.temperature if weather else None)}°C")
		lines.append(f"- Humidity: {_num(weather.humidity if weather else None)}%")
		lines.append(f"- Soil Moisture: {_num(soil.moisture if soil else None)}%")
		lines.append(
			f"- NPK Levels: N={_num(soil.nitrogen if soil else None)}, "
			f"P={_num(soil.phosphorus if soil else None)}, K={_num(soil.potassium if soil else None)}"
		)
		lines.append(f"- pH Level: {_num(soil.ph if soil else None, 2)}")
	if predictions is not None:
		lines.append("")
		lines.append("ML Predictions:")
		lines.append(f"- Irrigation Status: {predictions.irrigation.status}")
		lines.append(f"- Health Status: {predictions.health.status}")
		lines.append(f"- Overall Status: {predictions.status}")
		if predictions.recommendations:
			lines.append(f"- Recommendations: {', '.join(predictions.recommendations)}")
	if image is not None:
		lines.append("")
		lines.append("Image Analysis:")
		lines.append(f"- Health Status: {image.health_status}")
		lines.append(f"- Issues: {', '.join(image.issues) or 'None'}")
	if crop_type:
		lines.append("")
		lines.append(f"Crop Type: {crop_type}")
	lines.append("")
	lines.append(f"User Question: {message}")
	lines.append("")
	lines.append(
		f"Provide a helpful, concise answer in {target} based on this data. "
		"If predictions show critical issues, emphasize urgency."
	)
	return "\n".join(lines)


def _health_label(score: int) -> str:
	if score >= 80:
		return "EXCELLENT"
	if score >= 60:
		return "GOOD"
	if score >= 40:
		return "MODERATE"
	return "NEEDS ATTENTION"


def fallback_answer(
	intent: str,
	message: str,
	reading: Reading | None,
	profile: CropProfile,
	now: datetime | None = None,
) -> str:
	"""Rule-based reply used when the language model is unavailable."""
	soil = reading.soil if reading is not None else None
	weather = reading.weather if reading is not None else None

	if intent == "recommend":
		suggestions = recommend_crops(soil, weather)
		if not suggestions:
			return (
				"**Crop Recommendations:**\n\n"
				"No crop scored above 50% for the current conditions. "
				"Share your soil type, pH and typical temperature for a better match."
			)
		body = "\n".join(
			f"- **{item.crop}** ({item.suitability}% suitable, {item.market.best_season}): {item.reason}"
			for item in suggestions
		)
		return f"**Crop Recommendations:**\n\n{body}"

	if intent == "irrigation":
		if reading is None:
			return (
				"**Irrigation Guidance:**\n\n"
				"Optimal irrigation depends on soil moisture (30-60% for most crops), "
				"weather, crop type and soil type. Connect your sensors for personalized advice."
			)
		rec = generate_recommendation(reading, profile, now=now)
		if rec.action == RecommendationAction.irrigate:
			return (
				"**Irrigation Recommendation:**\n\n"
				f"Soil moisture is {_num(reading.moisture)}%.\n"
				f"- Action: {rec.amount:g} L/m² for {rec.duration} minutes\n"
				f"- Best Time: {rec.recommended_time}\n"
				f"- Reason: {rec.reason}\n\n"
				"Early morning irrigation (6-7 AM) minimizes evaporation."
			)
		follow_up = (
			f"Next check recommended in {rec.hours_until_next} hours."
			if rec.hours_until_next
			else "Continue monitoring your dashboard for updates."
		)
		return (
			"**Irrigation Status:**\n\n"
			f"{rec.reason}\n\n"
			f"Current soil moisture: {_num(reading.moisture)}%\n"
			f"Temperature: {_num(weather.temperature if weather else None)}°C\n\n"
			f"{follow_up}"
		)

	if intent == "moisture":
		if reading is None or reading.moisture is None:
			return (
				"**Soil Moisture Guide:**\n\n"
				"- Wheat: 30-50%\n- Rice: 40-70%\n- Maize: 35-55%\n- Tomato: 35-60%\n- Sugarcane: 40-65%\n\n"
				"Monitor moisture at root depth and adjust irrigation to the weather."
			)
		moisture = reading.moisture
		if moisture < profile.moisture_min:
			status, advice = "LOW", "Soil moisture is low. Consider irrigation soon to prevent crop stress."
		elif moisture > profile.moisture_max:
			status, advice = "HIGH", "Moisture is above the ideal band. Watch for over-irrigation."
		else:
			status, advice = "OPTIMAL", "Moisture is in the optimal range. Continue the current schedule."
		return (
			"**Soil Moisture Analysis:**\n\n"
			f"- Current Level: {moisture:.1f}% ({status})\n"
			f"- Soil Type: {(soil.soil_type if soil else None) or 'Unknown'}\n"
			f"- Crop: {reading.crop_type or 'Unknown'}\n"
			f"- Ideal Range: {profile.moisture_min:g}-{profile.moisture_max:g}%\n\n"
			f"{advice}"
		)

	if intent == "health":
		if reading is None:
			return (
				"**Crop Health Factors:**\n\n"
				"Crop health depends on soil moisture, NPK balance, temperature, humidity, pests and soil pH. "
				"Upload a crop photo for disease detection."
			)
		score = predict_yield_health(reading, profile)
		advice = (
			"Recommendations: check the irrigation schedule, review NPK levels, "
			"monitor for pests and consider soil pH testing."
			if score < 60
			else "Crop health looks good. Continue current practices."
		)
		return (
			"**Crop Health Assessment:**\n\n"
			f"- Health Score: {score}% ({_health_label(score)})\n"
			f"- Crop: {reading.crop_type or 'Unknown'}\n"
			f"- Nitrogen: {_num(soil.nitrogen if soil else None)} mg/kg\n"
			f"- Phosphorus: {_num(soil.phosphorus if soil else None)} mg/kg\n"
			f"- Potassium: {_num(soil.potassium if soil else None)} mg/kg\n\n"
			f"{advice}"
		)

	if intent == "weather":
		if reading is None or weather is None:
			return (
				"**Weather Impact on Agriculture:**\n\n"
				"High temperature increases evaporation, high humidity reduces it, "
				"and forecast rain can replace a manual irrigation."
			)
		temp = weather.temperature or 0.0
		rain = weather.chance_of_rain or 0.0
		if temp > 30:
			temp_note = "High temperature: expect faster evaporation and check moisture closely."
		elif temp < 20:
			temp_note = "Cool conditions: evaporation is reduced, irrigation needs may be lower."
		else:
			temp_note = "Moderate temperature: ideal conditions for most crops."
		rain_note = "\n\nRain expected: consider delaying irrigation." if rain > 50 else ""
		return (
			"**Weather Conditions:**\n\n"
			f"- Temperature: {temp:g}°C\n"
			f"- Humidity: {weather.humidity or 0:g}%\n"
			f"- Rain Probability: {rain:g}%\n\n"
			f"{temp_note}{rain_note}"
		)

	if intent == "nutrients":
		if reading is None or soil is None:
			return (
				"**NPK Nutrients Explained:**\n\n"
				"- Nitrogen (N): leaf growth and green color\n"
				"- Phosphorus (P): root development and flowering\n"
				"- Potassium (K): overall health and disease resistance"
			)
		n = soil.nitrogen or 0.0
		p = soil.phosphorus or 0.0
		k = soil.potassium or 0.0
		advice = []
		if n < 40:
			advice.append("- Consider nitrogen-rich fertilizer (Urea, Ammonium Nitrate)")
		if p < 20:
			advice.append("- Add phosphorus fertilizer (Superphosphate)")
		if k < 30:
			advice.append("- Supplement with potassium (Potash)")
		if not advice:
			advice.append("NPK levels are balanced. Continue current fertilization schedule.")
		return (
			"**NPK Nutrient Analysis:**\n\n"
			f"- Nitrogen (N): {n:g} mg/kg{' (Low)' if n < 40 else ''}\n"
			f"- Phosphorus (P): {p:g} mg/kg{' (Low)' if p < 20 else ''}\n"
			f"- Potassium (K): {k:g} mg/kg{' (Low)' if k < 30 else ''}\n\n"
			"**Recommendations:**\n" + "\n".join(advice)
		)

	if intent == "help":
		return (
			"**AI Agriculture Assistant**\n\n"
			f"I can help with:\n{CAPABILITIES}\n\n"
			'Try asking: "Do I need to irrigate?" or "Analyze my crop health".'
		)

	context = ""
	if reading is not None:
		context = (
			"Based on your current data:\n"
			f"- Crop: {reading.crop_type or 'Not specified'}\n"
			f"- Moisture: {_num(reading.moisture)}%\n"
			f"- Temperature: {_num(weather.temperature if weather else None)}°C\n\n"
		)
	return f'I understand you\'re asking about "{message}".\n\n{context}I can help you with:\n{CAPABILITIES}'


class ChatService:
	def __init__(
		self,
		db: AsyncSession,
		gemini: GeminiClient | None = None,
		predictor: PredictionService | None = None,
	):
		self.db = db
		self.readings = ReadingService(db)
		self.gemini = gemini or GeminiClient()
		self.predictor = predictor or PredictionService(gemini=self.gemini)

	@staticmethod
	def _image(payload: dict[str, Any] | None) -> ImageAnalysis | None:
		if not payload:
			return None
		try:
			return ImageAnalysis.model_validate(payload)
		except ValidationError as exc:
			logger.info("chat_image_analysis_ignored", error=str(exc))
			return None

	async def reply(self, request: ChatRequest, now: datetime | None = None) -> ChatResponse:
		now = now or datetime.now(UTC)
		message = request.message.strip()
		if not message:
			raise ValueError("Message is required")

		intent = classify_intent(message)
		reading = await self.readings.latest(request.crop_type)
		crop_type = request.crop_type if request.crop_type and request.crop_type != "All" else None
		crop_type = crop_type or (reading.crop_type if reading is not None else None)
		profile = await self.readings.crop_profile(crop_type)
		image = self._image(request.image_analysis)

		predictions: PredictionInsights | None = None
		if reading is not None:
			predictions = (await self.predictor.predict(reading, image, crop_type)).predictions

		prompt = build_chat_prompt(message, request.language, reading, predictions, image, crop_type)
		try:
			answer = await self.gemini.generate([{"text": prompt}])
			source = ChatSource.gemini
		except (GeminiUnavailableError, httpx.HTTPError, ValueError) as exc:
			logger.info("chat_fallback", intent=intent, error=str(exc))
			answer = fallback_answer(intent, message, reading, profile, now)
			source = ChatSource.fallback

		return ChatResponse(
			response=answer,
			intent=intent,
			language=request.language,
			source=source,
			timestamp=now,
		)
