"""Rule-based irrigation/health prediction and merging of model answers with image analysis."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from app.schemas.prediction import (
	HealthAssessment,
	IrrigationAssessment,
	PredictionFeatures,
	PredictionInsights,
	PredictionOutcome,
)
from app.schemas.readings import Reading
from app.schemas.vision import ImageAnalysis

CROP_WATER_NEEDS: dict[str, tuple[float, float, float]] = {
	# crop: (base L/m², ideal min, ideal max)
	"rice": (50.0, 40.0, 70.0),
	"wheat": (35.0, 30.0, 50.0),
	"maize": (40.0, 35.0, 55.0),
	"tomato": (38.0, 35.0, 60.0),
	"sugarcane": (45.0, 40.0, 65.0),
}
DEFAULT_WATER_NEED = (35.0, 30.0, 50.0)
RULE_IDEAL_RANGE = (30.0, 50.0)
MAX_WATER_L_PER_M2 = 100.0

IRRIGATION_STATUSES = {"less", "perfect", "too_much", "no_water_needed"}


def features_from_reading(
	reading: Reading,
	image: ImageAnalysis | None = None,
	crop_type: str | None = None,
	now: datetime | None = None,
) -> PredictionFeatures:
	soil = reading.soil
	weather = reading.weather
	defaults = PredictionFeatures()

	def pick(value: Any, default: Any) -> Any:
		return default if value is None else value

	return PredictionFeatures(
		temperature=pick(weather.temperature if weather else None, defaults.temperature),
		humidity=pick(weather.humidity if weather else None, defaults.humidity),
		soil_moisture=pick(soil.moisture if soil else None, defaults.soil_moisture),
		soil_type=pick(soil.soil_type if soil else None, defaults.soil_type),
		nitrogen=pick(soil.nitrogen if soil else None, defaults.nitrogen),
		phosphorus=pick(soil.phosphorus if soil else None, defaults.phosphorus),
		potassium=pick(soil.potassium if soil else None, defaults.potassium),
		crop_type=crop_type or reading.crop_type or defaults.crop_type,
		image_health_status=image.health_status if image else "unknown",
		image_confidence=image.confidence if image else 0.0,
		image_labels=list(image.issues) if image else [],
		timestamp=now or datetime.now(UTC),
	)


def water_quantity(
	crop_type: str | None,
	current_moisture: float,
	ideal_range: tuple[float, float] | None = None,
	soil_type: str | None = None,
	temperature: float | None = None,
	humidity: float | None = None,
) -> float:
	"""Litres per m² for one irrigation, scaled by deficit, soil and climate. Capped at 100."""
	base, crop_min, _crop_max = CROP_WATER_NEEDS.get((crop_type or "").strip().lower(), DEFAULT_WATER_NEED)
	ideal_min = ideal_range[0] if ideal_range else crop_min

	water = 0.0
	if current_moisture < ideal_min:
		water = base * ((ideal_min - current_moisture) / ideal_min)

	soil = (soil_type or "").lower()
	if "sandy" in soil:
		water *= 1.2
	elif "clay" in soil:
		water *= 0.8

	if temperature is not None:
		if temperature > 30:
			water *= 1.15
		elif temperature < 20:
			water *= 0.9

	if humidity is not None:
		if humidity > 70:
			water *= 0.7
		elif humidity < 40:
			water *= 1.1

	return max(0.0, min(water, MAX_WATER_L_PER_M2))


def irrigation_message(status: str, amount: float, humidity: float) -> str:
	if status == "less":
		return f"Water needed: {amount:.1f} L/m². Soil moisture is below optimal."
	if status == "too_much":
		return "Over-irrigation detected. Reduce water application."
	if status == "perfect":
		return "Irrigation levels are optimal. Continue current schedule."
	if status == "no_water_needed":
		return (
			f"High humidity ({humidity:g}%) detected. No irrigation needed - "
			"natural moisture retention is sufficient."
		)
	return "Monitor irrigation levels."


def health_message(status: str, image_status: str) -> str:
	if status == "critical":
		return f"CRITICAL: {image_status} condition detected. Immediate action required."
	if status == "caution":
		return f"CAUTION: {image_status} condition detected. Monitor closely."
	if status == "normal":
		return "Healthy crop condition. Continue current practices."
	return "Crop health status unknown."


def rule_based_prediction(features: PredictionFeatures) -> PredictionOutcome:
	moisture = features.soil_moisture
	humidity = features.humidity
	crop_type = features.crop_type or "Wheat"
	water_amount = 0.0
	urgency = "normal"

	if humidity > 70:
		irrigation_status = "no_water_needed"
	elif moisture < 30:
		irrigation_status = "less"
		water_amount = water_quantity(
			crop_type,
			moisture,
			RULE_IDEAL_RANGE,
			features.soil_type,
			features.temperature,
			humidity,
		)
		urgency = "critical" if moisture < 20 else "caution"
	elif moisture > 60:
		irrigation_status = "too_much"
		urgency = "caution"
	else:
		irrigation_status = "perfect"

	image_status = features.image_health_status
	health_status = "normal"
	if image_status in ("rotten", "unhealthy"):
		health_status = "critical"
		urgency = "critical"
	elif image_status == "dry":
		health_status = "caution"
		if urgency == "normal":
			urgency = "caution"

	recommendations: list[str] = []
	if irrigation_status == "less":
		recommendations.append(
			f"Irrigate {water_amount:.1f} L/m² for {crop_type}. Soil moisture is critically low ({moisture:.1f}%)."
		)
		recommendations.append("Best time: Early morning (6-7 AM) to minimize evaporation.")
		recommendations.append(
			f"Crop-specific: {crop_type} requires {water_amount:.1f} L/m² based on current conditions."
		)
	elif irrigation_status == "too_much":
		recommendations.append("Reduce irrigation. Soil is over-saturated. Risk of root rot.")
		recommendations.append("Monitor soil moisture closely and adjust irrigation schedule.")
	elif irrigation_status == "no_water_needed":
		recommendations.append(f"No irrigation needed. High humidity ({humidity:g}%) reduces evaporation.")
		recommendations.append("Natural moisture retention is sufficient. Monitor for changes.")
	else:
		recommendations.append("Irrigation levels are optimal. Continue current schedule.")

	if health_status == "critical":
		recommendations.append("CRITICAL: Crop health issue detected. Apply treatment immediately.")
		recommendations.append("Check for pests, diseases, or nutrient deficiencies.")
	elif health_status == "caution":
		recommendations.append("Monitor crop closely. Early signs of stress detected.")

	return PredictionOutcome(
		irrigation=IrrigationAssessment(
			status=irrigation_status,
			message=irrigation_message(irrigation_status, water_amount, humidity),
			amount=water_amount,
		),
		health=HealthAssessment(
			status=health_status,
			image_status=image_status,
			message=health_message(health_status, image_status),
			confidence=0.7,
		),
		status=urgency,
		recommendations=recommendations,
		water_amount=water_amount,
		urgency=urgency,
		crop_type=crop_type,
	)


def _nested(payload: Mapping[str, Any], flat_key: str, group: str, key: str) -> Any:
	value = payload.get(flat_key)
	if value:
		return value
	nested = payload.get(group)
	if isinstance(nested, Mapping):
		return nested.get(key)
	return None


def _as_float(value: Any, default: float) -> float:
	try:
		return float(value)
	except (TypeError, ValueError):
		return default


def merge_insights(
	model_output: Mapping[str, Any],
	features: PredictionFeatures,
	image: ImageAnalysis | None = None,
) -> PredictionInsights:
	"""Combine an external model answer with image analysis into one insight record.

	Moisture measured by the sensor or seen in the image decides the
	irrigation status; the model's own status is used only when both agree the
	soil is within range.
	"""
	crop_type = features.crop_type or "Unknown"
	if image is not None and image.crop_type and image.crop_type != "Unknown":
		crop_type = image.crop_type
	disease_detected = image.disease_detected if image else False
	disease_name = image.disease_name if image else "None"
	disease_type = image.disease_type if image else "None"
	crop_condition = image.crop_condition if image else "perfect"
	moisture_level = image.moisture_level if image else "optimal"
	soil_level = image.soil_level if image else "good"
	reason = (image.reason if image else None) or "No issues detected"
	moisture = features.soil_moisture

	model_irrigation = _nested(model_output, "irrigation_status", "irrigation", "status")
	if moisture_level == "low" or moisture < 30:
		irrigation_status = "less"
	elif moisture_level == "high" or moisture > 60:
		irrigation_status = "too_much"
	elif model_irrigation in IRRIGATION_STATUSES:
		irrigation_status = str(model_irrigation)
	else:
		irrigation_status = "perfect"

	if crop_condition == "bad" or disease_detected:
		condition = "bad"
	elif crop_condition == "dry" or moisture_level == "low":
		condition = "dry"
	else:
		condition = "perfect"

	model_water = _as_float(model_output.get("water_amount") or model_output.get("waterAmount"), 0.0)
	health_status = str(_nested(model_output, "health_status", "health", "status") or "normal")
	confidence = _as_float(
		model_output.get("confidence") or (image.confidence if image else None) or 0.85,
		0.85,
	)
	confidence = max(0.0, min(1.0, confidence))

	if model_water > 0:
		water_amount = model_water
	elif irrigation_status == "less":
		water_amount = water_quantity(
			crop_type,
			moisture,
			RULE_IDEAL_RANGE,
			features.soil_type,
			features.temperature,
			features.humidity,
		)
	else:
		water_amount = 0.0

	if health_status == "critical" or condition == "bad" or irrigation_status == "less":
		overall = "critical"
	elif health_status == "caution" or condition == "dry" or irrigation_status == "too_much":
		overall = "caution"
	else:
		overall = "normal"

	raw_recommendations = model_output.get("recommendations") or (image.recommendations if image else None) or []
	recommendations = [str(item) for item in raw_recommendations] if isinstance(raw_recommendations, list) else []

	if crop_type != "Unknown":
		recommendations.insert(0, f"Detected Crop Type: {crop_type}")
	if disease_detected and disease_name != "None":
		recommendations.append(f"Disease Detected: {disease_name} ({disease_type})")
		recommendations.append(f"Treatment Required: Apply appropriate {disease_type.lower()} treatment")

	if irrigation_status == "less":
		recommendations.append(f"Irrigate {water_amount:.1f} L/m². Soil moisture is below optimal ({moisture:g}%).")
		recommendations.append(f"Moisture Level: {moisture_level} (Current: {moisture:g}%)")
	elif irrigation_status == "too_much":
		recommendations.append("Reduce irrigation. Over-saturation detected.")
		recommendations.append(f"Moisture Level: {moisture_level} (Current: {moisture:g}%)")
	elif irrigation_status == "no_water_needed":
		recommendations.append(
			f"No irrigation needed. High humidity ({features.humidity:g}%) provides sufficient moisture."
		)
	else:
		recommendations.append(f"Irrigation Status: Perfect (Moisture: {moisture:g}%)")

	recommendations.append(f"Crop Condition: {condition.upper()} ({reason})")
	recommendations.append(f"Soil Level: {soil_level.upper()}")

	if health_status == "critical" or condition == "bad":
		recommendations.append("CRITICAL: Immediate action required. Crop health issue detected.")
		if disease_detected:
			recommendations.append(f"Treat {disease_name} immediately")
		recommendations.append("Check for pests or nutrient deficiencies")
		recommendations.append("Review NPK nutrient levels")
	elif health_status == "caution" or condition == "dry":
		recommendations.append("CAUTION: Monitor crop closely. Early signs of stress.")

	image_status = image.health_status if image else "unknown"
	assessment = {"less": "less", "too_much": "more"}.get(irrigation_status, "perfect")

	return PredictionInsights(
		irrigation=IrrigationAssessment(
			status=irrigation_status,
			message=irrigation_message(irrigation_status, water_amount, features.humidity),
			amount=round(water_amount, 1),
			assessment=assessment,
		),
		health=HealthAssessment(
			status=health_status,
			image_status=image_status,
			message=health_message(health_status, image_status),
			confidence=confidence,
		),
		status=overall,
		recommendations=recommendations,
		water_amount=round(water_amount, 1),
		urgency=overall,
		crop_type=crop_type,
		disease_detected=disease_detected,
		disease_name=disease_name,
		disease_type=disease_type,
		crop_condition=condition,
		reason=reason,
		moisture_level=moisture_level,
		soil_level=soil_level,
	)
