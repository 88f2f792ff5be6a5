from __future__ import annotations

from datetime import UTC, datetime

from conftest import make_reading

from app.engine.prediction import features_from_reading, merge_insights, rule_based_prediction, water_quantity
from app.schemas.prediction import PredictionFeatures
from app.schemas.readings import Reading
from app.schemas.vision import ImageAnalysis


def _features(**overrides: object) -> PredictionFeatures:
	values = {"soil_moisture": 45.0, "humidity": 50.0, "temperature": 25.0, "crop_type": "Wheat"}
	values.update(overrides)
	return PredictionFeatures(**values)


def test_features_fall_back_to_defaults() -> None:
	now = datetime(2026, 6, 1, tzinfo=UTC)
	features = features_from_reading(Reading(), now=now)
	assert features.soil_moisture == 40.0
	assert features.crop_type == "Wheat"
	assert features.image_health_status == "unknown"
	assert features.timestamp == now


def test_features_keep_zero_readings() -> None:
	features = features_from_reading(make_reading(0.0, temperature=0.0, nitrogen=0.0))
	assert features.soil_moisture == 0.0
	assert features.temperature == 0.0
	assert features.nitrogen == 0.0


def test_features_take_image_and_explicit_crop() -> None:
	image = ImageAnalysis(health_status="dry", confidence=0.9, issues=["wilting"])
	features = features_from_reading(make_reading(40), image, crop_type="Rice")
	assert features.crop_type == "Rice"
	assert features.image_health_status == "dry"
	assert features.image_confidence == 0.9
	assert features.image_labels == ["wilting"]


def test_water_quantity_scaling() -> None:
	assert water_quantity("Wheat", 45) == 0.0
	loam = water_quantity("Wheat", 15, (30.0, 50.0), "Loamy", 25, 50)
	sandy = water_quantity("Wheat", 15, (30.0, 50.0), "Sandy", 25, 50)
	clay = water_quantity("Wheat", 15, (30.0, 50.0), "Clay", 25, 50)
	assert loam == 17.5
	assert sandy > loam > clay
	assert water_quantity("Wheat", 15, (30.0, 50.0), "Loamy", 25, 80) < loam


def test_rules_dry_soil_needs_water() -> None:
	outcome = rule_based_prediction(_features(soil_moisture=25.0))
	assert outcome.irrigation.status == "less"
	assert outcome.water_amount > 0
	assert outcome.urgency == "caution"
	assert outcome.recommendations[0].startswith("Irrigate")


def test_rules_very_dry_soil_is_critical() -> None:
	assert rule_based_prediction(_features(soil_moisture=10.0)).urgency == "critical"


def test_rules_humid_air_needs_no_water() -> None:
	outcome = rule_based_prediction(_features(soil_moisture=25.0, humidity=80.0))
	assert outcome.irrigation.status == "no_water_needed"
	assert outcome.water_amount == 0.0


def test_rules_wet_soil_is_too_much() -> None:
	outcome = rule_based_prediction(_features(soil_moisture=70.0))
	assert outcome.irrigation.status == "too_much"
	assert outcome.status == "caution"


def test_rules_rotten_image_is_critical() -> None:
	outcome = rule_based_prediction(_features(image_health_status="rotten"))
	assert outcome.irrigation.status == "perfect"
	assert outcome.health.status == "critical"
	assert outcome.urgency == "critical"


def test_merge_sensor_moisture_overrides_model() -> None:
	insights = merge_insights({"irrigation_status": "perfect", "health_status": "normal"}, _features(soil_moisture=25.0))
	assert insights.irrigation.status == "less"
	assert insights.irrigation.assessment == "less"
	assert insights.status == "critical"
	assert insights.water_amount > 0


def test_merge_uses_model_status_in_range() -> None:
	insights = merge_insights({"irrigation_status": "no_water_needed"}, _features())
	assert insights.irrigation.status == "no_water_needed"
	assert insights.status == "normal"
	assert insights.water_amount == 0.0


def test_merge_reads_nested_model_output() -> None:
	output = {"irrigation": {"status": "perfect"}, "health": {"status": "caution"}, "confidence": 5}
	insights = merge_insights(output, _features())
	assert insights.status == "caution"
	assert insights.health.confidence == 1.0


def test_merge_disease_from_image() -> None:
	image = ImageAnalysis(
		crop_type="Tomato",
		health_status="diseased",
		disease_detected=True,
		disease_name="Leaf Blight",
		disease_type="Fungal",
	)
	insights = merge_insights({}, _features(), image)
	assert insights.crop_type == "Tomato"
	assert insights.crop_condition == "bad"
	assert insights.status == "critical"
	assert insights.recommendations[0] == "Detected Crop Type: Tomato"
	assert "Disease Detected: Leaf Blight (Fungal)" in insights.recommendations
	assert insights.health.image_status == "diseased"


def test_merge_high_image_moisture_is_too_much() -> None:
	image = ImageAnalysis(moisture_level="high")
	insights = merge_insights({}, _features(), image)
	assert insights.irrigation.status == "too_much"
	assert insights.irrigation.assessment == "more"
