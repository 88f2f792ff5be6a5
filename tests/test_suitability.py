from __future__ import annotations

from app.engine.suitability import recommend_crops
from app.schemas.readings import SoilBlock, WeatherBlock


def test_defaults_rank_by_suitability_and_demand() -> None:
	suggestions = recommend_crops(None, None)
	assert [s.crop for s in suggestions] == ["Wheat", "Tomato", "Rice", "Maize", "Cotton"]
	assert all(s.suitability == 100 for s in suggestions)
	assert suggestions[0].market.demand == "very_high"
	assert suggestions[0].ph_match and suggestions[0].climate_match


def test_reasons_are_human_and_structured() -> None:
	wheat = recommend_crops(SoilBlock(ph=6.5, moisture=40, soil_type="Loamy"), WeatherBlock(temperature=20, humidity=60))[0]
	assert wheat.crop == "Wheat"
	assert "Soil pH (6.5) is optimal for Wheat" in wheat.reason
	assert {"key": "market.reasons.soilSuitable", "params": {"soil": "Loamy", "crop": "Wheat"}} in wheat.reasons


def test_hostile_conditions_recommend_nothing() -> None:
	soil = SoilBlock(ph=9.0, moisture=90, soil_type="Rocky")
	weather = WeatherBlock(temperature=45, humidity=20)
	assert recommend_crops(soil, weather) == []


def test_at_most_five_suggestions() -> None:
	assert len(recommend_crops(SoilBlock(ph=6.5), WeatherBlock(temperature=22))) <= 5
