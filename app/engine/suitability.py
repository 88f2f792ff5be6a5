"""Market-aware crop suitability ranking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.schemas.prediction import CropSuggestion, MarketInfo
from app.schemas.readings import SoilBlock, WeatherBlock

DEMAND_BONUS = {"very_high": 30, "high": 20, "medium": 10, "low": 5}
MIN_SUITABILITY = 50
TOP_N = 5


@dataclass(frozen=True, slots=True)
class MarketCrop:
	name: str
	demand: str
	price: str
	season: str
	best_season: str
	ph_range: tuple[float, float]
	temperature_range: tuple[float, float]
	moisture_range: tuple[float, float]
	ideal_soils: tuple[str, ...] = ()


MARKET_CROPS: tuple[MarketCrop, ...] = (
	MarketCrop("Rice", "high", "high", "kharif_jun_oct", "monsoon", (5.5, 7.0), (20, 35), (40, 70), ("clay",)),
	MarketCrop(
		"Wheat", "very_high", "high", "rabi_oct_mar", "winter", (6.0, 7.5), (15, 25), (30, 50), ("loamy", "sandy loam")
	),
	MarketCrop(
		"Maize", "high", "medium", "kharif_jun_sep", "monsoon", (5.8, 7.0), (18, 30), (35, 55), ("loamy", "sandy loam")
	),
	MarketCrop("Tomato", "very_high", "very_high", "year_round_oct_feb", "winter", (6.0, 7.0), (18, 28), (35, 60)),
	MarketCrop("Sugarcane", "high", "medium", "year_round_feb_may", "spring", (6.0, 7.5), (20, 35), (45, 70)),
	MarketCrop("Cotton", "high", "medium", "kharif_jun_dec", "monsoon", (5.5, 8.0), (21, 30), (40, 65)),
	MarketCrop("Potato", "very_high", "high", "rabi_oct_feb", "winter", (4.8, 5.5), (15, 25), (30, 50)),
)


@dataclass(slots=True)
class _Score:
	value: int
	reasons: list[str]
	structured: list[dict[str, Any]]
	ph_match: bool
	climate_match: bool


def _score(crop: MarketCrop, ph: float, temperature: float, moisture: float, humidity: float, soil_type: str) -> _Score:
	score = 40
	reasons: list[str] = []
	structured: list[dict[str, Any]] = []
	name = crop.name

	ph_match = crop.ph_range[0] <= ph <= crop.ph_range[1]
	if ph_match:
		score += 20
		reasons.append(f"Soil pH ({ph:.1f}) is optimal for {name}")
		structured.append({"key": "market.reasons.phOptimal", "params": {"val": f"{ph:.1f}", "crop": name}})
	else:
		reasons.append(f"Soil pH ({ph:.1f}) may need adjustment for {name}")
		structured.append({"key": "market.reasons.phAdjust", "params": {"val": f"{ph:.1f}", "crop": name}})

	climate_match = crop.temperature_range[0] <= temperature <= crop.temperature_range[1]
	if climate_match:
		score += 20
		reasons.append(f"Temperature ({temperature:g}°C) is ideal for {name}")
		structured.append({"key": "market.reasons.tempIdeal", "params": {"val": temperature, "crop": name}})
	elif temperature < crop.temperature_range[0]:
		reasons.append(f"Temperature ({temperature:g}°C) is below optimal for {name}")
		structured.append({"key": "market.reasons.tempLow", "params": {"val": temperature, "crop": name}})
	else:
		reasons.append(f"Temperature ({temperature:g}°C) is above optimal for {name}")
		structured.append({"key": "market.reasons.tempHigh", "params": {"val": temperature, "crop": name}})

	if crop.moisture_range[0] <= moisture <= crop.moisture_range[1]:
		score += 20
		reasons.append(f"Moisture ({moisture:g}%) is suitable for {name}")
		structured.append({"key": "market.reasons.moistureSuitable", "params": {"val": moisture, "crop": name}})
	elif moisture < crop.moisture_range[0]:
		reasons.append(f"Moisture ({moisture:g}%) is low for {name}, irrigation needed")
		structured.append({"key": "market.reasons.moistureLow", "params": {"val": moisture, "crop": name}})
	else:
		reasons.append(f"Moisture ({moisture:g}%) is high for {name}, may need drainage")
		structured.append({"key": "market.reasons.moistureHigh", "params": {"val": moisture, "crop": name}})

	if soil_type.strip().lower() in crop.ideal_soils:
		score += 10
		reasons.append(f"{soil_type} soil is suitable for {name}")
		structured.append({"key": "market.reasons.soilSuitable", "params": {"soil": soil_type, "crop": name}})

	if 50 <= humidity <= 80:
		score += 5
		reasons.append(f"Humidity ({humidity:g}%) is favorable")
		structured.append({"key": "market.reasons.humidityFavorable", "params": {"val": humidity}})

	return _Score(min(100, score), reasons, structured, ph_match, climate_match)


def recommend_crops(soil: SoilBlock | None, weather: WeatherBlock | None) -> list[CropSuggestion]:
	"""Top five crops scoring above 50, ranked by suitability plus market demand."""
	soil = soil or SoilBlock()
	weather = weather or WeatherBlock()
	ph = 6.5 if soil.ph is None else soil.ph
	moisture = 40.0 if soil.moisture is None else soil.moisture
	soil_type = soil.soil_type or "Loamy"
	temperature = 25.0 if weather.temperature is None else weather.temperature
	humidity = 60.0 if weather.humidity is None else weather.humidity

	suggestions: list[CropSuggestion] = []
	for crop in MARKET_CROPS:
		result = _score(crop, ph, temperature, moisture, humidity, soil_type)
		if result.value <= MIN_SUITABILITY:
			continue
		suggestions.append(
			CropSuggestion(
				crop=crop.name,
				suitability=result.value,
				market=MarketInfo(
					demand=crop.demand,
					price=crop.price,
					season=crop.season,
					best_season=crop.best_season,
				),
				reason=". ".join(result.reasons),
				reasons=result.structured,
				ph_match=result.ph_match,
				climate_match=result.climate_match,
			)
		)

	def rank(item: CropSuggestion) -> int:
		return (
			item.suitability
			+ DEMAND_BONUS.get(item.market.demand, 0)
			+ (10 if item.ph_match else 0)
			+ (10 if item.climate_match else 0)
		)

	suggestions.sort(key=rank, reverse=True)
	return suggestions[:TOP_N]
