"""Crop agronomic profiles used by the rule engine."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CROP_COEFFICIENT = 0.8


@dataclass(frozen=True, slots=True)
class CropProfile:
	name: str
	moisture_min: float
	moisture_max: float
	water_per_irrigation: float
	root_depth: float
	crop_coefficient: float | None = None

	@property
	def midpoint(self) -> float:
		return (self.moisture_min + self.moisture_max) / 2

	@property
	def kc(self) -> float:
		if self.crop_coefficient is None:
			return DEFAULT_CROP_COEFFICIENT
		return self.crop_coefficient


BUILTIN_PROFILES: dict[str, CropProfile] = {
	profile.name.lower(): profile
	for profile in (
		CropProfile("Rice", 40, 70, 50, 20),
		CropProfile("Wheat", 30, 50, 35, 30),
		CropProfile("Maize", 35, 60, 40, 40),
		CropProfile("Tomato", 35, 60, 30, 30),
		CropProfile("Cotton", 40, 65, 45, 50),
		CropProfile("Sugarcane", 45, 70, 55, 60),
		CropProfile("Tobacco", 30, 55, 32, 35),
		CropProfile("Default", 30, 60, 40, 30),
	)
}

DEFAULT_PROFILE = BUILTIN_PROFILES["default"]


def get_profile(name: str | None) -> CropProfile:
	"""Case-insensitive lookup; unknown or missing names resolve to the Default profile."""
	if not name:
		return DEFAULT_PROFILE
	return BUILTIN_PROFILES.get(name.strip().lower(), DEFAULT_PROFILE)
