from __future__ import annotations

import json

import httpx
import pytest

from conftest import make_reading

from app.config import Settings
from app.schemas.chat import ChatLanguage
from app.services.gemini_client import GeminiClient
from app.services.vision_service import (
	FALLBACK_RECOMMENDATION,
	VisionClient,
	build_prompt,
	fallback_analysis,
	parse_analysis,
	strip_data_url,
)

STRUCTURED = json.dumps(
	{
		"cropType": "Tomato",
		"healthStatus": "diseased",
		"diseaseName": "Early Blight",
		"diseaseCause": "Alternaria solani",
		"marketDemand": "High",
		"fertilizerSuggestions": ["Potash"],
		"confidence": 0.82,
		"issues": ["leaf spots"],
	}
)


def test_strip_data_url_prefix() -> None:
	assert strip_data_url("data:image/png;base64,AAAA") == "AAAA"
	assert strip_data_url("  BBBB ") == "BBBB"


def test_prompt_carries_language_and_sensor_data() -> None:
	prompt = build_prompt(make_reading(33.0), ChatLanguage.hi)
	assert "Hindi" in prompt
	assert "- Soil Moisture: 33.0%" in prompt
	assert "CURRENT SENSOR DATA" not in build_prompt(None, ChatLanguage.en)


def test_parse_structured_response() -> None:
	analysis = parse_analysis(f"```json\n{STRUCTURED}\n```")
	assert analysis.crop_type == "Tomato"
	assert analysis.health_status == "diseased"
	assert analysis.disease_detected is True
	assert analysis.disease_cause == "Alternaria solani"
	assert analysis.fertilizer_suggestions == ["Potash"]
	assert analysis.issues == ["leaf spots"]
	assert analysis.confidence == 0.82
	assert analysis.recommendations[0] == "Apply treatment for Early Blight"
	assert analysis.raw_response is not None


def test_parse_free_text_with_keywords() -> None:
	analysis = parse_analysis("The wheat looks stressed with low moisture. Confidence: 0.9")
	assert analysis.crop_type == "Wheat"
	assert analysis.moisture_level == "low"
	assert analysis.confidence == 0.9
	assert analysis.disease_detected is False
	assert analysis.recommendations == [
		"Increase irrigation frequency and amount",
		"Monitor soil moisture levels closely",
	]


def test_parse_keeps_requested_crop_and_clamps_confidence() -> None:
	analysis = parse_analysis("Healthy plant on fertile soil. confidence 7", crop_type="Rice")
	assert analysis.crop_type == "Rice"
	assert analysis.soil_level == "excellent"
	assert analysis.confidence == 1.0


def test_fallback_analysis() -> None:
	analysis = fallback_analysis("gemini api key not configured", "Maize")
	assert analysis.success is False
	assert analysis.crop_type == "Maize"
	assert analysis.confidence == 0.5
	assert analysis.recommendations == [FALLBACK_RECOMMENDATION]
	assert analysis.error == "gemini api key not configured"


@pytest.mark.asyncio
async def test_analyze_without_gemini_key_falls_back() -> None:
	client = VisionClient(GeminiClient(Settings(gemini_api_key="")))
	analysis = await client.analyze("AAAA", "Wheat")
	assert analysis.success is False
	assert analysis.crop_type == "Wheat"


@pytest.mark.asyncio
async def test_analyze_sends_inline_image() -> None:
	captured: list[dict] = []

	def handler(request: httpx.Request) -> httpx.Response:
		captured.append(json.loads(request.content))
		return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": STRUCTURED}]}}]})

	gemini = GeminiClient(Settings(gemini_api_key="G"), transport=httpx.MockTransport(handler))
	analysis = await VisionClient(gemini).analyze("data:image/jpeg;base64,QUJD", language=ChatLanguage.ta)

	parts = captured[0]["contents"][0]["parts"]
	assert parts[1] == {"inline_data": {"mime_type": "image/jpeg", "data": "QUJD"}}
	assert "Tamil" in parts[0]["text"]
	assert analysis.success is True
	assert analysis.disease_name == "Early Blight"


@pytest.mark.asyncio
async def test_analyze_http_error_falls_back() -> None:
	def handler(request: httpx.Request) -> httpx.Response:
		return httpx.Response(503, json={"error": "overloaded"})

	gemini = GeminiClient(Settings(gemini_api_key="G"), transport=httpx.MockTransport(handler))
	analysis = await VisionClient(gemini).analyze("AAAA")
	assert analysis.success is False
	assert analysis.error
