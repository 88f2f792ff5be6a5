"""Thin async client for the Gemini ``generateContent`` endpoint."""

from __future__ import annotations

import json
import re
from typing import Any

import httpx

from app.config import Settings, get_settings

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class GeminiUnavailableError(RuntimeError):
	"""Raised when no API key is configured or the response carries no text."""


def extract_json_object(text: str) -> dict[str, Any] | None:
	"""Pull the outermost ``{...}`` block out of free-form model text."""
	match = _JSON_OBJECT.search(text or "")
	if match is None:
		return None
	try:
		parsed = json.loads(match.group(0))
	except json.JSONDecodeError:
		return None
	return parsed if isinstance(parsed, dict) else None


class GeminiClient:
	def __init__(
		self,
		settings: Settings | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		self.settings = settings or get_settings()
		self.transport = transport

	@property
	def configured(self) -> bool:
		return bool(self.settings.gemini_api_key)

	@property
	def url(self) -> str:
		return f"{self.settings.gemini_base_url}/{self.settings.gemini_model}:generateContent"

	async def generate(self, parts: list[dict[str, Any]], *, timeout: float | None = None) -> str:
		"""Send one user turn and return the first candidate's text.

		Raises ``GeminiUnavailableError`` or ``httpx.HTTPError``; callers decide
		the fallback.
		"""
		if not self.configured:
			raise GeminiUnavailableError("gemini api key not configured")

		async with httpx.AsyncClient(
			timeout=timeout or self.settings.gemini_timeout_seconds,
			transport=self.transport,
		) as client:
			response = await client.post(
				self.url,
				params={"key": self.settings.gemini_api_key},
				headers={"content-type": "application/json"},
				json={"contents": [{"parts": parts}]},
			)
			response.raise_for_status()
			payload = response.json()

		candidates = payload.get("candidates") if isinstance(payload, dict) else None
		if not isinstance(candidates, list) or not candidates:
			raise GeminiUnavailableError("no candidates in gemini response")
		first = candidates[0]
		content = first.get("content") if isinstance(first, dict) else None
		parts_out = content.get("parts") if isinstance(content, dict) else None
		part = parts_out[0] if isinstance(parts_out, list) and parts_out else None
		text = str(part.get("text") or "").strip() if isinstance(part, dict) else ""
		if not text:
			raise GeminiUnavailableError("empty gemini response")
		return text
