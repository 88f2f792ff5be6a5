"""Pydantic schemas for the /chatbot assistant endpoint."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ChatLanguage(StrEnum):
	en = "en"
	ta = "ta"
	te = "te"
	ml = "ml"
	hi = "hi"


LANGUAGE_NAMES: dict[ChatLanguage, str] = {
	ChatLanguage.en: "English",
	ChatLanguage.ta: "Tamil (தமிழ்)",
	ChatLanguage.te: "Telugu (తెలుగు)",
	ChatLanguage.ml: "Malayalam (മലയാളം)",
	ChatLanguage.hi: "Hindi (हिंदी)",
}


class ChatSource(StrEnum):
	gemini = "gemini"
	fallback = "fallback"


class ChatRequest(BaseModel):
	message: str = Field(min_length=1, max_length=2000)
	crop_type: str | None = None
	language: ChatLanguage = ChatLanguage.en
	image_analysis: dict[str, Any] | None = None


class ChatResponse(BaseModel):
	response: str
	intent: str
	language: ChatLanguage
	source: ChatSource
	timestamp: datetime
