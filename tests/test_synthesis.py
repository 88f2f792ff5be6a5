from __future__ import annotations

import asyncio
import json
import random
from datetime import UTC, datetime

import pytest
from redis.exceptions import RedisError

from conftest import FakeAsyncSession, FakeRedis, make_reading

from app.config import Settings
from app.schemas.readings import Reading
from app.services.reading_service import ReadingService
from app.services.synthesis import DEFAULT_CROPS, ReadingSynthesizer, synthesize_reading

NIGHT = datetime(2026, 6, 1, 2, 0, tzinfo=UTC)
NOON = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def test_synthesized_reading_stays_in_bounds() -> None:
	rng = random.Random(7)
	latest = make_reading(79.0, crop_type="Rice", temperature=34.0, humidity=88.0)
	for _ in range(200):
		reading = synthesize_reading(latest, "Rice", NOON, rng)
		assert 20 <= reading.moisture <= 80
		assert 15 <= reading.weather.temperature <= 35
		assert 30 <= reading.weather.humidity <= 90
		assert 400 <= reading.weather.solar_radiation <= 1000
		latest = reading


def test_synthesized_reading_defaults_and_labels() -> None:
	reading = synthesize_reading(None, None, NIGHT, random.Random(1))
	assert reading.crop_type == "Wheat"
	assert reading.is_simulated is True
	assert reading.timestamp == NIGHT
	assert reading.soil.soil_type == "loam"
	assert reading.fertilizer_name == "DAP"
	assert reading.weather.solar_radiation == 0.0


def test_unknown_crop_gets_generic_soil() -> None:
	reading = synthesize_reading(None, "Tomato", NOON, random.Random(3))
	assert reading.soil.soil_type == "loam"
	assert reading.fertilizer_name == "NPK"


def _patch_reading_service(monkeypatch: pytest.MonkeyPatch, crop_types: list[str]) -> None:
	async def fake_crop_types(self: ReadingService) -> list[str]:
		return crop_types

	async def fake_latest(self: ReadingService, crop_type: str | None = None) -> Reading | None:
		return make_reading(50.0, crop_type=crop_type or "Wheat")

	monkeypatch.setattr(ReadingService, "crop_types", fake_crop_types)
	monkeypatch.setattr(ReadingService, "latest", fake_latest)


@pytest.mark.asyncio
async def test_generates_one_reading_per_default_crop(monkeypatch: pytest.MonkeyPatch) -> None:
	_patch_reading_service(monkeypatch, [])
	session = FakeAsyncSession()
	redis = FakeRedis()
	synthesizer = ReadingSynthesizer(lambda: session, redis, Settings(), random.Random(5))

	generated = await synthesizer.generate_for_all_crops(now=NOON)

	assert [r.crop_type for r in generated] == list(DEFAULT_CROPS)
	assert len(session.added) == len(DEFAULT_CROPS)
	session.commit.assert_awaited_once()
	assert redis.publish.await_count == len(DEFAULT_CROPS)
	channel, payload = redis.publish.await_args_list[0].args
	assert channel == "readings:live"
	event = json.loads(payload)
	assert event["event_type"] == "reading"
	assert event["reading"]["crop_type"] == "Wheat"


@pytest.mark.asyncio
async def test_uses_stored_crop_types(monkeypatch: pytest.MonkeyPatch) -> None:
	_patch_reading_service(monkeypatch, ["Cotton"])
	session = FakeAsyncSession()
	synthesizer = ReadingSynthesizer(lambda: session, None, Settings(), random.Random(5))
	generated = await synthesizer.generate_for_all_crops(now=NOON)
	assert [r.crop_type for r in generated] == ["Cotton"]
	assert generated[0].soil.soil_type == "black"


@pytest.mark.asyncio
async def test_publish_failure_does_not_lose_readings(monkeypatch: pytest.MonkeyPatch) -> None:
	_patch_reading_service(monkeypatch, ["Wheat"])
	session = FakeAsyncSession()
	redis = FakeRedis()
	redis.publish.side_effect = RedisError("connection lost")
	synthesizer = ReadingSynthesizer(lambda: session, redis, Settings(), random.Random(5))
	generated = await synthesizer.generate_for_all_crops(now=NOON)
	assert len(generated) == 1
	session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_and_stop(monkeypatch: pytest.MonkeyPatch) -> None:
	cycles = 0

	async def fake_generate(self: ReadingSynthesizer, now: datetime | None = None) -> list[Reading]:
		nonlocal cycles
		cycles += 1
		return []

	monkeypatch.setattr(ReadingSynthesizer, "generate_for_all_crops", fake_generate)
	synthesizer = ReadingSynthesizer(FakeAsyncSession, None, Settings(synthesis_interval_seconds=3600))

	synthesizer.start()
	synthesizer.start()
	await asyncio.sleep(0)
	assert synthesizer.running is True
	assert cycles == 1

	await synthesizer.stop()
	assert synthesizer.running is False
	await synthesizer.stop()


@pytest.mark.asyncio
async def test_unexpected_cycle_error_keeps_task_running(monkeypatch: pytest.MonkeyPatch) -> None:
	cycles = 0

	async def flaky_generate(self: ReadingSynthesizer, now: datetime | None = None) -> list[Reading]:
		nonlocal cycles
		cycles += 1
		if cycles == 1:
			raise KeyError("moisture")
		return []

	monkeypatch.setattr(ReadingSynthesizer, "generate_for_all_crops", flaky_generate)
	synthesizer = ReadingSynthesizer(FakeAsyncSession, None, Settings(synthesis_interval_seconds=0.01))

	synthesizer.start()
	for _ in range(100):
		if cycles >= 2:
			break
		await asyncio.sleep(0.01)

	assert cycles >= 2
	assert synthesizer.running is True
	await synthesizer.stop()
