"""Shared pytest fixtures — async test client, fake DB session, fake Redis, sample readings."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.database import get_db
from app.main import app
from app.schemas.readings import RainForecast, Reading, SoilBlock, WeatherBlock

APP_STATE_COLLABORATORS = ("redis", "weather", "device", "notifier", "synthesizer")


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()
		self.flush = AsyncMock()
		self.added: list[Any] = []

	def add(self, row: Any) -> None:
		self.added.append(row)

	async def __aenter__(self) -> FakeAsyncSession:
		return self

	async def __aexit__(self, *_exc: Any) -> None:
		return None


class FakePubSub:
	def __init__(self, payloads: list[dict[str, Any]]) -> None:
		self.payloads = payloads
		self.index = 0
		self.subscribed_channel: str | None = None
		self.unsubscribed_channel: str | None = None
		self.closed = False

	async def subscribe(self, _channel: str) -> None:
		self.subscribed_channel = _channel
		return None

	async def get_message(self, ignore_subscribe_messages: bool, timeout: float) -> dict[str, Any] | None:
		if self.index >= len(self.payloads):
			return None
		message = self.payloads[self.index]
		self.index += 1
		return message

	async def unsubscribe(self, _channel: str) -> None:
		self.unsubscribed_channel = _channel
		return None

	async def close(self) -> None:
		self.closed = True
		return None


class FakeRedis:
	def __init__(self, payloads: list[dict[str, Any]] | None = None) -> None:
		self.payloads = payloads or []
		self.publish = AsyncMock()
		self.ping = AsyncMock(return_value=True)
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)
		self.last_pubsub: FakePubSub | None = None

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	def pubsub(self) -> FakePubSub:
		self.last_pubsub = FakePubSub(self.payloads)
		return self.last_pubsub

	def reset_counters(self) -> None:
		self._counter.clear()


def make_reading(
	moisture: float | None = 40.0,
	*,
	crop_type: str = "Wheat",
	timestamp: datetime | None = None,
	temperature: float | None = 25.0,
	humidity: float | None = 50.0,
	solar_radiation: float | None = 600.0,
	wind_speed: float | None = 10.0,
	chance_of_rain: float | None = 0.0,
	next_rain_hours: float | None = None,
	nitrogen: float | None = 80.0,
	phosphorus: float | None = 45.0,
	potassium: float | None = 50.0,
	ph: float | None = 6.5,
	soil_type: str | None = "loam",
) -> Reading:
	forecast = None
	if next_rain_hours is not None:
		forecast = RainForecast(next_rain_hours=next_rain_hours, next_rain_chance=chance_of_rain)
	return Reading(
		crop_type=crop_type,
		timestamp=timestamp or datetime(2026, 6, 1, 12, 0, tzinfo=UTC),
		soil=SoilBlock(
			moisture=moisture,
			ph=ph,
			nitrogen=nitrogen,
			phosphorus=phosphorus,
			potassium=potassium,
			soil_type=soil_type,
		),
		weather=WeatherBlock(
			temperature=temperature,
			humidity=humidity,
			chance_of_rain=chance_of_rain,
			wind_speed=wind_speed,
			solar_radiation=solar_radiation,
			forecast=forecast,
		),
	)


def make_history(moistures: list[float], *, start: datetime | None = None, step_hours: float = 1.0, **kwargs: Any) -> list[Reading]:
	start = start or datetime(2026, 6, 1, 0, 0, tzinfo=UTC)
	return [
		make_reading(moisture, timestamp=start + timedelta(hours=i * step_hours), **kwargs)
		for i, moisture in enumerate(moistures)
	]


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	"""Reusable fake Redis client with async publish and pubsub behavior."""
	return FakeRedis()


@pytest.fixture(autouse=True)
def clean_app_state() -> Any:
	"""Collaborators set on app.state by one test must not leak into the next."""
	yield
	for name in APP_STATE_COLLABORATORS:
		if hasattr(app.state, name):
			delattr(app.state, name)


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and DB dependency mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)
