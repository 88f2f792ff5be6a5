"""FastAPI application entrypoint — lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import async_session_factory, engine
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.middleware.rate_limit import RateLimitMiddleware
from app.routes import chatbot, crops, devices, predict, status, telegram, ws
from app.services.esp32 import DeviceLink
from app.services.synthesis import ReadingSynthesizer
from app.services.telegram import TelegramNotifier
from app.services.weather_service import WeatherService

logger = logging.getLogger("tridentrix")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Check the database connection (failure is logged, not fatal)
      3. Connect to Redis (left as None when unreachable)
      4. Create the weather, ESP32 and Telegram collaborators
      5. Start the reading synthesizer

    Shutdown:
      1. Stop the synthesizer
      2. Close Redis connection pool
      3. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "Tridentrix starting",
        extra={
            "log_level": settings.log_level,
            "synthesis_enabled": settings.synthesis_enabled,
        },
    )

    # Storage outages degrade to mock payloads and no live feed; startup continues.
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("database unavailable, serving mock data", extra={"error": str(exc)})

    redis: Redis | None = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis unavailable, live feed and rate limiting disabled", extra={"error": str(exc)})
        await redis.aclose()
        redis = None
    app.state.redis = redis

    app.state.weather = WeatherService(settings)
    app.state.device = DeviceLink(settings)
    app.state.notifier = TelegramNotifier(settings)

    synthesizer = ReadingSynthesizer(async_session_factory, redis, settings)
    app.state.synthesizer = synthesizer
    if settings.synthesis_enabled:
        synthesizer.start()

    yield

    logger.info("Tridentrix shutting down")
    await synthesizer.stop()
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Tridentrix API",
    description=(
        "Agricultural monitoring API — sensor readings, rule-based irrigation "
        "recommendations, anomaly detection, crop-image analysis and alert "
        "forwarding to an ESP32 indicator and a Telegram bot."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "tridentrix",
        "version": VERSION,
    }


async def _run_readiness_checks(app: FastAPI) -> dict[str, dict[str, Any]]:
    checks: dict[str, dict[str, Any]] = {}

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = {"ok": True, "message": "ok"}
    except (SQLAlchemyError, OSError) as exc:
        checks["database"] = {"ok": False, "message": str(exc)}

    redis = getattr(app.state, "redis", None)
    if redis is None:
        checks["redis"] = {"ok": False, "message": "not connected"}
    else:
        try:
            await redis.ping()
            checks["redis"] = {"ok": True, "message": "ok"}
        except (RedisError, OSError) as exc:
            checks["redis"] = {"ok": False, "message": str(exc)}

    synthesizer = getattr(app.state, "synthesizer", None)
    if not get_settings().synthesis_enabled:
        checks["synthesis"] = {"ok": True, "message": "disabled"}
    elif synthesizer is not None and synthesizer.running:
        checks["synthesis"] = {"ok": True, "message": "running"}
    else:
        checks["synthesis"] = {"ok": False, "message": "not running"}

    return checks


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness probe — database, Redis and the reading synthesizer."""
    checks = await _run_readiness_checks(app)
    ready = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(status.router, prefix="/api/v1")
app.include_router(crops.router, prefix="/api/v1")
app.include_router(predict.router, prefix="/api/v1")
app.include_router(chatbot.router, prefix="/api/v1")
app.include_router(devices.router, prefix="/api/v1")
app.include_router(telegram.router, prefix="/api/v1")
app.include_router(ws.router, prefix="/api/v1")
