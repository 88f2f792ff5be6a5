"""structlog setup plus per-request logging with request IDs."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import LogFormat, get_settings
from app.middleware.rate_limit import client_identity

SERVICE_NAME = "tridentrix"
PROBE_PATHS = frozenset({"/health", "/health/ready"})
# httpx logs full request URLs at INFO; Telegram URLs carry the bot token.
NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def add_service_name(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", SERVICE_NAME)
	return event_dict


def configure_structured_logging() -> None:
	"""Configure stdlib + structlog once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		add_service_name,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		logging.basicConfig(level=log_level, format="%(message)s")
		processors.append(structlog.processors.JSONRenderer())
	else:
		logging.basicConfig(level=log_level)
		processors.append(structlog.dev.ConsoleRenderer())

	for name in NOISY_LOGGERS:
		logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request ID and client to the log context, then log method/path/status/timing.

	Health probes are logged at debug so they do not drown dashboard traffic.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id, client=client_identity(request))

		logger = structlog.get_logger("tridentrix.request")
		path = request.url.path
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=path,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
			)
			raise

		response.headers["x-request-id"] = request_id
		log = logger.debug if path in PROBE_PATHS else logger.info
		log(
			"http_request",
			method=request.method,
			path=path,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return response
