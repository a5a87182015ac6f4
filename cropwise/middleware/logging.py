"""Structured JSON logging with request ID propagation."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from cropwise.config import LogFormat, Settings, get_settings

REQUEST_ID_HEADER = "x-request-id"
UNKNOWN_CLIENT = "unknown"

_configured = False


def configure_structured_logging(settings: Settings | None = None) -> None:
	"""Route stdlib and structlog output through one renderer, once per process."""
	global _configured
	if _configured:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	shared_processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
	]

	if settings.log_format == LogFormat.json:
		renderer: Any = structlog.processors.JSONRenderer(ensure_ascii=False)
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		renderer = structlog.dev.ConsoleRenderer()
		logging.basicConfig(level=log_level)

	structlog.configure(
		processors=[
			*shared_processors,
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def client_ip(request: Request) -> str:
	"""Peer address; also the rate-limit identity."""
	return request.client.host if request.client else UNKNOWN_CLIENT


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind request ID and client IP to the log context; one line per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
		request.state.request_id = request_id
		peer = client_ip(request)

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id, client_ip=peer)
		log = structlog.get_logger("cropwise.request").bind(
			method=request.method,
			path=request.url.path,
			client_ip=peer,
		)
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			log.exception("http_request_failed", duration_ms=_elapsed_ms(start), error=str(exc))
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		log.info("http_request", status_code=response.status_code, duration_ms=_elapsed_ms(start))
		return response
