"""Redis-backed rate limiting for the LLM-backed POST endpoints."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from cropwise.config import get_settings
from cropwise.middleware.logging import client_ip

LIMITED_PREFIX = "/api/v1/"
WINDOW_SECONDS = 65

logger = logging.getLogger("cropwise.rate_limit")


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-client-IP, per-minute quota backed by Redis atomic counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if not self._is_limited(request):
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		quota = get_settings().rate_limit_per_minute
		peer = client_ip(request)
		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:ip:{peer}:{minute_bucket}"
		try:
			current = await redis_client.incr(key)
			if current == 1:
				await redis_client.expire(key, WINDOW_SECONDS)
		except (RedisError, OSError) as exc:
			logger.warning("rate_limit_unavailable", extra={"error": str(exc)})
			return await call_next(request)

		if current > quota:
			logger.info("rate_limited", extra={"client_ip": peer, "quota": quota})
			return JSONResponse(
				status_code=429,
				content={
					"success": False,
					"error": f"Rate limit exceeded: {quota} requests per minute",
				},
			)

		return await call_next(request)

	@staticmethod
	def _is_limited(request: Request) -> bool:
		return request.method == "POST" and request.url.path.startswith(LIMITED_PREFIX)
