"""Best-effort Redis memoization for expensive LLM calls.

Every operation degrades to a no-op result when caching is disabled, no
client is configured or the store errors; callers never see the difference
between a miss and an unavailable store.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

KEY_HASH_LENGTH = 16
DEFAULT_TTL_HOURS = 6.0

logger = logging.getLogger("cropwise.cache")

_STORE_ERRORS = (RedisError, OSError, TypeError, ValueError)


def build_cache_key(prefix: str, params: dict[str, Any]) -> str:
	"""``<prefix>:<first 16 hex chars of sha256(params, keys sorted)>``."""
	normalized = json.dumps(params, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
	digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
	return f"{prefix}:{digest[:KEY_HASH_LENGTH]}"


class CacheService:
	def __init__(
		self,
		redis_client: Redis | None,
		*,
		enabled: bool = True,
		default_ttl_hours: float = DEFAULT_TTL_HOURS,
	):
		self.redis_client = redis_client
		self.enabled = enabled
		self.default_ttl_hours = default_ttl_hours

	@property
	def is_enabled(self) -> bool:
		return self.enabled and self.redis_client is not None

	build_key = staticmethod(build_cache_key)

	async def get(self, key: str) -> Any | None:
		if not self.is_enabled:
			return None
		assert self.redis_client is not None
		try:
			value = await self.redis_client.get(key)
			if value is None:
				logger.info("cache_miss", extra={"key": key})
				return None
			logger.info("cache_hit", extra={"key": key})
			return json.loads(value)
		except _STORE_ERRORS as exc:
			logger.warning("cache_get_failed", extra={"key": key, "error": str(exc)})
			return None

	async def set(self, key: str, value: Any, ttl_hours: float | None = None) -> bool:
		if not self.is_enabled:
			return False
		assert self.redis_client is not None
		ttl = ttl_hours if ttl_hours and ttl_hours > 0 else self.default_ttl_hours
		ttl_seconds = max(1, round(ttl * 3600))
		try:
			await self.redis_client.setex(key, ttl_seconds, json.dumps(value, ensure_ascii=False))
		except _STORE_ERRORS as exc:
			logger.warning("cache_set_failed", extra={"key": key, "error": str(exc)})
			return False
		logger.info("cache_set", extra={"key": key, "ttl_seconds": ttl_seconds})
		return True

	async def delete(self, key: str) -> bool:
		if not self.is_enabled:
			return False
		assert self.redis_client is not None
		try:
			await self.redis_client.delete(key)
		except _STORE_ERRORS as exc:
			logger.warning("cache_delete_failed", extra={"key": key, "error": str(exc)})
			return False
		return True

	async def exists(self, key: str) -> bool:
		if not self.is_enabled:
			return False
		assert self.redis_client is not None
		try:
			return await self.redis_client.exists(key) == 1
		except _STORE_ERRORS as exc:
			logger.warning("cache_exists_failed", extra={"key": key, "error": str(exc)})
			return False

	async def clear_by_prefix(self, prefix: str) -> int:
		if not self.is_enabled:
			return 0
		assert self.redis_client is not None
		try:
			keys = [key async for key in self.redis_client.scan_iter(match=f"{prefix}:*")]
			if not keys:
				return 0
			deleted = await self.redis_client.delete(*keys)
		except _STORE_ERRORS as exc:
			logger.warning("cache_clear_failed", extra={"prefix": prefix, "error": str(exc)})
			return 0
		logger.info("cache_cleared", extra={"prefix": prefix, "deleted": deleted})
		return int(deleted)

	async def ping(self) -> bool:
		if not self.is_enabled:
			return False
		assert self.redis_client is not None
		try:
			return bool(await self.redis_client.ping())
		except _STORE_ERRORS:
			return False
