from __future__ import annotations

import json

import pytest
from conftest import FakeRedis

from cropwise.services.cache_service import CacheService, build_cache_key


def test_cache_key_is_deterministic_across_key_order() -> None:
	first = build_cache_key("crop-operational-details", {"crop": "tomato", "roi": 12.5, "area": 0.6})
	second = build_cache_key("crop-operational-details", {"area": 0.6, "roi": 12.5, "crop": "tomato"})
	assert first == second
	prefix, digest = first.split(":")
	assert prefix == "crop-operational-details"
	assert len(digest) == 16


def test_cache_key_changes_with_any_value() -> None:
	base = build_cache_key("p", {"crop": "tomato", "roi": 12.5})
	assert build_cache_key("p", {"crop": "tomato", "roi": 12.6}) != base
	assert build_cache_key("p", {"crop": "potato", "roi": 12.5}) != base
	assert build_cache_key("q", {"crop": "tomato", "roi": 12.5}) != base


@pytest.mark.asyncio
async def test_set_get_round_trip_with_ttl(fake_redis: FakeRedis) -> None:
	cache = CacheService(fake_redis, default_ttl_hours=6)
	assert await cache.set("k:1", {"value": [1, 2]}) is True
	assert fake_redis.ttls["k:1"] == 6 * 3600
	assert await cache.get("k:1") == {"value": [1, 2]}
	assert await cache.exists("k:1") is True

	await cache.set("k:2", "x", ttl_hours=0.5)
	assert fake_redis.ttls["k:2"] == 1800


@pytest.mark.asyncio
async def test_clear_by_prefix_only_removes_matching_keys(fake_redis: FakeRedis) -> None:
	cache = CacheService(fake_redis)
	await cache.set("crop-insights:a", 1)
	await cache.set("crop-insights:b", 2)
	await cache.set("next-crop-insights:c", 3)

	assert await cache.clear_by_prefix("crop-insights") == 2
	assert await cache.get("next-crop-insights:c") == 3
	assert await cache.clear_by_prefix("crop-insights") == 0


@pytest.mark.asyncio
async def test_store_errors_are_swallowed(fake_redis: FakeRedis) -> None:
	cache = CacheService(fake_redis)
	fake_redis.fail = True
	assert await cache.get("k") is None
	assert await cache.set("k", 1) is False
	assert await cache.delete("k") is False
	assert await cache.exists("k") is False
	assert await cache.clear_by_prefix("k") == 0
	assert await cache.ping() is False


@pytest.mark.asyncio
async def test_corrupt_entry_reads_as_miss(fake_redis: FakeRedis) -> None:
	fake_redis.store["k"] = "{not json"
	assert await CacheService(fake_redis).get("k") is None


@pytest.mark.asyncio
async def test_disabled_or_missing_client_is_a_no_op(fake_redis: FakeRedis) -> None:
	disabled = CacheService(fake_redis, enabled=False)
	assert disabled.is_enabled is False
	assert await disabled.set("k", 1) is False
	assert fake_redis.store == {}

	detached = CacheService(None)
	assert await detached.get("k") is None
	assert await detached.ping() is False


@pytest.mark.asyncio
async def test_values_are_stored_as_json(fake_redis: FakeRedis) -> None:
	await CacheService(fake_redis).set("k", {"price": "₹4,200"})
	assert json.loads(fake_redis.store["k"]) == {"price": "₹4,200"}
