"""Health, readiness, request logging and rate limiting."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from conftest import FakeRedis
from fastapi import FastAPI
from httpx import AsyncClient
from structlog.testing import capture_logs

from cropwise import main
from cropwise.config import get_settings
from cropwise.middleware.logging import REQUEST_ID_HEADER


@pytest.fixture
def low_quota() -> Iterator[int]:
	settings = get_settings()
	original = settings.rate_limit_per_minute
	settings.rate_limit_per_minute = 2
	yield 2
	settings.rate_limit_per_minute = original


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient) -> None:
	response = await client.get("/health")
	assert response.status_code == 200
	assert response.json() == {"status": "ok", "service": "cropwise", "version": "0.1.0"}


@pytest.mark.asyncio
async def test_readiness_ok(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def healthy(_app: FastAPI) -> dict[str, dict[str, Any]]:
		return {"redis": {"ok": True, "message": "ok"}, "llm": {"ok": True, "message": "provider openai"}}

	monkeypatch.setattr(main, "_run_readiness_checks", healthy)
	response = await client.get("/health/ready")
	assert response.status_code == 200
	assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_readiness_degraded(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def degraded(_app: FastAPI) -> dict[str, dict[str, Any]]:
		return {"redis": {"ok": False, "message": "not connected"}, "llm": {"ok": True, "message": "ok"}}

	monkeypatch.setattr(main, "_run_readiness_checks", degraded)
	response = await client.get("/health/ready")
	assert response.status_code == 503
	body = response.json()
	assert body["status"] == "degraded"
	assert body["checks"]["redis"]["ok"] is False


@pytest.mark.asyncio
async def test_readiness_checks_report_redis_state(fake_redis: FakeRedis) -> None:
	main.app.state.redis = fake_redis
	try:
		checks = await main._run_readiness_checks(main.app)
		assert checks["redis"] == {"ok": True, "message": "ok"}

		fake_redis.fail = True
		checks = await main._run_readiness_checks(main.app)
		assert checks["redis"]["ok"] is False
		assert checks["llm"]["ok"] is True
	finally:
		main.app.state.redis = None


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
	response = await client.get("/health", headers={REQUEST_ID_HEADER: "req-123"})
	assert response.headers[REQUEST_ID_HEADER] == "req-123"


@pytest.mark.asyncio
async def test_request_id_is_generated(client: AsyncClient) -> None:
	response = await client.get("/health")
	assert len(response.headers[REQUEST_ID_HEADER]) == 36


@pytest.mark.asyncio
async def test_rate_limit_returns_429(client: AsyncClient, fake_redis: FakeRedis, low_quota: int) -> None:
	main.app.state.redis = fake_redis
	payload = {"cropName": "TOMATO"}

	for _ in range(low_quota):
		response = await client.post("/api/v1/recommendations", json=payload)
		assert response.status_code == 200

	limited = await client.post("/api/v1/recommendations", json=payload)
	assert limited.status_code == 429
	assert limited.json() == {"success": False, "error": f"Rate limit exceeded: {low_quota} requests per minute"}
	assert any(key.startswith("ratelimit:ip:") for key in fake_redis.store)

	# GET endpoints are never limited
	assert (await client.get("/api/v1/profitable-crops/market-overview")).status_code == 200


@pytest.mark.asyncio
async def test_rate_limit_passes_when_redis_fails(client: AsyncClient, fake_redis: FakeRedis, low_quota: int) -> None:
	fake_redis.fail = True
	main.app.state.redis = fake_redis

	for _ in range(low_quota + 2):
		response = await client.post("/api/v1/recommendations", json={"cropName": "TOMATO"})
		assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: AsyncClient) -> None:
	response = await client.get("/api/v1/does-not-exist")
	assert response.status_code == 404
	assert response.json() == {"success": False, "error": "Not Found"}


@pytest.mark.asyncio
async def test_request_log_line_carries_client_ip(client: AsyncClient) -> None:
	with capture_logs() as logs:
		await client.get("/health", headers={REQUEST_ID_HEADER: "req-456"})

	lines = [entry for entry in logs if entry["event"] == "http_request"]
	assert len(lines) == 1
	assert lines[0]["client_ip"] == "127.0.0.1"
	assert lines[0]["path"] == "/health"
	assert lines[0]["status_code"] == 200
