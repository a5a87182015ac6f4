"""Shared pytest fixtures: async test client, in-memory Redis, stub LLM."""

from __future__ import annotations

import fnmatch
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from cropwise.config import Settings
from cropwise.context import ServiceContext, build_context, get_context
from cropwise.main import app
from cropwise.services.llm_client import LLMNotConfiguredError, LLMServiceError, ModelTier


class FakeRedis:
	"""Dict-backed stand-in for the subset of ``redis.asyncio.Redis`` the app uses."""

	def __init__(self) -> None:
		self.store: dict[str, str] = {}
		self.ttls: dict[str, int] = {}
		self.fail = False
		self.closed = False

	def _check(self) -> None:
		if self.fail:
			raise RedisConnectionError("redis down")

	async def get(self, key: str) -> str | None:
		self._check()
		return self.store.get(key)

	async def setex(self, key: str, ttl: int, value: str) -> bool:
		self._check()
		self.store[key] = value
		self.ttls[key] = ttl
		return True

	async def delete(self, *keys: str) -> int:
		self._check()
		removed = 0
		for key in keys:
			if self.store.pop(key, None) is not None:
				removed += 1
			self.ttls.pop(key, None)
		return removed

	async def exists(self, *keys: str) -> int:
		self._check()
		return sum(1 for key in keys if key in self.store)

	async def scan_iter(self, match: str = "*") -> AsyncIterator[str]:
		self._check()
		for key in list(self.store):
			if fnmatch.fnmatchcase(key, match):
				yield key

	async def incr(self, key: str) -> int:
		self._check()
		value = int(self.store.get(key, "0")) + 1
		self.store[key] = str(value)
		return value

	async def expire(self, key: str, seconds: int) -> bool:
		self._check()
		self.ttls[key] = seconds
		return True

	async def ping(self) -> bool:
		self._check()
		return True

	async def aclose(self) -> None:
		self.closed = True


class StubLLM:
	"""Scripted replacement for ``LLMClient``; replies are consumed in order."""

	def __init__(self, replies: list[str | Exception] | None = None, provider: str | None = "openai") -> None:
		self.replies = list(replies or [])
		self._provider = provider
		self.calls: list[dict[str, Any]] = []

	@property
	def provider(self) -> str | None:
		return self._provider

	@property
	def available(self) -> bool:
		return self._provider is not None

	def model_for(self, tier: ModelTier = ModelTier.standard) -> str:
		return "stub-analysis" if tier == ModelTier.analysis else "stub-standard"

	async def complete(self, **kwargs: Any) -> str:
		self.calls.append(kwargs)
		if self._provider is None:
			raise LLMNotConfiguredError("LLM service not configured")
		if not self.replies:
			raise LLMServiceError("no scripted reply")
		reply = self.replies.pop(0)
		if isinstance(reply, Exception):
			raise reply
		return reply


def make_settings(**overrides: Any) -> Settings:
	values: dict[str, Any] = {
		"openai_api_key": "",
		"together_api_key": "",
		"cache_enabled": True,
		"crop_match_strict": False,
	}
	values.update(overrides)
	return Settings(_env_file=None, **values)


def make_stage(name: str, *costs: float, category: str = "LABOUR_COST") -> dict[str, Any]:
	return {
		"stageName": name,
		"categories": [{"category": category, "data": {"totalCost": cost}} for cost in costs],
	}


def make_farmer_data(
	stages: list[dict[str, Any]],
	*,
	crop_yield: float | None = None,
	status: str = "COMPLETED",
	income: float | None = None,
	area: float | None = None,
) -> dict[str, Any]:
	crop_details: dict[str, Any] = {"irrigationMethod": "DRIP", "waterSource": "Bore well"}
	if crop_yield is not None:
		crop_details["cropYield"] = crop_yield
	if income is not None:
		crop_details["incomeFromYieldSale"] = income
	master: dict[str, Any] = {"cropDetails": crop_details}
	if area is not None:
		master["agriStack"] = {"totalAreaHectares": area}
	return {
		"profile": {
			"address": "Kuppam, Chittoor",
			"metaData": {"status": status, "stages": stages, "masterData": master},
		}
	}


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def stub_llm() -> StubLLM:
	"""LLM stub with no scripted replies; tests append to ``stub_llm.replies``."""
	return StubLLM()


@pytest.fixture
def offline_llm() -> StubLLM:
	return StubLLM(provider=None)


@pytest.fixture
def context(fake_redis: FakeRedis, stub_llm: StubLLM) -> ServiceContext:
	return build_context(make_settings(), fake_redis, llm=stub_llm)  # type: ignore[arg-type]


@pytest.fixture
async def client(context: ServiceContext) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the service context injected."""
	app.dependency_overrides[get_context] = lambda: context
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan
	app.state.redis = None

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	app.state.redis = None
