from __future__ import annotations

import json

import pytest
from conftest import FakeRedis, StubLLM

from cropwise.models.enums import CropCategory, DemandLevel, DetailsSource, RiskLevel, SoilSuitabilityRating
from cropwise.schemas.operational import MarketAnalysis
from cropwise.services.cache_service import CacheService
from cropwise.services.llm_client import LLMServiceError
from cropwise.services.operational_details import (
	CACHE_PREFIX,
	OPERATIONAL_DEFAULTS,
	OperationalDetailsService,
	classify_crop,
	coerce_operational_details,
	fallback_operational_details,
	market_analysis_for,
)
from cropwise.services.pricing import PriceBook
from cropwise.services.profitability import ProfitabilityEngine

VALID_REPLY = {
	"equipmentNeeded": ["Power Tiller", "Knapsack Sprayer"],
	"effortHours": {"setup": 30, "maintenance": 110, "harvesting": 70},
	"resourceRequirements": {
		"waterLitersPerAcre": 2000000,
		"fertilizers": ["Vermicompost"],
		"pesticides": ["Neem Oil"],
	},
	"maturityTime": 75,
	"riskLevel": "high",
	"soilSuitability": {"rating": "Excellent", "reason": "Red loams drain well."},
	"marketAnalysis": {"profitMargin": "41.2%", "demand": "HIGH"},
}


@pytest.fixture
def engine() -> ProfitabilityEngine:
	return ProfitabilityEngine(PriceBook())


@pytest.mark.parametrize(
	("crop", "category"),
	[
		("Paddy", CropCategory.grain),
		("Finger millet", CropCategory.grain),
		("Red Gram", CropCategory.pulse),
		("Sugarcane", CropCategory.cash_crop),
		("Groundnut", CropCategory.oilseed),
		("BRINJAL", CropCategory.vegetable),
		("RIDGE GOURD (TURAI)", CropCategory.vegetable),
	],
)
def test_classify_crop(crop: str, category: CropCategory) -> None:
	assert classify_crop(crop) == category


def test_brinjal_fallback_uses_vegetable_template(engine: ProfitabilityEngine) -> None:
	recommendation = engine.recommend("BRINJAL")
	details = fallback_operational_details("BRINJAL", recommendation)

	assert details.equipment_needed == ["Tractor", "Drip Irrigation", "Sprayer", "Harvester"]
	assert details.maturity_time == 90
	assert details.risk_level == RiskLevel.medium
	assert details.source == DetailsSource.fallback
	assert details.market_analysis.demand == DemandLevel.medium
	assert details.market_analysis.profit_margin.endswith("%")


def test_market_analysis_margin_from_profitability(engine: ProfitabilityEngine) -> None:
	recommendation = engine.recommend("TOMATO")
	analysis = market_analysis_for(recommendation)
	# (315000 - 110000) / 315000
	assert analysis.profit_margin == "65.1%"
	assert analysis.demand == DemandLevel.high


def test_market_analysis_without_price_is_zero_margin(engine: ProfitabilityEngine) -> None:
	assert market_analysis_for(engine.recommend("KIWI")).profit_margin == "0.0%"


def test_coerce_accepts_valid_output() -> None:
	defaults = MarketAnalysis(profit_margin="10.0%", demand=DemandLevel.medium)
	details = coerce_operational_details(VALID_REPLY, defaults)

	assert details.source == DetailsSource.llm
	assert details.equipment_needed == ["Power Tiller", "Knapsack Sprayer"]
	assert details.effort_hours.maintenance == 110
	assert details.maturity_time == 75
	assert details.risk_level == RiskLevel.high
	assert details.soil_suitability.rating == SoilSuitabilityRating.excellent
	assert details.market_analysis.profit_margin == "41.2%"
	assert details.market_analysis.demand == DemandLevel.high


def test_coerce_replaces_each_invalid_field_with_its_default() -> None:
	defaults = MarketAnalysis(profit_margin="10.0%", demand=DemandLevel.medium)
	raw = {
		"equipmentNeeded": "tractor",
		"effortHours": {"setup": -5, "maintenance": "lots", "harvesting": 12},
		"resourceRequirements": {"waterLitersPerAcre": 0, "fertilizers": [], "pesticides": [3, None]},
		"maturityTime": "soon",
		"riskLevel": "Extreme",
		"soilSuitability": {"rating": "Superb", "reason": ""},
		"marketAnalysis": {"profitMargin": "high", "demand": "VERY HIGH"},
	}
	details = coerce_operational_details(raw, defaults)

	assert details.equipment_needed == OPERATIONAL_DEFAULTS["equipment_needed"]
	assert details.effort_hours.setup == OPERATIONAL_DEFAULTS["effort_hours"]["setup"]
	assert details.effort_hours.maintenance == OPERATIONAL_DEFAULTS["effort_hours"]["maintenance"]
	assert details.effort_hours.harvesting == 12
	assert details.resource_requirements.water_liters_per_acre == OPERATIONAL_DEFAULTS["water_liters_per_acre"]
	assert details.resource_requirements.fertilizers == OPERATIONAL_DEFAULTS["fertilizers"]
	assert details.resource_requirements.pesticides == OPERATIONAL_DEFAULTS["pesticides"]
	assert details.maturity_time == OPERATIONAL_DEFAULTS["maturity_time"]
	assert details.risk_level == OPERATIONAL_DEFAULTS["risk_level"]
	assert details.soil_suitability.rating == OPERATIONAL_DEFAULTS["soil_rating"]
	assert details.soil_suitability.reason == OPERATIONAL_DEFAULTS["soil_reason"]
	assert details.market_analysis == defaults


def test_coerce_handles_non_object_input() -> None:
	defaults = MarketAnalysis(profit_margin="5.0%", demand=DemandLevel.low_medium)
	details = coerce_operational_details(["not", "an", "object"], defaults)
	assert details.maturity_time == OPERATIONAL_DEFAULTS["maturity_time"]
	assert details.market_analysis.demand == DemandLevel.low_medium


@pytest.mark.asyncio
async def test_generate_parses_prose_wrapped_json_and_caches(
	engine: ProfitabilityEngine, fake_redis: FakeRedis
) -> None:
	reply = "Sure! Here is the data:\n```json\n" + json.dumps(VALID_REPLY) + "\n```\nGood luck {farmer}."
	llm = StubLLM([reply])
	service = OperationalDetailsService(llm, CacheService(fake_redis))  # type: ignore[arg-type]
	recommendation = engine.recommend("TOMATO")

	details = await service.generate("TOMATO", recommendation)
	assert details.source == DetailsSource.llm
	assert details.maturity_time == 75
	assert llm.calls[0]["json_mode"] is True
	assert llm.calls[0]["max_tokens"] == 900
	assert any(key.startswith(f"{CACHE_PREFIX}:") for key in fake_redis.store)

	cached = await service.generate("TOMATO", recommendation)
	assert cached == details
	assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_generate_falls_back_on_llm_error(engine: ProfitabilityEngine, fake_redis: FakeRedis) -> None:
	llm = StubLLM([LLMServiceError("timeout")])
	service = OperationalDetailsService(llm, CacheService(fake_redis))  # type: ignore[arg-type]

	details = await service.generate("BRINJAL", engine.recommend("BRINJAL"))
	assert details.source == DetailsSource.fallback
	assert details.equipment_needed == ["Tractor", "Drip Irrigation", "Sprayer", "Harvester"]
	assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_generate_falls_back_on_malformed_output(engine: ProfitabilityEngine, fake_redis: FakeRedis) -> None:
	llm = StubLLM(["I cannot answer in JSON today."])
	service = OperationalDetailsService(llm, CacheService(fake_redis))  # type: ignore[arg-type]

	details = await service.generate("BRINJAL", engine.recommend("BRINJAL"))
	assert details.source == DetailsSource.fallback
	assert details.maturity_time == 90
	assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_generate_without_client_never_calls_llm(engine: ProfitabilityEngine) -> None:
	llm = StubLLM(provider=None)
	service = OperationalDetailsService(llm, CacheService(None))  # type: ignore[arg-type]
	details = await service.generate("Paddy", engine.recommend("Paddy"))
	assert details.source == DetailsSource.fallback
	assert details.maturity_time == 120
	assert llm.calls == []


@pytest.mark.asyncio
async def test_generate_many_preserves_input_order(engine: ProfitabilityEngine) -> None:
	replies: list[str | Exception] = [
		json.dumps({**VALID_REPLY, "maturityTime": 61}),
		LLMServiceError("rate limited"),
		json.dumps({**VALID_REPLY, "maturityTime": 63}),
	]
	llm = StubLLM(replies)
	service = OperationalDetailsService(llm, CacheService(None), max_concurrency=1)  # type: ignore[arg-type]
	recommendations = [engine.recommend(crop) for crop in ("TOMATO", "Groundnut", "CABBAGE")]

	details = await service.generate_many(recommendations)
	assert [item.maturity_time for item in details] == [61, 110, 63]
	assert [item.source for item in details] == [DetailsSource.llm, DetailsSource.fallback, DetailsSource.llm]
