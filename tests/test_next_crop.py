from __future__ import annotations

import json
from typing import Any

import pytest
from conftest import FakeRedis, StubLLM, make_stage
from httpx import AsyncClient

from cropwise.context import ServiceContext
from cropwise.schemas.insights import NextCropInsightsRequest
from cropwise.services.cache_service import CacheService
from cropwise.services.llm_client import LLMServiceError
from cropwise.services.next_crop_service import (
	STAGE_NAMES,
	NextCropService,
	category_label,
	investment_analysis,
	market_context,
)
from cropwise.services.pricing import PriceBook

AI_REPLY = {
	"projections": {
		"expectedYieldKg": 12000,
		"expectedYieldQuintals": 120,
		"marketPricePerQuintal": 4000,
		"estimatedRevenue": 480000,
		"estimatedProfit": 390000,
	},
	"riskFactors": ["Heavy October rains"],
	"successFactors": ["Staking"],
	"comparison": {"investmentChange": "Similar", "profitImprovement": "+40%", "riskLevel": "Medium"},
	"recommendations": ["Use drip irrigation"],
	"insights": "Tomato suits Kuppam in Rabi.",
}


def _stages() -> list[dict[str, Any]]:
	stages = [make_stage(f"custom-{index}", 10000) for index in range(9)]
	stages[2]["categories"][0]["data"].update({"days": 3, "persons": 4, "wagePerDay": 500, "equipmentName": "Seeder"})
	return stages


def _request(**overrides: Any) -> NextCropInsightsRequest:
	values: dict[str, Any] = {
		"landArea": 1.0,
		"currentCrop": "Groundnut",
		"stages": _stages(),
		"suggestedCrop": "TOMATO",
		"season": "Rabi",
		"bplFamily": True,
		"gender": "Female",
		"irrigationMethod": "drip",
	}
	values.update(overrides)
	return NextCropInsightsRequest.model_validate(values)


def test_category_label() -> None:
	assert category_label("LABOUR_COST") == "Labour cost"
	assert category_label(None) == "Other"


def test_investment_analysis_uses_canonical_stage_names() -> None:
	investment = investment_analysis(_stages(), 1.0)

	assert investment.total_investment == 90000
	assert investment.land_area.acres == 2.47
	# 90000 / 2.47 acres
	assert investment.total_investment_per_acre == 36437
	assert [stage.name for stage in investment.stages] == list(STAGE_NAMES)
	assert investment.stages[0].cost_per_acre == 4049
	sowing = investment.stages[2].breakdown[0]
	assert sowing.category == "Labour cost"
	assert sowing.details == {"days": 3, "persons": 4, "wagePerDay": 500, "equipment": "Seeder"}


def test_market_context_combines_apmc_and_msp() -> None:
	book = PriceBook()
	tomato = market_context(book, "TOMATO")
	assert tomato.price_source == "APMC"
	assert tomato.apmc_price is not None
	assert tomato.apmc_price.price_range == {"min": 2900, "max": 4800}
	assert tomato.msp_price is None

	wheat = market_context(book, "Wheat")
	assert wheat.price_source == "MSP"
	assert wheat.msp_price is not None
	assert wheat.msp_price.fiscal_year == "2025-26"

	assert market_context(book, "KIWI").price_source == "Estimated"


@pytest.mark.asyncio
async def test_analyze_with_ai_projections_and_schemes(fake_redis: FakeRedis) -> None:
	llm = StubLLM(["```json\n" + json.dumps(AI_REPLY) + "\n```"])
	service = NextCropService(llm, CacheService(fake_redis), PriceBook())  # type: ignore[arg-type]

	data = await service.analyze(_request())

	assert data.ai_available is True
	assert data.ai_projections.expected_yield.kg == 12000
	assert data.ai_projections.market_price == 4000
	assert data.risk_factors == ["Heavy October rains"]
	assert data.ai_insights == "Tomato suits Kuppam in Rabi."
	assert data.raw_insights is None
	assert data.comparison_with_previous_crop.suggested_crop.estimated_income == 480000
	names = [scheme.name for scheme in data.applicable_schemes]
	assert len(names) == 10
	assert any("NFSM" in name for name in names)
	assert any("MKSP" in name for name in names)
	assert any("PMKSY" in name for name in names)
	assert llm.calls[0]["temperature"] == 0.5
	assert llm.calls[0]["max_tokens"] == 2000

	cached = await service.analyze(_request())
	assert cached.metadata.cached is True
	assert len(llm.calls) == 1


@pytest.mark.asyncio
async def test_refresh_bypasses_cache(fake_redis: FakeRedis) -> None:
	llm = StubLLM([json.dumps(AI_REPLY), json.dumps(AI_REPLY)])
	service = NextCropService(llm, CacheService(fake_redis), PriceBook())  # type: ignore[arg-type]

	await service.analyze(_request())
	refreshed = await service.analyze(_request(refresh=True))
	assert refreshed.metadata.cached is False
	assert len(llm.calls) == 2


@pytest.mark.asyncio
async def test_unparseable_reply_is_kept_as_raw_insights() -> None:
	llm = StubLLM(["Tomato will do well but I cannot produce JSON."])
	service = NextCropService(llm, CacheService(None), PriceBook())  # type: ignore[arg-type]

	data = await service.analyze(_request())
	assert data.ai_available is True
	assert data.raw_insights == "Tomato will do well but I cannot produce JSON."
	assert data.ai_projections.expected_yield.note == "AI response not properly formatted"
	assert data.ai_projections.market_price == 4200
	assert data.comparison_with_previous_crop.comparison["riskLevel"] == "AI response not properly formatted"


@pytest.mark.asyncio
async def test_llm_failure_marks_ai_unavailable() -> None:
	llm = StubLLM([LLMServiceError("timeout")])
	service = NextCropService(llm, CacheService(None), PriceBook())  # type: ignore[arg-type]

	data = await service.analyze(_request(gender="Male", bplFamily=False, irrigationMethod="FLOOD"))
	assert data.ai_available is False
	assert data.metadata.ai_provider is None
	assert data.investment_requirements.total_investment == 90000
	assert len(data.applicable_schemes) == 7


@pytest.mark.asyncio
async def test_analyze_rejects_wrong_stage_count() -> None:
	service = NextCropService(StubLLM(), CacheService(None), PriceBook())  # type: ignore[arg-type]
	with pytest.raises(ValueError, match="9 crop stages"):
		await service.analyze(_request(stages=_stages()[:5]))


@pytest.mark.asyncio
async def test_next_crop_endpoint(client: AsyncClient, context: ServiceContext) -> None:
	context.llm.replies.append(json.dumps(AI_REPLY))  # type: ignore[attr-defined]
	payload = _request().model_dump(by_alias=True)

	response = await client.post("/api/v1/next-crop-insights", json=payload)
	assert response.status_code == 200
	body = response.json()
	assert body["success"] is True
	assert body["data"]["investmentRequirements"]["totalInvestment"] == 90000
	assert body["data"]["aiProjections"]["expectedYield"]["kg"] == 12000
	assert body["data"]["comparisonWithPreviousCrop"]["previousCrop"]["name"] == "Groundnut"
	assert body["data"]["aiAvailable"] is True


@pytest.mark.asyncio
async def test_next_crop_endpoint_validation(client: AsyncClient) -> None:
	response = await client.post("/api/v1/next-crop-insights", json={"landArea": 1})
	assert response.status_code == 400
	body = response.json()
	assert body["success"] is False
	assert set(body["required"]) == {"currentCrop", "stages", "suggestedCrop"}

	short = _request().model_dump(by_alias=True)
	short["stages"] = short["stages"][:3]
	response = await client.post("/api/v1/next-crop-insights", json=short)
	assert response.status_code == 400
	assert "9 crop stages" in response.json()["error"]
