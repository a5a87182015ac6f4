"""Pydantic schemas for LLM crop insights and next-crop analysis."""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from cropwise.schemas.common import CamelModel


class GovernmentScheme(CamelModel):
	model_config = ConfigDict(frozen=True)

	name: str
	type: str
	description: str
	eligibility: str
	benefit: str
	applicability: str


class InsightRecommendations(CamelModel):
	suitability: str = "MEDIUM"
	risks: list[str] = Field(default_factory=list)
	best_practices: list[str] = Field(default_factory=list)
	timing: str | None = None
	alternatives: list[str] = Field(default_factory=list)


class CropInsights(CamelModel):
	available: bool
	provider: str | None = None
	insights: str | None = None
	recommendations: InsightRecommendations | None = None
	message: str | None = None
	error: str | None = None


# ── Next-crop insights ──────────────────────────────────────────────────────


class NextCropInsightsRequest(CamelModel):
	land_area: float = Field(gt=0)
	current_crop: str = Field(min_length=1, max_length=200)
	stages: list[dict[str, Any]]
	suggested_crop: str = Field(min_length=1, max_length=200)
	season: str = "Kharif"
	region: str = "Kuppam"
	language: str = "en"
	current_yield: float | None = None
	current_income: float | None = None
	bpl_family: bool | None = None
	gender: str | None = None
	education: str | None = None
	irrigation_method: str | None = None
	water_source: str | None = None
	farming_type: str | None = None
	refresh: bool = False


class CategoryCost(CamelModel):
	category: str
	cost: float
	details: dict[str, Any] = Field(default_factory=dict)


class StageInvestment(CamelModel):
	stage: int
	name: str
	total_cost: float
	cost_per_acre: int
	breakdown: list[CategoryCost] = Field(default_factory=list)


class LandArea(CamelModel):
	hectares: float
	acres: float


class InvestmentRequirements(CamelModel):
	total_investment: float
	total_investment_per_acre: int
	land_area: LandArea
	stages: list[StageInvestment] = Field(default_factory=list)


class MarketPrice(CamelModel):
	price: float
	source: str
	price_range: dict[str, float | None] = Field(default_factory=dict)


class MspPrice(CamelModel):
	price: float
	fiscal_year: str
	trend: str
	category: str


class MarketContext(CamelModel):
	apmc_price: MarketPrice | None = None
	msp_price: MspPrice | None = None
	price_source: str


class ExpectedYield(CamelModel):
	kg: float | None = None
	quintals: float | None = None
	note: str | None = None


class AiProjections(CamelModel):
	expected_yield: ExpectedYield
	market_price: float | None = None
	estimated_revenue: float | None = None
	estimated_profit: float | None = None


class CropSnapshot(CamelModel):
	name: str
	yield_: float | None = Field(default=None, alias="yield")
	income: float | None = None
	estimated_yield: float | None = None
	estimated_income: float | None = None
	investment: float


class PreviousCropComparison(CamelModel):
	previous_crop: CropSnapshot
	suggested_crop: CropSnapshot
	comparison: dict[str, Any] = Field(default_factory=dict)


class InsightsMetadata(CamelModel):
	generated_at: str
	ai_provider: str | None = None
	model: str | None = None
	region: str
	season: str
	cached: bool = False


class NextCropInsightsData(CamelModel):
	crop: str
	season: str
	region: str
	investment_requirements: InvestmentRequirements
	ai_projections: AiProjections
	market_context: MarketContext
	risk_factors: list[Any] = Field(default_factory=list)
	success_factors: list[Any] = Field(default_factory=list)
	comparison_with_previous_crop: PreviousCropComparison
	recommendations: list[Any] = Field(default_factory=list)
	applicable_schemes: list[GovernmentScheme] = Field(default_factory=list)
	ai_available: bool
	ai_insights: str | None = None
	raw_insights: str | None = None
	metadata: InsightsMetadata


class NextCropInsightsResponse(CamelModel):
	success: bool = True
	data: NextCropInsightsData
