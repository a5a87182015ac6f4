"""Pydantic schemas for profitability results and crop recommendations."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from cropwise.models.enums import DemandLevel, RecommendationBasis
from cropwise.schemas.common import CamelModel
from cropwise.schemas.market import MarketCropData


class IncomeEstimate(CamelModel):
	price_per_quintal: float = 0.0
	price_source: str = ""
	yield_quintals: float = 0.0
	expected_income: float = 0.0


class ProfitabilityResult(CamelModel):
	total_cost: float
	expected_income: float
	actual_income: float | None = None
	profit: float
	roi: float
	profit_per_quintal: float = 0.0
	yield_quintals: float
	price_per_quintal: float
	price_source: str
	cost_breakdown: dict[str, float] = Field(default_factory=dict)


class CropRecommendation(CamelModel):
	crop: str
	expected_income: int
	demand: DemandLevel
	success_rate: int = Field(ge=0, le=100)
	profitability: ProfitabilityResult
	market_data: MarketCropData | None = None
	area_hectares: float
	basis: RecommendationBasis


class RecommendationRequest(CamelModel):
	crop_name: str = Field(min_length=1, max_length=200)
	farmer_data: dict[str, Any] | None = None
	land_area_hectares: float | None = Field(default=None, gt=0)


class TopRecommendationsRequest(CamelModel):
	crops: list[str] | None = None
	farmer_data: dict[str, Any] | None = None
	top_n: int = Field(default=5, ge=1, le=50)
	land_area_hectares: float | None = Field(default=None, gt=0)


class RecommendationResponse(CamelModel):
	success: bool = True
	recommendation: CropRecommendation


class TopRecommendationsResponse(CamelModel):
	success: bool = True
	total_crops_analyzed: int
	recommendations: list[CropRecommendation] = Field(default_factory=list)
