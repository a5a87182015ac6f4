"""Presentation schemas for the profitable-crops endpoints (formatted strings)."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from cropwise.models.enums import DemandLevel, PriceVolatility
from cropwise.schemas.common import CamelModel
from cropwise.schemas.insights import CropInsights
from cropwise.schemas.market import MarketCropData
from cropwise.schemas.operational import OperationalDetails


class ProfitableCropsRequest(CamelModel):
	farmer_data: dict[str, Any] | None = None
	region: str | None = Field(default=None, min_length=1, max_length=100)
	top_n: int = Field(default=5, ge=1, le=50)
	include_insights: bool = False


class MarketInfo(CamelModel):
	recent_trades: int
	total_arrivals: float
	avg_price: str
	volatility: PriceVolatility


class FormattedRecommendation(CamelModel):
	crop: str
	expected_income: str
	demand: DemandLevel
	success_rate: str
	details: OperationalDetails
	market_info: MarketInfo | None = None


class ProfitableCropsResponse(CamelModel):
	success: bool = True
	region: str
	total_crops_analyzed: int
	land_area_hectares: float
	recommendations: list[FormattedRecommendation] = Field(default_factory=list)
	bulk_insights: CropInsights | None = None


class AnalyzeCropRequest(CamelModel):
	crop_name: str = Field(min_length=1, max_length=200)
	farmer_data: dict[str, Any] | None = None
	land_area_hectares: float | None = Field(default=None, gt=0)


class ProfitabilitySummary(CamelModel):
	roi: str
	total_cost: str
	profit: str
	price_per_quintal: str
	price_source: str
	cost_breakdown: dict[str, float] = Field(default_factory=dict)


class CropAnalysis(CamelModel):
	expected_income: str
	demand: DemandLevel
	success_rate: str
	profitability: ProfitabilitySummary
	market_data: MarketCropData | None = None


class AnalyzeCropResponse(CamelModel):
	success: bool = True
	crop: str
	analysis: CropAnalysis
	llm_insights: CropInsights | None = None


class HighDemandCrop(CamelModel):
	crop: str
	demand: DemandLevel
	total_arrivals: float
	avg_price: str
	volatility: PriceVolatility


class HighDemandResponse(CamelModel):
	success: bool = True
	region: str
	high_demand_crops: list[HighDemandCrop] = Field(default_factory=list)


class MarketOverviewCrop(CamelModel):
	crop: str
	avg_price: str
	demand: DemandLevel
	arrivals: float
	volatility: PriceVolatility


class MarketOverview(CamelModel):
	total_crops: int
	total_arrivals: float
	avg_price: int
	crops: list[MarketOverviewCrop] = Field(default_factory=list)


class MarketOverviewResponse(CamelModel):
	success: bool = True
	region: str
	overview: MarketOverview
