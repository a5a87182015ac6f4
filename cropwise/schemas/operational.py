"""Pydantic schemas for per-crop operational details."""

from __future__ import annotations

from pydantic import Field

from cropwise.models.enums import DemandLevel, DetailsSource, RiskLevel, SoilSuitabilityRating
from cropwise.schemas.common import CamelModel


class EffortHours(CamelModel):
	setup: float = Field(gt=0)
	maintenance: float = Field(gt=0)
	harvesting: float = Field(gt=0)


class ResourceRequirements(CamelModel):
	water_liters_per_acre: float = Field(gt=0)
	fertilizers: list[str] = Field(min_length=1)
	pesticides: list[str] = Field(min_length=1)


class SoilSuitability(CamelModel):
	rating: SoilSuitabilityRating
	reason: str = Field(min_length=1)


class MarketAnalysis(CamelModel):
	profit_margin: str
	demand: DemandLevel


class OperationalDetails(CamelModel):
	equipment_needed: list[str] = Field(min_length=1)
	effort_hours: EffortHours
	resource_requirements: ResourceRequirements
	maturity_time: int = Field(gt=0)
	risk_level: RiskLevel
	soil_suitability: SoilSuitability
	market_analysis: MarketAnalysis
	source: DetailsSource
