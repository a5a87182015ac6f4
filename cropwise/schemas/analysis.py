"""Pydantic schemas for loss analysis and natural farming guidance."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from cropwise.schemas.common import CamelModel

# ── Loss analysis ───────────────────────────────────────────────────────────


class FarmLocation(CamelModel):
	village: str | None = None
	mandal: str | None = None


class LossAnalysisRequest(CamelModel):
	crop_name: str | None = None
	season: str | None = None
	land_area: float | None = Field(default=None, gt=0)
	location: FarmLocation | None = None
	actual_yield: float = Field(gt=0)
	expected_yield: float | None = Field(default=None, gt=0)
	costs: dict[str, Any]
	income: dict[str, Any]
	crop_details: dict[str, Any] | None = None
	challenges: list[str] = Field(default_factory=list)


class LossSummary(CamelModel):
	total_cost: float
	total_income: float
	net_profit: float
	profit_margin: float
	actual_yield: float
	expected_yield: float
	yield_gap: float


class LossAnalysisData(CamelModel):
	crop_name: str
	season: str | None = None
	summary: LossSummary
	analysis: str | None = None
	message: str | None = None
	timestamp: str


class LossAnalysisResponse(CamelModel):
	success: bool = True
	data: LossAnalysisData


# ── Natural farming ─────────────────────────────────────────────────────────


class MandalLocation(CamelModel):
	village: str | None = None
	mandal: str = Field(min_length=1)


class CurrentPractices(CamelModel):
	uses_chemical_fertilizers: bool | None = None
	uses_pesticides: bool | None = None
	irrigation_method: str | None = None
	has_livestock: bool | None = None


class NaturalFarmingRequest(CamelModel):
	location: MandalLocation
	land_area: float | None = Field(default=None, gt=0)
	current_crop: str | None = None
	soil_type: str | None = None
	water_source: str | None = None
	current_practices: CurrentPractices | None = None
	challenges: list[str] = Field(default_factory=list)


class FarmingPractice(CamelModel):
	category: str
	name: str
	description: str


class ParsedNaturalFarming(CamelModel):
	benefits: list[str] = Field(default_factory=list)
	practices: list[FarmingPractice] = Field(default_factory=list)


class ResponseLocation(CamelModel):
	village: str | None = None
	mandal: str
	region: str = "Andhra Pradesh"


class NaturalFarmingData(CamelModel):
	location: ResponseLocation
	land_area: float | None = None
	current_crop: str | None = None
	benefits: list[str] = Field(default_factory=list)
	recommended_practices: list[FarmingPractice] = Field(default_factory=list)
	raw_analysis: str | None = None
	ai_available: bool
	message: str | None = None
	timestamp: str


class NaturalFarmingResponse(CamelModel):
	success: bool = True
	data: NaturalFarmingData
