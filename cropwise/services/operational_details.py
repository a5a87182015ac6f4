"""Per-crop operational metadata from the LLM, validated, with static fallback."""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from cropwise.formatting import format_inr, format_number
from cropwise.models.enums import (
	CropCategory,
	DemandLevel,
	DetailsSource,
	RiskLevel,
	SoilSuitabilityRating,
)
from cropwise.schemas.operational import (
	EffortHours,
	MarketAnalysis,
	OperationalDetails,
	ResourceRequirements,
	SoilSuitability,
)
from cropwise.schemas.recommendation import CropRecommendation
from cropwise.services import farmer_data as profile
from cropwise.services.cache_service import CacheService
from cropwise.services.llm_client import (
	LLMClient,
	LLMNotConfiguredError,
	LLMServiceError,
	extract_json_object,
	strip_code_fences,
)

CACHE_PREFIX = "crop-operational-details"

logger = logging.getLogger("cropwise.operational_details")

CATEGORY_KEYWORDS: tuple[tuple[CropCategory, tuple[str, ...]], ...] = (
	(
		CropCategory.grain,
		("rice", "paddy", "wheat", "maize", "corn", "jowar", "bajra", "ragi", "millet", "barley", "sorghum"),
	),
	(
		CropCategory.pulse,
		("arhar", "toor", "gram", "moong", "urad", "lentil", "masur", "chana", "cowpea", "chickpea"),
	),
	(
		CropCategory.cash_crop,
		("cotton", "sugarcane", "tobacco", "jute", "coffee", "turmeric", "mulberry"),
	),
	(
		CropCategory.oilseed,
		(
			"groundnut", "peanut", "sunflower", "soybean", "soya", "mustard",
			"rapeseed", "sesame", "sesamum", "safflower", "castor", "linseed", "niger",
		),
	),
)

_PERCENT_PATTERN = re.compile(r"^-?\d+(\.\d+)?%$")

# Field-level defaults applied when generated output is missing or invalid.
OPERATIONAL_DEFAULTS: dict[str, Any] = {
	"equipment_needed": ["Tractor", "Sprayer", "Harvester"],
	"effort_hours": {"setup": 40.0, "maintenance": 120.0, "harvesting": 60.0},
	"water_liters_per_acre": 2_500_000.0,
	"fertilizers": ["Farmyard Manure", "NPK 19:19:19"],
	"pesticides": ["Neem Oil"],
	"maturity_time": 90,
	"risk_level": RiskLevel.medium,
	"soil_rating": SoilSuitabilityRating.good,
	"soil_reason": "Red loamy soils of the region suit most field crops with adequate organic matter.",
}

_TEMPLATES: dict[CropCategory, dict[str, Any]] = {
	CropCategory.grain: {
		"equipment_needed": ["Tractor", "Seed Drill", "Combine Harvester", "Sprayer"],
		"effort_hours": {"setup": 35.0, "maintenance": 100.0, "harvesting": 50.0},
		"water_liters_per_acre": 4_500_000.0,
		"fertilizers": ["Urea", "DAP", "Muriate of Potash"],
		"pesticides": ["Chlorantraniliprole", "Tricyclazole"],
		"maturity_time": 120,
		"risk_level": RiskLevel.low,
		"soil_rating": SoilSuitabilityRating.good,
		"soil_reason": "Clay loam and red soils retain the moisture cereals need; yields depend on assured irrigation.",
	},
	CropCategory.pulse: {
		"equipment_needed": ["Tractor", "Seed Drill", "Sprayer", "Thresher"],
		"effort_hours": {"setup": 25.0, "maintenance": 70.0, "harvesting": 40.0},
		"water_liters_per_acre": 1_500_000.0,
		"fertilizers": ["Rhizobium Culture", "Single Super Phosphate"],
		"pesticides": ["Neem Oil", "Emamectin Benzoate"],
		"maturity_time": 100,
		"risk_level": RiskLevel.medium,
		"soil_rating": SoilSuitabilityRating.good,
		"soil_reason": "Well-drained red soils suit pulses; waterlogging must be avoided.",
	},
	CropCategory.cash_crop: {
		"equipment_needed": ["Tractor", "Planter", "Drip Irrigation", "Sprayer", "Harvester"],
		"effort_hours": {"setup": 60.0, "maintenance": 200.0, "harvesting": 90.0},
		"water_liters_per_acre": 3_500_000.0,
		"fertilizers": ["Urea", "DAP", "Muriate of Potash", "Micronutrient Mix"],
		"pesticides": ["Imidacloprid", "Profenofos"],
		"maturity_time": 180,
		"risk_level": RiskLevel.high,
		"soil_rating": SoilSuitabilityRating.fair,
		"soil_reason": "Deep black or red loam soils are preferred; long duration exposes the crop to weather risk.",
	},
	CropCategory.oilseed: {
		"equipment_needed": ["Tractor", "Seed Drill", "Sprayer", "Groundnut Digger"],
		"effort_hours": {"setup": 30.0, "maintenance": 90.0, "harvesting": 45.0},
		"water_liters_per_acre": 2_000_000.0,
		"fertilizers": ["Gypsum", "Single Super Phosphate", "Urea"],
		"pesticides": ["Mancozeb", "Chlorpyrifos"],
		"maturity_time": 110,
		"risk_level": RiskLevel.medium,
		"soil_rating": SoilSuitabilityRating.excellent,
		"soil_reason": "Light red sandy loams of the region are well suited to oilseeds.",
	},
	CropCategory.vegetable: {
		"equipment_needed": ["Tractor", "Drip Irrigation", "Sprayer", "Harvester"],
		"effort_hours": {"setup": 40.0, "maintenance": 150.0, "harvesting": 80.0},
		"water_liters_per_acre": 2_500_000.0,
		"fertilizers": ["Farmyard Manure", "NPK 19:19:19", "Calcium Nitrate"],
		"pesticides": ["Neem Oil", "Spinosad", "Mancozeb"],
		"maturity_time": 90,
		"risk_level": RiskLevel.medium,
		"soil_rating": SoilSuitabilityRating.good,
		"soil_reason": "Red loamy soils with drip irrigation support vegetable cultivation in the region.",
	},
}


def classify_crop(crop_name: str) -> CropCategory:
	normalized = crop_name.lower()
	for category, keywords in CATEGORY_KEYWORDS:
		if any(keyword in normalized for keyword in keywords):
			return category
	return CropCategory.vegetable


def market_analysis_for(recommendation: CropRecommendation) -> MarketAnalysis:
	income = recommendation.profitability.expected_income
	margin = recommendation.profitability.profit / income * 100 if income > 0 else 0.0
	return MarketAnalysis(profit_margin=f"{margin:.1f}%", demand=recommendation.demand)


def fallback_operational_details(crop_name: str, recommendation: CropRecommendation) -> OperationalDetails:
	template = _TEMPLATES[classify_crop(crop_name)]
	return OperationalDetails(
		equipment_needed=list(template["equipment_needed"]),
		effort_hours=EffortHours(**template["effort_hours"]),
		resource_requirements=ResourceRequirements(
			water_liters_per_acre=template["water_liters_per_acre"],
			fertilizers=list(template["fertilizers"]),
			pesticides=list(template["pesticides"]),
		),
		maturity_time=template["maturity_time"],
		risk_level=template["risk_level"],
		soil_suitability=SoilSuitability(rating=template["soil_rating"], reason=template["soil_reason"]),
		market_analysis=market_analysis_for(recommendation),
		source=DetailsSource.fallback,
	)


# ── Validation of generated output ──────────────────────────────────────────


def _positive_number(value: Any) -> float | None:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		return None
	if not math.isfinite(value) or value <= 0:
		return None
	return float(value)


def _string_list(value: Any, default: Sequence[str]) -> list[str]:
	if not isinstance(value, list):
		return list(default)
	items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
	return items or list(default)


def _enum_member(enum_type: Any, value: Any, default: Any) -> Any:
	if not isinstance(value, str):
		return default
	for member in enum_type:
		if member.value.lower() == value.strip().lower():
			return member
	return default


def _section(raw: dict[str, Any], *names: str) -> dict[str, Any]:
	for name in names:
		value = raw.get(name)
		if isinstance(value, dict):
			return value
	return {}


def coerce_operational_details(raw: Any, market_defaults: MarketAnalysis) -> OperationalDetails:
	"""Validate untrusted generated output field by field.

	Every field failing its type or enum check is replaced by the matching
	entry of ``OPERATIONAL_DEFAULTS`` (``market_defaults`` for the market
	block), so the result is always fully populated.
	"""
	data = raw if isinstance(raw, dict) else {}
	defaults = OPERATIONAL_DEFAULTS

	effort_raw = _section(data, "effortHours", "effort_hours")
	effort_defaults = defaults["effort_hours"]
	effort = EffortHours(
		**{
			name: _positive_number(effort_raw.get(name)) or effort_defaults[name]
			for name in ("setup", "maintenance", "harvesting")
		}
	)

	resources_raw = _section(data, "resourceRequirements", "resource_requirements")
	water = _positive_number(resources_raw.get("waterLitersPerAcre", resources_raw.get("water_liters_per_acre")))
	resources = ResourceRequirements(
		water_liters_per_acre=water or defaults["water_liters_per_acre"],
		fertilizers=_string_list(resources_raw.get("fertilizers"), defaults["fertilizers"]),
		pesticides=_string_list(resources_raw.get("pesticides"), defaults["pesticides"]),
	)

	maturity = _positive_number(data.get("maturityTime", data.get("maturity_time")))
	maturity_days = round(maturity) if maturity is not None and round(maturity) > 0 else defaults["maturity_time"]

	soil_raw = _section(data, "soilSuitability", "soil_suitability")
	reason = soil_raw.get("reason")
	soil = SoilSuitability(
		rating=_enum_member(SoilSuitabilityRating, soil_raw.get("rating"), defaults["soil_rating"]),
		reason=reason.strip() if isinstance(reason, str) and reason.strip() else defaults["soil_reason"],
	)

	market_raw = _section(data, "marketAnalysis", "market_analysis")
	margin = market_raw.get("profitMargin", market_raw.get("profit_margin"))
	market = MarketAnalysis(
		profit_margin=margin.strip()
		if isinstance(margin, str) and _PERCENT_PATTERN.match(margin.strip())
		else market_defaults.profit_margin,
		demand=_enum_member(DemandLevel, market_raw.get("demand"), market_defaults.demand),
	)

	return OperationalDetails(
		equipment_needed=_string_list(
			data.get("equipmentNeeded", data.get("equipment_needed")),
			defaults["equipment_needed"],
		),
		effort_hours=effort,
		resource_requirements=resources,
		maturity_time=maturity_days,
		risk_level=_enum_member(RiskLevel, data.get("riskLevel", data.get("risk_level")), defaults["risk_level"]),
		soil_suitability=soil,
		market_analysis=market,
		source=DetailsSource.llm,
	)


# ── Prompting ───────────────────────────────────────────────────────────────

SYSTEM_PROMPT = (
	"You are an agricultural operations expert for the KUPPAM and PALAMANER regions of "
	"Chittoor district, Andhra Pradesh. You ONLY respond with a single valid JSON object."
)


def build_operational_prompt(
	crop_name: str,
	recommendation: CropRecommendation,
	farmer_data: dict[str, Any] | None = None,
) -> str:
	result = recommendation.profitability
	market = recommendation.market_data
	lines = [
		f"Describe the operational requirements for growing {crop_name} on "
		f"{recommendation.area_hectares} hectares in the KUPPAM/PALAMANER region.",
		"",
		"**Market & financial context:**",
		f"- Price: ₹{format_number(result.price_per_quintal)}/quintal ({result.price_source or 'no price data'})",
		f"- Demand: {recommendation.demand.value}",
		f"- Price volatility: {market.price_volatility.value if market else 'N/A'}",
		f"- Expected income: {format_inr(recommendation.expected_income)}",
		f"- Total cost: {format_inr(result.total_cost)}",
		f"- ROI: {result.roi}%",
		f"- Success rate: {recommendation.success_rate}%",
	]
	if farmer_data:
		lines += [
			"",
			"**Farmer context:**",
			f"- Irrigation method: {profile.detail_text(farmer_data, 'irrigationMethod') or 'Not specified'}",
			f"- Water source: {profile.detail_text(farmer_data, 'waterSource') or 'Not specified'}",
			f"- Soil type: {profile.detail_text(farmer_data, 'soilType') or 'Not specified'}",
		]
	lines += [
		"",
		"Respond with ONLY this JSON structure:",
		"{",
		'  "equipmentNeeded": ["<equipment>", ...],',
		'  "effortHours": {"setup": <hours>, "maintenance": <hours>, "harvesting": <hours>},',
		'  "resourceRequirements": {"waterLitersPerAcre": <number>, "fertilizers": ["..."], "pesticides": ["..."]},',
		'  "maturityTime": <days>,',
		'  "riskLevel": "Low" | "Medium" | "High",',
		'  "soilSuitability": {"rating": "Excellent" | "Good" | "Fair" | "Poor", "reason": "<one sentence>"},',
		'  "marketAnalysis": {"profitMargin": "<percent, e.g. 24.5%>", "demand": "HIGH" | "MEDIUM-HIGH" | "MEDIUM" | "LOW-MEDIUM"}',
		"}",
	]
	return "\n".join(lines)


class OperationalDetailsService:
	def __init__(self, llm: LLMClient, cache: CacheService, max_concurrency: int = 4):
		self.llm = llm
		self.cache = cache
		self.max_concurrency = max(1, max_concurrency)

	@staticmethod
	def cache_params(
		crop_name: str,
		recommendation: CropRecommendation,
		farmer_data: dict[str, Any] | None,
	) -> dict[str, Any]:
		return {
			"crop": crop_name.strip().lower(),
			"demand": recommendation.demand.value,
			"expectedIncome": recommendation.expected_income,
			"successRate": recommendation.success_rate,
			"roi": recommendation.profitability.roi,
			"areaHectares": recommendation.area_hectares,
			"irrigationMethod": profile.detail_text(farmer_data, "irrigationMethod"),
			"waterSource": profile.detail_text(farmer_data, "waterSource"),
			"soilType": profile.detail_text(farmer_data, "soilType"),
		}

	async def generate(
		self,
		crop_name: str,
		recommendation: CropRecommendation,
		farmer_data: dict[str, Any] | None = None,
	) -> OperationalDetails:
		if not self.llm.available:
			return fallback_operational_details(crop_name, recommendation)

		key = self.cache.build_key(CACHE_PREFIX, self.cache_params(crop_name, recommendation, farmer_data))
		cached = await self.cache.get(key)
		if cached is not None:
			try:
				return OperationalDetails.model_validate(cached)
			except ValidationError:
				await self.cache.delete(key)

		try:
			text = await self.llm.complete(
				system=SYSTEM_PROMPT,
				user=build_operational_prompt(crop_name, recommendation, farmer_data),
				temperature=0.6,
				max_tokens=900,
				json_mode=True,
			)
		except (LLMNotConfiguredError, LLMServiceError) as exc:
			logger.warning("operational_details_fallback", extra={"crop": crop_name, "error": str(exc)})
			return fallback_operational_details(crop_name, recommendation)

		raw = _first_json_object(text)
		if raw is None:
			logger.warning("operational_details_unparseable", extra={"crop": crop_name})
			return fallback_operational_details(crop_name, recommendation)

		details = coerce_operational_details(raw, market_analysis_for(recommendation))
		await self.cache.set(key, details.model_dump(mode="json", by_alias=True))
		return details

	async def generate_many(
		self,
		recommendations: Sequence[CropRecommendation],
		farmer_data: dict[str, Any] | None = None,
	) -> list[OperationalDetails]:
		"""Details for every recommendation, in input order, with bounded fan-out."""
		semaphore = asyncio.Semaphore(self.max_concurrency)

		async def _one(recommendation: CropRecommendation) -> OperationalDetails:
			async with semaphore:
				return await self.generate(recommendation.crop, recommendation, farmer_data)

		async with asyncio.TaskGroup() as group:
			tasks = [group.create_task(_one(item)) for item in recommendations]
		return [task.result() for task in tasks]


def _first_json_object(text: str) -> dict[str, Any] | None:
	candidate = extract_json_object(strip_code_fences(text))
	if candidate is None:
		return None
	try:
		parsed = json.loads(candidate)
	except json.JSONDecodeError:
		return None
	return parsed if isinstance(parsed, dict) else None
