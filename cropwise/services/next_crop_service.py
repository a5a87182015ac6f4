"""Stage-wise investment analysis and AI projections for a farmer's next crop."""

from __future__ import annotations

import json
import logging
import math
from datetime import UTC, datetime
from typing import Any

from cropwise.data.schemes import applicable_schemes
from cropwise.formatting import format_inr
from cropwise.schemas.insights import (
	AiProjections,
	CategoryCost,
	CropSnapshot,
	ExpectedYield,
	InsightsMetadata,
	InvestmentRequirements,
	LandArea,
	MarketContext,
	MarketPrice,
	MspPrice,
	NextCropInsightsData,
	NextCropInsightsRequest,
	PreviousCropComparison,
	StageInvestment,
)
from cropwise.services import farmer_data as profile
from cropwise.services.cache_service import CacheService
from cropwise.services.llm_client import (
	LLMClient,
	LLMNotConfiguredError,
	LLMServiceError,
	ModelTier,
	strip_code_fences,
)
from cropwise.services.pricing import PriceBook
from cropwise.services.profitability import round_half_up

CACHE_PREFIX = "next-crop-insights"
ACRES_PER_HECTARE = 2.47
REQUIRED_STAGE_COUNT = 9
FALLBACK_BASE_PRICE = 3500
UNFORMATTED_NOTE = "AI response not properly formatted"

STAGE_NAMES: tuple[str, ...] = (
	"Treating Soil",
	"Land Preparation",
	"Sowing",
	"Crop Protection",
	"Vegetative Stage",
	"Flowering",
	"Fruiting",
	"Harvesting",
	"Post Harvest",
)

# Category data field → key reported in the stage breakdown.
CATEGORY_DETAIL_FIELDS: tuple[tuple[str, str], ...] = (
	("days", "days"),
	("persons", "persons"),
	("wagePerDay", "wagePerDay"),
	("quantity", "quantity"),
	("equipmentName", "equipment"),
	("costPerDay", "costPerDay"),
)

SYSTEM_PROMPT = (
	"You are a precise agricultural data analyst for Andhra Pradesh. You ONLY respond with valid JSON objects. "
	"Never use markdown, never explain, just pure JSON with accurate farming data for Chittoor district."
)

logger = logging.getLogger("cropwise.next_crop")


def category_label(raw: Any) -> str:
	"""``LABOUR_COST`` -> ``Labour cost``."""
	if not isinstance(raw, str) or not raw:
		return "Other"
	label = raw.replace("_", " ").lower()
	return label[0].upper() + label[1:]


def category_details(data: dict[str, Any]) -> dict[str, Any]:
	details: dict[str, Any] = {}
	for field, name in CATEGORY_DETAIL_FIELDS:
		value = data.get(field)
		if value:
			details[name] = value
	return details


def per_acre(amount: float, land_area_hectares: float) -> int:
	return round_half_up(amount / (land_area_hectares * ACRES_PER_HECTARE))


def stage_investment(index: int, stage: Any, land_area_hectares: float) -> StageInvestment:
	categories = stage.get("categories") if isinstance(stage, dict) else None
	breakdown: list[CategoryCost] = []
	total = 0.0
	for category in categories if isinstance(categories, list) else []:
		if not isinstance(category, dict) or not isinstance(category.get("data"), dict):
			continue
		data = category["data"]
		cost = profile.as_number(data.get("totalCost"))
		if cost <= 0:
			continue
		total += cost
		breakdown.append(
			CategoryCost(
				category=category_label(category.get("category")),
				cost=cost,
				details=category_details(data),
			)
		)

	name = STAGE_NAMES[index] if index < len(STAGE_NAMES) else None
	if name is None and isinstance(stage, dict) and isinstance(stage.get("stageName"), str):
		name = stage["stageName"]
	return StageInvestment(
		stage=index + 1,
		name=name or f"Stage {index + 1}",
		total_cost=total,
		cost_per_acre=per_acre(total, land_area_hectares),
		breakdown=breakdown,
	)


def investment_analysis(stages: list[Any], land_area_hectares: float) -> InvestmentRequirements:
	stage_items = [stage_investment(index, stage, land_area_hectares) for index, stage in enumerate(stages)]
	total = sum(item.total_cost for item in stage_items)
	return InvestmentRequirements(
		total_investment=total,
		total_investment_per_acre=per_acre(total, land_area_hectares),
		land_area=LandArea(
			hectares=land_area_hectares,
			acres=round(land_area_hectares * ACRES_PER_HECTARE, 2),
		),
		stages=stage_items,
	)


def market_context(price_book: PriceBook, crop_name: str) -> MarketContext:
	apmc_price: MarketPrice | None = None
	msp_price: MspPrice | None = None

	market = price_book.market_data(crop_name)
	if market is not None:
		apmc_price = MarketPrice(
			price=market.avg_modal_price,
			source=f"APMC {market.region}",
			price_range={"min": market.min_price, "max": market.max_price},
		)

	entry = price_book.msp_entry(crop_name)
	latest = entry.latest() if entry is not None else None
	if entry is not None and latest is not None:
		fiscal_year, price = latest
		msp_price = MspPrice(
			price=price,
			fiscal_year=fiscal_year,
			trend=entry.trend.value,
			category=entry.category.value,
		)

	if apmc_price is not None:
		source = "APMC"
	elif msp_price is not None:
		source = "MSP"
	else:
		source = "Estimated"
	return MarketContext(apmc_price=apmc_price, msp_price=msp_price, price_source=source)


def reference_price(context: MarketContext) -> float | None:
	if context.apmc_price is not None:
		return context.apmc_price.price
	if context.msp_price is not None:
		return context.msp_price.price
	return None


def _number_or_none(value: Any) -> float | None:
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		return None
	return profile.as_number(value) if math.isfinite(value) else None


def build_projections(parsed: dict[str, Any], context: MarketContext) -> AiProjections:
	raw = parsed.get("projections")
	if not isinstance(raw, dict):
		return AiProjections(
			expected_yield=ExpectedYield(note=UNFORMATTED_NOTE),
			market_price=reference_price(context),
		)
	return AiProjections(
		expected_yield=ExpectedYield(
			kg=_number_or_none(raw.get("expectedYieldKg")),
			quintals=_number_or_none(raw.get("expectedYieldQuintals")),
		),
		market_price=_number_or_none(raw.get("marketPricePerQuintal")) or reference_price(context),
		estimated_revenue=_number_or_none(raw.get("estimatedRevenue")),
		estimated_profit=_number_or_none(raw.get("estimatedProfit")),
	)


def _list_or_empty(value: Any) -> list[Any]:
	return value if isinstance(value, list) else []


def build_prompt(
	request: NextCropInsightsRequest,
	investment: InvestmentRequirements,
	context: MarketContext,
) -> str:
	crop = request.suggested_crop
	current = request.current_crop
	area = request.land_area
	yield_text = f"{request.current_yield:g} kg" if request.current_yield else "Not provided"
	income_text = format_inr(request.current_income) if request.current_income else "Not provided"
	apmc = context.apmc_price
	msp = context.msp_price
	base_price = reference_price(context) or FALLBACK_BASE_PRICE
	profit_hint = (
		f"compare profit with current {income_text}" if request.current_income else "estimate improvement percentage"
	)
	total = investment.total_investment

	return f"""You are an expert agricultural advisor for Andhra Pradesh, specifically for the {request.region} region in Chittoor district.

**FARMER PROFILE:**
- Location: {request.region}, Andhra Pradesh
- Land Area: {area} hectares ({area * ACRES_PER_HECTARE:.2f} acres)
- Current Crop: {current}
- Current Yield: {yield_text}
- Current Income: {income_text}
- BPL Family: {"Yes" if request.bpl_family else "No"}
- Education: {request.education or "N/A"}
- Irrigation: {request.irrigation_method or "N/A"}
- Water Source: {request.water_source or "N/A"}
- Farming Type: {request.farming_type or "Conventional"}

**SUGGESTED CROP FOR ANALYSIS:** {crop}
**SEASON:** {request.season}
**REGION CONTEXT:** {request.region} region, Chittoor district, Andhra Pradesh

**INVESTMENT ANALYSIS:**
Total Investment Required: {format_inr(total)}
Investment per Acre: {format_inr(investment.total_investment_per_acre)}

**MARKET DATA:**
{f"APMC Price: ₹{apmc.price:g}/quintal ({apmc.source})" if apmc else "APMC Price: Not available"}
{f"MSP {msp.fiscal_year}: ₹{msp.price:g}/quintal" if msp else "MSP: Not available"}

**TASK:**
Analyze growing {crop} in the {request.season} season in {request.region} region.
Respond with ONLY a valid JSON object. No markdown, no code blocks, no explanations.

Required JSON structure:
{{
  "projections": {{
    "expectedYieldKg": <number: expected yield in kg for {area} hectares>,
    "expectedYieldQuintals": <number: yield in quintals>,
    "marketPricePerQuintal": <number: realistic market price in rupees>,
    "estimatedRevenue": <number: yield x price>,
    "estimatedProfit": <number: revenue minus {total:g}>
  }},
  "riskFactors": ["<climate/weather for {request.season}>", "<market volatility>", "<pest/disease>", "<water/resource>", "<region-specific>"],
  "successFactors": ["<best practice for {crop}>", "<timing for {request.season}>", "<water management>", "<market strategy>", "<quality tips>"],
  "comparison": {{
    "investmentChange": "<compare ₹{total:g} with typical {current} investment>",
    "profitImprovement": "<text with numbers: {profit_hint}>",
    "riskLevel": "<Low/Medium/High: compare {crop} vs {current} risk with reasoning>"
  }},
  "recommendations": ["<recommendation 1>", "<recommendation 2>", "<recommendation 3>"],
  "insights": "<1-2 paragraphs specific to {request.region}, {request.season} and the farmer profile>"
}}

**CALCULATION NOTES:**
- Base market price: {base_price:g}/quintal
- Investment: ₹{total:g}
- Current income: {income_text}

Return ONLY the JSON object."""


class NextCropService:
	def __init__(self, llm: LLMClient, cache: CacheService, price_book: PriceBook):
		self.llm = llm
		self.cache = cache
		self.price_book = price_book

	@staticmethod
	def cache_params(request: NextCropInsightsRequest, total_investment: float) -> dict[str, Any]:
		return {
			"crop": request.suggested_crop.strip().lower(),
			"season": request.season.strip().lower(),
			"region": request.region.strip().lower(),
			"landArea": request.land_area,
			"currentCrop": request.current_crop.strip().lower(),
			"currentYield": request.current_yield,
			"currentIncome": request.current_income,
			"investmentTotal": total_investment,
			"farmerProfile": {
				"bplFamily": request.bpl_family,
				"gender": request.gender,
				"education": request.education,
				"irrigationMethod": request.irrigation_method,
				"waterSource": request.water_source,
				"farmingType": request.farming_type,
			},
		}

	async def _ai_insights(
		self,
		request: NextCropInsightsRequest,
		investment: InvestmentRequirements,
		context: MarketContext,
	) -> tuple[dict[str, Any], str | None, bool]:
		"""``(parsed, cleaned text, cached)``; parsed is empty when no LLM answer is usable."""
		key = self.cache.build_key(CACHE_PREFIX, self.cache_params(request, investment.total_investment))
		if request.refresh:
			await self.cache.delete(key)
		else:
			cached = await self.cache.get(key)
			if isinstance(cached, dict) and isinstance(cached.get("parsedInsights"), dict):
				return cached["parsedInsights"], cached.get("aiInsights"), True

		if not self.llm.available:
			return {}, None, False

		try:
			text = await self.llm.complete(
				system=SYSTEM_PROMPT,
				user=build_prompt(request, investment, context),
				temperature=0.5,
				max_tokens=2000,
				json_mode=True,
				tier=ModelTier.analysis,
			)
		except (LLMNotConfiguredError, LLMServiceError) as exc:
			logger.warning("next_crop_insights_failed", extra={"crop": request.suggested_crop, "error": str(exc)})
			return {}, None, False

		cleaned = strip_code_fences(text)
		try:
			parsed = json.loads(cleaned)
		except json.JSONDecodeError as exc:
			logger.warning("next_crop_insights_unparseable", extra={"crop": request.suggested_crop, "error": str(exc)})
			parsed = None
		if not isinstance(parsed, dict):
			parsed = {"rawInsights": cleaned}

		await self.cache.set(key, {"parsedInsights": parsed, "aiInsights": cleaned})
		return parsed, cleaned, False

	async def analyze(self, request: NextCropInsightsRequest) -> NextCropInsightsData:
		if len(request.stages) != REQUIRED_STAGE_COUNT:
			raise ValueError(f"stages must be an array of {REQUIRED_STAGE_COUNT} crop stages")

		investment = investment_analysis(request.stages, request.land_area)
		context = market_context(self.price_book, request.suggested_crop)
		schemes = applicable_schemes(
			request.suggested_crop,
			bpl_family=bool(request.bpl_family),
			gender=request.gender,
			irrigation_method=request.irrigation_method,
		)

		parsed, ai_text, cached = await self._ai_insights(request, investment, context)
		ai_available = ai_text is not None
		projections = build_projections(parsed, context)
		comparison = parsed.get("comparison")
		if not isinstance(comparison, dict):
			comparison = {
				"investmentChange": UNFORMATTED_NOTE,
				"profitImprovement": UNFORMATTED_NOTE,
				"riskLevel": UNFORMATTED_NOTE,
			}
		raw_insights = parsed.get("rawInsights")
		insights_text = parsed.get("insights")

		return NextCropInsightsData(
			crop=request.suggested_crop,
			season=request.season,
			region=request.region,
			investment_requirements=investment,
			ai_projections=projections,
			market_context=context,
			risk_factors=_list_or_empty(parsed.get("riskFactors")),
			success_factors=_list_or_empty(parsed.get("successFactors")),
			comparison_with_previous_crop=PreviousCropComparison(
				previous_crop=CropSnapshot(
					name=request.current_crop,
					yield_=request.current_yield,
					income=request.current_income,
					investment=investment.total_investment,
				),
				suggested_crop=CropSnapshot(
					name=request.suggested_crop,
					estimated_yield=projections.expected_yield.kg,
					estimated_income=projections.estimated_revenue,
					investment=investment.total_investment,
				),
				comparison=comparison,
			),
			recommendations=_list_or_empty(parsed.get("recommendations")),
			applicable_schemes=schemes,
			ai_available=ai_available,
			ai_insights=insights_text if isinstance(insights_text, str) else ai_text,
			raw_insights=raw_insights if isinstance(raw_insights, str) else None,
			metadata=InsightsMetadata(
				generated_at=datetime.now(UTC).isoformat(),
				ai_provider=self.llm.provider if ai_available else None,
				model=self.llm.model_for(ModelTier.analysis) if ai_available else None,
				region=request.region,
				season=request.season,
				cached=cached,
			),
		)
