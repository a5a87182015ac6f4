"""Narrative LLM insights for a single crop and side-by-side crop comparisons."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from cropwise.formatting import format_inr, format_number
from cropwise.schemas.insights import CropInsights, InsightRecommendations
from cropwise.schemas.recommendation import CropRecommendation
from cropwise.services import farmer_data as profile
from cropwise.services.cache_service import CacheService
from cropwise.services.llm_client import LLMClient, LLMNotConfiguredError, LLMServiceError

CACHE_PREFIX = "crop-insights"
BULK_CACHE_PREFIX = "crop-bulk-insights"
NOT_CONFIGURED_MESSAGE = (
	"LLM service not configured. Please set OPENAI_API_KEY or TOGETHER_API_KEY environment variable."
)

logger = logging.getLogger("cropwise.insights")

SYSTEM_PROMPT = (
	"You are an agricultural expert specializing in the KUPPAM and PALAMANER regions of Andhra Pradesh, India.\n"
	"You provide practical, data-driven advice to farmers about crop profitability, market trends, and farming "
	"practices specific to this region.\n"
	"Focus on: soil types in the region, climate patterns, water availability, local market dynamics, and "
	"seasonal considerations.\n"
	"Keep responses concise, actionable, and specific to the Chittoor district agricultural context."
)

BULK_SYSTEM_PROMPT = (
	"You are an agricultural expert for KUPPAM/PALAMANER region in Chittoor district, Andhra Pradesh.\n"
	"Provide brief, region-specific insights for each crop considering local conditions."
)


def parse_suitability(text: str) -> str:
	normalized = text.lower()
	if "suitable" in normalized or "ideal" in normalized:
		return "HIGH"
	if "not recommended" in normalized or "avoid" in normalized:
		return "LOW"
	return "MEDIUM"


def build_insights_prompt(
	crop_name: str,
	recommendation: CropRecommendation,
	farmer_data: dict[str, Any] | None = None,
) -> str:
	result = recommendation.profitability
	market = recommendation.market_data
	lines = [
		f"Analyze the profitability and viability of growing {crop_name} in the KUPPAM/PALAMANER region "
		"(Chittoor district, Andhra Pradesh).",
		"",
		"**Market Data (PALAMANER APMC):**",
		f"- Average Market Price: ₹{format_number(result.price_per_quintal)}/quintal",
		f"- Market Demand: {recommendation.demand.value}",
		f"- Price Volatility: {market.price_volatility.value if market else 'N/A'}",
	]
	if market is not None:
		lines.append(f"- Recent Arrivals: {market.total_arrivals:g} quintals")
	lines += [
		"",
		"**Financial Projections:**",
		f"- Expected Income: {format_inr(recommendation.expected_income)}",
		f"- Total Cost: {format_inr(result.total_cost)}",
		f"- Expected Profit: {format_inr(result.profit)}",
		f"- ROI: {result.roi}%",
		f"- Success Rate: {recommendation.success_rate}%",
		f"- Estimated Yield: {result.yield_quintals:.1f} quintals per {recommendation.area_hectares} hectares",
	]
	if farmer_data:
		lines += [
			"",
			"**Farmer Context:**",
			f"- Location: {profile.address(farmer_data) or 'KUPPAM region'}",
			f"- Farming Type: {profile.detail_text(farmer_data, 'farmingType') or 'Conventional'}",
			f"- Water Source: {profile.detail_text(farmer_data, 'waterSource') or 'Not specified'}",
			f"- Land Area: {recommendation.area_hectares} hectares",
		]
	lines += [
		"",
		"Provide specific insights for this crop in KUPPAM/PALAMANER region covering:",
		"1. Regional suitability (soil, climate, water needs)",
		"2. Key success factors and risks",
		"3. Best practices for this region",
		"4. Market timing and selling strategy",
		"5. Alternative crops if this isn't optimal",
		"",
		"Keep the response practical and actionable for local farmers.",
	]
	return "\n".join(lines)


def build_bulk_prompt(crop_names: Sequence[str]) -> str:
	return (
		f"Compare these crops for profitability in KUPPAM/PALAMANER region: {', '.join(crop_names)}\n\n"
		"For each crop, briefly mention:\n"
		"- Suitability for the region (1 sentence)\n"
		"- Expected market demand (1 sentence)\n"
		"- One key success factor\n\n"
		"Keep total response under 300 words."
	)


class InsightsService:
	def __init__(self, llm: LLMClient, cache: CacheService):
		self.llm = llm
		self.cache = cache

	async def crop_insights(
		self,
		crop_name: str,
		recommendation: CropRecommendation,
		farmer_data: dict[str, Any] | None = None,
	) -> CropInsights:
		if not self.llm.available:
			return CropInsights(available=False, message=NOT_CONFIGURED_MESSAGE)

		prompt = build_insights_prompt(crop_name, recommendation, farmer_data)
		key = self.cache.build_key(CACHE_PREFIX, {"crop": crop_name.strip().lower(), "prompt": prompt})
		cached = await self.cache.get(key)
		if cached is not None:
			try:
				return CropInsights.model_validate(cached)
			except ValidationError:
				await self.cache.delete(key)

		try:
			text = await self.llm.complete(system=SYSTEM_PROMPT, user=prompt, temperature=0.7, max_tokens=500)
		except (LLMNotConfiguredError, LLMServiceError) as exc:
			logger.warning("crop_insights_failed", extra={"crop": crop_name, "error": str(exc)})
			return CropInsights(available=False, error=str(exc))

		insights = CropInsights(
			available=True,
			provider=self.llm.provider,
			insights=text,
			recommendations=InsightRecommendations(suitability=parse_suitability(text)),
		)
		await self.cache.set(key, insights.model_dump(mode="json", by_alias=True))
		return insights

	async def bulk_insights(self, crop_names: Sequence[str]) -> CropInsights:
		if not self.llm.available:
			return CropInsights(available=False, message=NOT_CONFIGURED_MESSAGE)
		if not crop_names:
			return CropInsights(available=False, message="No crops to compare")

		key = self.cache.build_key(BULK_CACHE_PREFIX, {"crops": [name.strip().lower() for name in crop_names]})
		cached = await self.cache.get(key)
		if cached is not None:
			try:
				return CropInsights.model_validate(cached)
			except ValidationError:
				await self.cache.delete(key)

		try:
			text = await self.llm.complete(
				system=BULK_SYSTEM_PROMPT,
				user=build_bulk_prompt(crop_names),
				temperature=0.7,
				max_tokens=400,
			)
		except (LLMNotConfiguredError, LLMServiceError) as exc:
			logger.warning("bulk_insights_failed", extra={"crops": list(crop_names), "error": str(exc)})
			return CropInsights(available=False, error=str(exc))

		insights = CropInsights(available=True, provider=self.llm.provider, insights=text)
		await self.cache.set(key, insights.model_dump(mode="json", by_alias=True))
		return insights
