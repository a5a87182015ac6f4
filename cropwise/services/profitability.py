"""Cost aggregation, profitability, success-rate scoring and crop ranking."""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from collections.abc import Iterable, Sequence
from typing import Any

from cropwise.models.enums import (
	CropStatus,
	DemandLevel,
	PriceSourceTable,
	RecommendationBasis,
)
from cropwise.schemas.market import MarketCropData
from cropwise.schemas.recommendation import (
	CropRecommendation,
	IncomeEstimate,
	ProfitabilityResult,
)
from cropwise.services import farmer_data as profile
from cropwise.services.pricing import PriceBook

# Calibration constants. Scores must stay bit-for-bit stable across releases.
KG_PER_QUINTAL = 100.0
DEFAULT_YIELD_KG = 7500.0
REFERENCE_YIELD_QUINTALS = 75.0
ESTIMATED_COST = 110_000.0
DEFAULT_LAND_AREA_HECTARES = 0.6

COMPLETION_WEIGHTS: dict[str, int] = {
	CropStatus.completed.value: 30,
	CropStatus.in_progress.value: 15,
}
ROI_TIERS: tuple[tuple[float, int], ...] = ((50, 30), (30, 25), (10, 15), (0, 10))
YIELD_RATIO_TIERS: tuple[tuple[float, int], ...] = ((1.0, 20), (0.8, 15), (0.6, 10))
DEMAND_WEIGHTS: dict[DemandLevel, int] = {
	DemandLevel.high: 20,
	DemandLevel.medium_high: 15,
	DemandLevel.medium: 10,
}
NO_MARKET_DEMAND_SCORE = 10

ESTIMATED_SUCCESS_HIGH_DEMAND = 78
ESTIMATED_SUCCESS_OTHER_DEMAND = 65
ESTIMATED_SUCCESS_NO_MARKET = 60

logger = logging.getLogger("cropwise.profitability")


def round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def round_2dp(value: float) -> float:
	"""Two decimals, exact ties away from zero (``3.125`` -> ``3.13``)."""
	return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _category_cost(category: Any) -> float:
	if not isinstance(category, dict):
		return 0.0
	data = category.get("data")
	if not isinstance(data, dict):
		return 0.0
	return profile.as_number(data.get("totalCost"))


def stage_cost(stage: Any) -> float:
	if not isinstance(stage, dict):
		return 0.0
	categories = stage.get("categories")
	if not isinstance(categories, list):
		return 0.0
	return sum(_category_cost(category) for category in categories)


def calculate_total_cost(stages: Any) -> float:
	"""Sum of every category ``data.totalCost`` across all stages."""
	if not isinstance(stages, list):
		return 0.0
	return sum(stage_cost(stage) for stage in stages)


def calculate_cost_breakdown(stages: Any) -> dict[str, float]:
	"""Stage name → summed cost; stages costing nothing are left out."""
	breakdown: dict[str, float] = {}
	if not isinstance(stages, list):
		return breakdown
	for index, stage in enumerate(stages):
		cost = stage_cost(stage)
		if cost <= 0:
			continue
		name = stage.get("stageName") if isinstance(stage, dict) else None
		if not isinstance(name, str) or not name:
			name = f"Stage {index + 1}"
		# Repeated stage names accumulate so the breakdown always sums to the total cost.
		breakdown[name] = breakdown.get(name, 0.0) + cost
	return breakdown


def calculate_roi(profit: float, total_cost: float) -> float:
	if total_cost <= 0:
		return 0.0
	return round_2dp(profit / total_cost * 100)


# ── Success-rate tiers ──────────────────────────────────────────────────────


def completion_score(status: str | None) -> int:
	if status is None:
		return 0
	return COMPLETION_WEIGHTS.get(status, 0)


def roi_score(roi: float) -> int:
	for threshold, points in ROI_TIERS:
		if roi > threshold:
			return points
	return 0


def yield_score(yield_quintals: float) -> int:
	ratio = yield_quintals / REFERENCE_YIELD_QUINTALS
	for threshold, points in YIELD_RATIO_TIERS:
		if ratio >= threshold:
			return points
	return 0


def demand_score(market: MarketCropData | None) -> int:
	if market is None:
		return NO_MARKET_DEMAND_SCORE
	return DEMAND_WEIGHTS.get(market.demand, 0)


class ProfitabilityEngine:
	"""Turns farmer stage data and reference prices into ranked recommendations."""

	def __init__(self, price_book: PriceBook):
		self.price_book = price_book

	def expected_income(
		self,
		crop_name: str,
		yield_quintals: float,
		preferred: PriceSourceTable = PriceSourceTable.market,
	) -> IncomeEstimate:
		quote = self.price_book.resolve(crop_name, preferred)
		if quote is None:
			logger.info("price_unresolved", extra={"crop": crop_name})
			return IncomeEstimate(yield_quintals=yield_quintals)
		return IncomeEstimate(
			price_per_quintal=quote.price_per_quintal,
			price_source=quote.source_label,
			yield_quintals=yield_quintals,
			expected_income=quote.price_per_quintal * yield_quintals,
		)

	def profitability(self, farmer_data: Any, crop_name: str) -> ProfitabilityResult:
		stage_list = profile.stages(farmer_data)
		details = profile.crop_details(farmer_data)

		total_cost = calculate_total_cost(stage_list)
		yield_kg = profile.as_number(details.get("cropYield"))
		if yield_kg <= 0:
			yield_kg = DEFAULT_YIELD_KG
		yield_quintals = yield_kg / KG_PER_QUINTAL

		income = self.expected_income(crop_name, yield_quintals, PriceSourceTable.market)
		actual_income = profile.as_number(details.get("incomeFromYieldSale"))
		profit = income.expected_income - total_cost

		return ProfitabilityResult(
			total_cost=total_cost,
			expected_income=income.expected_income,
			actual_income=actual_income or None,
			profit=profit,
			roi=calculate_roi(profit, total_cost),
			profit_per_quintal=round_2dp(profit / yield_quintals) if yield_quintals > 0 else 0.0,
			yield_quintals=yield_quintals,
			price_per_quintal=income.price_per_quintal,
			price_source=income.price_source,
			cost_breakdown=calculate_cost_breakdown(stage_list),
		)

	def estimated_profitability(self, crop_name: str) -> ProfitabilityResult:
		"""Projection from reference constants when no farmer profile exists."""
		income = self.expected_income(crop_name, REFERENCE_YIELD_QUINTALS, PriceSourceTable.market)
		profit = income.expected_income - ESTIMATED_COST
		return ProfitabilityResult(
			total_cost=ESTIMATED_COST,
			expected_income=income.expected_income,
			profit=profit,
			roi=calculate_roi(profit, ESTIMATED_COST),
			profit_per_quintal=round_2dp(profit / REFERENCE_YIELD_QUINTALS),
			yield_quintals=REFERENCE_YIELD_QUINTALS,
			price_per_quintal=income.price_per_quintal,
			price_source=income.price_source,
		)

	def success_rate(
		self,
		farmer_data: Any,
		profitability: ProfitabilityResult,
		market: MarketCropData | None,
	) -> int:
		score = (
			completion_score(profile.status(farmer_data))
			+ roi_score(profitability.roi)
			+ yield_score(profitability.yield_quintals)
			+ demand_score(market)
		)
		return min(100, score)

	@staticmethod
	def estimated_success_rate(market: MarketCropData | None) -> int:
		if market is None:
			return ESTIMATED_SUCCESS_NO_MARKET
		if market.demand == DemandLevel.high:
			return ESTIMATED_SUCCESS_HIGH_DEMAND
		return ESTIMATED_SUCCESS_OTHER_DEMAND

	def recommend(
		self,
		crop_name: str,
		farmer_data: dict[str, Any] | None = None,
		land_area_hectares: float = DEFAULT_LAND_AREA_HECTARES,
	) -> CropRecommendation:
		market = self.price_book.market_data(crop_name)

		if farmer_data is not None:
			basis = RecommendationBasis.farmer_data
			result = self.profitability(farmer_data, crop_name)
			success = self.success_rate(farmer_data, result, market)
		else:
			basis = RecommendationBasis.estimate
			result = self.estimated_profitability(crop_name)
			success = self.estimated_success_rate(market)

		return CropRecommendation(
			crop=crop_name,
			expected_income=round_half_up(result.expected_income),
			demand=market.demand if market is not None else DemandLevel.medium,
			success_rate=success,
			profitability=result,
			market_data=market,
			area_hectares=land_area_hectares,
			basis=basis,
		)

	def top_n(
		self,
		crops: Iterable[str],
		farmer_data: dict[str, Any] | None = None,
		top_n: int = 5,
		land_area_hectares: float = DEFAULT_LAND_AREA_HECTARES,
	) -> list[CropRecommendation]:
		"""Recommendations ranked by gross expected income, highest first."""
		recommendations: Sequence[CropRecommendation] = [
			self.recommend(crop, farmer_data, land_area_hectares) for crop in crops
		]
		ranked = sorted(recommendations, key=lambda item: item.expected_income, reverse=True)
		return ranked[: max(top_n, 0)]
