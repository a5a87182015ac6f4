"""Post-harvest loss summary with an optional LLM narrative."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from cropwise.schemas.analysis import LossAnalysisData, LossAnalysisRequest, LossSummary
from cropwise.services import farmer_data as profile
from cropwise.services.llm_client import LLMClient, LLMNotConfiguredError, LLMServiceError, ModelTier
from cropwise.services.profitability import round_2dp

EXPECTED_YIELD_FACTOR = 1.2
UNKNOWN_CROP = "Unknown Crop"
UNKNOWN_SEASON = "Unknown Season"

SYSTEM_PROMPT = (
	"You are an agricultural financial analyst specializing in crop loss analysis for Indian farmers. "
	"Provide detailed, actionable insights based on the data provided. "
	"Always present monetary values in Indian Rupees (₹) and yields in quintals."
)

COST_LABELS: tuple[tuple[str, str], ...] = (
	("labour", "Labour"),
	("seeds", "Seeds"),
	("fertilizers", "Fertilizers"),
	("pesticides", "Pesticides"),
	("irrigation", "Irrigation"),
	("equipment", "Equipment"),
	("transportation", "Transportation"),
	("other", "Other"),
)
INCOME_LABELS: tuple[tuple[str, str], ...] = (
	("yieldSale", "From Yield Sale"),
	("byproducts", "From By-products"),
	("residue", "From Residue"),
	("subsidy", "Government Subsidy"),
)
DETAIL_LABELS: tuple[tuple[str, str], ...] = (
	("waterSource", "Water Source"),
	("irrigationMethod", "Irrigation Method"),
	("sowingDate", "Date of Sowing"),
	("harvestDate", "Date of Harvest"),
	("soilType", "Soil Type"),
)

logger = logging.getLogger("cropwise.loss_analysis")


def infer_season(sowing_date: str) -> str:
	"""Indian crop season from a ``DD-MM-YYYY`` sowing date.

	Kharif sowing runs June to September, Rabi October to February (spanning
	two calendar years) and Zaid March to April. May has no season and yields
	the bare year.
	"""
	parts = sowing_date.strip().split("-")
	if len(parts) != 3:
		return UNKNOWN_SEASON
	try:
		month = int(parts[1])
		year = int(parts[2])
	except ValueError:
		return UNKNOWN_SEASON

	if 6 <= month <= 9:
		return f"Kharif {year}"
	if 10 <= month <= 11:
		return f"Rabi {year}-{year + 1}"
	if 1 <= month <= 2:
		return f"Rabi {year - 1}-{year}"
	if 3 <= month <= 4:
		return f"Zaid {year}"
	return str(year)


def sum_numeric(values: Mapping[str, Any]) -> float:
	return sum(profile.as_number(value) for value in values.values())


def expected_yield_for(request: LossAnalysisRequest) -> float:
	return request.expected_yield or request.actual_yield * EXPECTED_YIELD_FACTOR


def summarize(request: LossAnalysisRequest) -> LossSummary:
	total_cost = sum_numeric(request.costs)
	total_income = sum_numeric(request.income)
	net_profit = total_income - total_cost
	expected = expected_yield_for(request)
	return LossSummary(
		total_cost=total_cost,
		total_income=total_income,
		net_profit=net_profit,
		profit_margin=round_2dp(net_profit / total_income * 100) if total_income > 0 else 0.0,
		actual_yield=request.actual_yield,
		expected_yield=expected,
		yield_gap=expected - request.actual_yield,
	)


def resolve_crop_name(request: LossAnalysisRequest) -> str:
	if request.crop_name and request.crop_name.strip():
		return request.crop_name.strip()
	variety = (request.crop_details or {}).get("variety")
	if isinstance(variety, str) and variety.strip():
		return variety.strip()
	return UNKNOWN_CROP


def resolve_season(request: LossAnalysisRequest) -> str | None:
	if request.season:
		return request.season
	sowing_date = (request.crop_details or {}).get("sowingDate")
	if isinstance(sowing_date, str) and sowing_date.strip():
		return infer_season(sowing_date)
	return None


def _labelled_lines(values: Mapping[str, Any], labels: tuple[tuple[str, str], ...], money: bool) -> list[str]:
	lines = []
	for key, label in labels:
		value = values.get(key)
		if value:
			lines.append(f"- {label}: ₹{value}" if money else f"- {label}: {value}")
	return lines


def build_prompt(request: LossAnalysisRequest, crop_name: str, season: str | None, summary: LossSummary) -> str:
	location = request.location
	gap_percent = summary.yield_gap / summary.expected_yield * 100 if summary.expected_yield else 0.0
	outcome = "(LOSS)" if summary.net_profit < 0 else "(PROFIT)"
	margin = summary.net_profit / summary.total_income * 100 if summary.total_income > 0 else 0.0

	lines = [
		"Analyze the crop loss and provide recommendations for the following farming data:",
		"",
		"**Crop Information:**",
		f"- Crop/Variety: {crop_name}",
		f"- Season: {season or UNKNOWN_SEASON}",
		f"- Land Area: {request.land_area or 1} hectares",
	]
	if location is not None and location.village:
		place = f"{location.village}, {location.mandal}" if location.mandal else location.village
		lines.append(f"- Location: {place}")
	lines += [
		"",
		"**Yield Analysis:**",
		f"- Actual Yield: {summary.actual_yield:g} quintals",
		f"- Expected Yield: {summary.expected_yield:g} quintals",
		f"- Yield Gap: {summary.yield_gap:g} quintals ({gap_percent:.1f}% less than expected)",
		"",
		"**Cost Breakdown (₹):**",
		*_labelled_lines(request.costs, COST_LABELS, money=True),
		f"- **Total Cost: ₹{summary.total_cost:g}**",
		"",
		"**Income (₹):**",
		*_labelled_lines(request.income, INCOME_LABELS, money=True),
		f"- **Total Income: ₹{summary.total_income:g}**",
		"",
		"**Financial Summary:**",
		f"- **Net Profit/Loss: ₹{summary.net_profit:g}** {outcome}",
		f"- Profit Margin: {margin:.1f}%",
		"",
		"**Farming Details:**",
		*_labelled_lines(request.crop_details or {}, DETAIL_LABELS, money=False),
	]
	if request.challenges:
		lines += ["", "**Challenges Faced:**", *(f"- {challenge}" for challenge in request.challenges)]
	lines += [
		"",
		"Please provide a comprehensive loss analysis in the following format:",
		"",
		"**Primary Factors:**",
		"List 3-5 main factors that contributed to the loss or reduced profit. For each factor:",
		"- Clearly identify the issue",
		"- Quantify the financial impact in ₹ (estimate based on provided data)",
		"- Calculate percentage increase in costs or decrease in expected income",
		'- Example: "Pest attack increased pesticide costs by 25% (₹4,500 extra)"',
		"",
		"**Recommendations for Next Cycle:**",
		"Provide 4-6 specific, actionable recommendations:",
		"- Focus on cost reduction strategies",
		"- Yield improvement techniques",
		"- Better resource management (water, fertilizer, pesticides)",
		"- Market timing and price strategies",
		"- Risk mitigation (insurance, diversification)",
		"- Technology adoption suggestions",
		"",
		"Keep the analysis practical, specific to Indian agricultural context, and directly applicable "
		"to the crop cultivation.",
	]
	return "\n".join(lines)


class LossAnalysisService:
	def __init__(self, llm: LLMClient):
		self.llm = llm

	async def analyze(self, request: LossAnalysisRequest) -> LossAnalysisData:
		crop_name = resolve_crop_name(request)
		season = resolve_season(request)
		summary = summarize(request)

		analysis: str | None = None
		message: str | None = None
		try:
			analysis = await self.llm.complete(
				system=SYSTEM_PROMPT,
				user=build_prompt(request, crop_name, season, summary),
				temperature=0.7,
				max_tokens=2000,
				tier=ModelTier.analysis,
			)
		except LLMNotConfiguredError as exc:
			message = str(exc)
		except LLMServiceError as exc:
			logger.warning("loss_analysis_llm_failed", extra={"crop": crop_name, "error": str(exc)})
			message = "Failed to generate loss analysis narrative"

		return LossAnalysisData(
			crop_name=crop_name,
			season=season,
			summary=summary,
			analysis=analysis,
			message=message,
			timestamp=datetime.now(UTC).isoformat(),
		)
