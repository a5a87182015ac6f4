"""Profitable-crop ranking, single-crop analysis and APMC market views."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropwise.context import ServiceContext, get_context
from cropwise.data.market import MARKET_REGION, all_market_crops, high_demand_crops
from cropwise.formatting import format_inr, format_percent, format_price_per_quintal
from cropwise.schemas.operational import OperationalDetails
from cropwise.schemas.profitable_crops import (
	AnalyzeCropRequest,
	AnalyzeCropResponse,
	CropAnalysis,
	FormattedRecommendation,
	HighDemandCrop,
	HighDemandResponse,
	MarketInfo,
	MarketOverview,
	MarketOverviewCrop,
	MarketOverviewResponse,
	ProfitabilitySummary,
	ProfitableCropsRequest,
	ProfitableCropsResponse,
)
from cropwise.schemas.recommendation import CropRecommendation
from cropwise.services import farmer_data as profile
from cropwise.services.profitability import DEFAULT_LAND_AREA_HECTARES, round_half_up

router = APIRouter(prefix="/profitable-crops", tags=["profitable-crops"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="profitable crops failure")


def _format_recommendation(recommendation: CropRecommendation, details: OperationalDetails) -> FormattedRecommendation:
	market = recommendation.market_data
	return FormattedRecommendation(
		crop=recommendation.crop,
		expected_income=format_inr(recommendation.expected_income),
		demand=recommendation.demand,
		success_rate=format_percent(recommendation.success_rate),
		details=details,
		market_info=MarketInfo(
			recent_trades=len(market.recent_trades),
			total_arrivals=market.total_arrivals,
			avg_price=format_price_per_quintal(market.avg_modal_price),
			volatility=market.price_volatility,
		)
		if market is not None
		else None,
	)


@router.post("", response_model=ProfitableCropsResponse, response_model_exclude_none=True)
async def list_profitable_crops(
	payload: ProfitableCropsRequest,
	context: ServiceContext = Depends(get_context),
) -> ProfitableCropsResponse:
	try:
		crop_names = [item.crop for item in all_market_crops(context.price_book.market_table)]
		land_area = profile.land_area_hectares(payload.farmer_data, DEFAULT_LAND_AREA_HECTARES)
		recommendations = context.engine.top_n(crop_names, payload.farmer_data, payload.top_n, land_area)
		details = await context.operational_details.generate_many(recommendations, payload.farmer_data)
		bulk = (
			await context.insights.bulk_insights([item.crop for item in recommendations])
			if payload.include_insights
			else None
		)
		return ProfitableCropsResponse(
			region=payload.region or context.settings.default_region,
			total_crops_analyzed=len(crop_names),
			land_area_hectares=land_area,
			recommendations=[
				_format_recommendation(recommendation, detail)
				for recommendation, detail in zip(recommendations, details, strict=True)
			],
			bulk_insights=bulk,
		)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/analyze", response_model=AnalyzeCropResponse)
async def analyze_crop(
	payload: AnalyzeCropRequest,
	context: ServiceContext = Depends(get_context),
) -> AnalyzeCropResponse:
	try:
		land_area = payload.land_area_hectares or profile.land_area_hectares(
			payload.farmer_data, DEFAULT_LAND_AREA_HECTARES
		)
		recommendation = context.engine.recommend(payload.crop_name, payload.farmer_data, land_area)
		insights = await context.insights.crop_insights(payload.crop_name, recommendation, payload.farmer_data)
		result = recommendation.profitability
		return AnalyzeCropResponse(
			crop=payload.crop_name,
			analysis=CropAnalysis(
				expected_income=format_inr(recommendation.expected_income),
				demand=recommendation.demand,
				success_rate=format_percent(recommendation.success_rate),
				profitability=ProfitabilitySummary(
					roi=format_percent(result.roi),
					total_cost=format_inr(result.total_cost),
					profit=format_inr(result.profit),
					price_per_quintal=format_price_per_quintal(result.price_per_quintal),
					price_source=result.price_source,
					cost_breakdown=result.cost_breakdown,
				),
				market_data=recommendation.market_data,
			),
			llm_insights=insights,
		)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/high-demand", response_model=HighDemandResponse)
async def get_high_demand_crops(context: ServiceContext = Depends(get_context)) -> HighDemandResponse:
	return HighDemandResponse(
		region=MARKET_REGION,
		high_demand_crops=[
			HighDemandCrop(
				crop=item.crop,
				demand=item.demand,
				total_arrivals=item.total_arrivals,
				avg_price=format_price_per_quintal(item.avg_modal_price),
				volatility=item.price_volatility,
			)
			for item in high_demand_crops(context.price_book.market_table)
		],
	)


@router.get("/market-overview", response_model=MarketOverviewResponse)
async def get_market_overview(context: ServiceContext = Depends(get_context)) -> MarketOverviewResponse:
	crops = all_market_crops(context.price_book.market_table)
	average = sum(item.avg_modal_price for item in crops) / len(crops) if crops else 0.0
	return MarketOverviewResponse(
		region=MARKET_REGION,
		overview=MarketOverview(
			total_crops=len(crops),
			total_arrivals=sum(item.total_arrivals for item in crops),
			avg_price=round_half_up(average),
			crops=[
				MarketOverviewCrop(
					crop=item.crop,
					avg_price=format_price_per_quintal(item.avg_modal_price),
					demand=item.demand,
					arrivals=item.total_arrivals,
					volatility=item.price_volatility,
				)
				for item in crops
			],
		),
	)
