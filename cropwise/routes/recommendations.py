"""Raw-number recommendation routes for programmatic clients."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropwise.context import ServiceContext, get_context
from cropwise.data.market import all_market_crops
from cropwise.schemas.recommendation import (
	RecommendationRequest,
	RecommendationResponse,
	TopRecommendationsRequest,
	TopRecommendationsResponse,
)
from cropwise.services import farmer_data as profile
from cropwise.services.profitability import DEFAULT_LAND_AREA_HECTARES

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="recommendation failure")


@router.post("", response_model=RecommendationResponse)
async def recommend_crop(
	payload: RecommendationRequest,
	context: ServiceContext = Depends(get_context),
) -> RecommendationResponse:
	try:
		land_area = payload.land_area_hectares or profile.land_area_hectares(
			payload.farmer_data, DEFAULT_LAND_AREA_HECTARES
		)
		return RecommendationResponse(
			recommendation=context.engine.recommend(payload.crop_name, payload.farmer_data, land_area)
		)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/top", response_model=TopRecommendationsResponse)
async def top_recommendations(
	payload: TopRecommendationsRequest,
	context: ServiceContext = Depends(get_context),
) -> TopRecommendationsResponse:
	try:
		crops = payload.crops or [item.crop for item in all_market_crops(context.price_book.market_table)]
		land_area = payload.land_area_hectares or profile.land_area_hectares(
			payload.farmer_data, DEFAULT_LAND_AREA_HECTARES
		)
		ranked = context.engine.top_n(crops, payload.farmer_data, payload.top_n, land_area)
		return TopRecommendationsResponse(total_crops_analyzed=len(crops), recommendations=ranked)
	except Exception as exc:
		raise _map_error(exc) from exc
