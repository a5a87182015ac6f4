"""Natural farming recommendation route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropwise.context import ServiceContext, get_context
from cropwise.schemas.analysis import NaturalFarmingRequest, NaturalFarmingResponse

router = APIRouter(prefix="/natural-farming", tags=["natural-farming"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Failed to generate natural farming recommendations",
	)


@router.post("/recommendations", response_model=NaturalFarmingResponse)
async def natural_farming_recommendations(
	payload: NaturalFarmingRequest,
	context: ServiceContext = Depends(get_context),
) -> NaturalFarmingResponse:
	try:
		return NaturalFarmingResponse(data=await context.natural_farming.recommend(payload))
	except Exception as exc:
		raise _map_error(exc) from exc
