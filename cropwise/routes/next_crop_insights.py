"""Next-crop selection route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropwise.context import ServiceContext, get_context
from cropwise.schemas.insights import NextCropInsightsRequest, NextCropInsightsResponse

router = APIRouter(prefix="/next-crop-insights", tags=["next-crop-insights"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="next crop insights failure")


@router.post("", response_model=NextCropInsightsResponse)
async def next_crop_insights(
	payload: NextCropInsightsRequest,
	context: ServiceContext = Depends(get_context),
) -> NextCropInsightsResponse:
	try:
		return NextCropInsightsResponse(data=await context.next_crop.analyze(payload))
	except Exception as exc:
		raise _map_error(exc) from exc
