"""Loss analysis route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cropwise.context import ServiceContext, get_context
from cropwise.schemas.analysis import LossAnalysisRequest, LossAnalysisResponse

router = APIRouter(prefix="/loss-analysis", tags=["loss-analysis"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to generate loss analysis")


@router.post("/analyze", response_model=LossAnalysisResponse)
async def analyze_loss(
	payload: LossAnalysisRequest,
	context: ServiceContext = Depends(get_context),
) -> LossAnalysisResponse:
	try:
		return LossAnalysisResponse(data=await context.loss_analysis.analyze(payload))
	except Exception as exc:
		raise _map_error(exc) from exc
