from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from ..models.schemas import AnalysisResult, AnalyzeRequest
from ..services.analysis import AnalysisService, error_message, fallback_result

logger = logging.getLogger(__name__)

router = APIRouter()


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service


@router.post(
    "/api/analyze",
    response_model=AnalysisResult,
    responses={
        400: {"description": "Missing or invalid type/content"},
        500: {"model": AnalysisResult, "description": "Fallback result when analysis fails"},
    },
)
async def analyze(request: Request, body: AnalyzeRequest = Body(...)):
    """
    Check text or an image against the AirOps brand guidelines.

    Invalid input raises ``InvalidRequestException`` (400, plain error body).
    Every failure past that point is answered with the fallback result.
    """
    analysis_request = body.to_analysis_request()
    service = get_analysis_service(request)

    try:
        result = await service.analyze(analysis_request)
    except Exception as e:
        logger.error(
            f"Analysis error: {error_message(e)}",
            extra={
                "mode": service.mode,
                "content_kind": analysis_request.kind.value,
                "error_type": type(e).__name__,
            },
        )
        return JSONResponse(status_code=500, content=fallback_result(e).model_dump(mode="json"))

    return JSONResponse(status_code=200, content=result.model_dump(mode="json"))
