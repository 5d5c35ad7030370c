from fastapi import APIRouter, Request

from ..models.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    settings = request.app.state.settings
    return HealthResponse(
        status="ok",
        model=settings.anthropic_model,
        brand_kit_mode=settings.brand_kit_mode,
    )
