import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import Settings, settings as default_settings
from .core.structured_logging import setup_logging
from .middleware.request_response import RequestResponseMiddleware
from .models.exceptions import InvalidRequestException, invalid_request_response
from .routers import analyze, health
from .services.analysis import AnalysisService
from .services.brand_kit import PromptCell, refresh_brand_kit
from .services.model_invoker import build_invoker

logger = logging.getLogger(__name__)


def _validation_error_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return "Request body must be valid JSON."
        if error.get("type") == "missing":
            return "Missing required fields: type and content."
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
    return f"Invalid field '{field}': {first.get('msg', 'invalid value')}"


def create_app(settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """Build the API.

    ``http_client`` is shared by the model client and the brand kit fetch;
    when omitted each outbound call opens its own client.
    """
    settings = settings or default_settings
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not settings.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY not configured, analysis requests will fail")
        logger.info(
            f"Brand checker starting in {settings.operating_mode} mode",
            extra={"model": settings.anthropic_model, "brand_kit_id": settings.airops_brand_kit_id},
        )

        # Requests are served from the seed kit until this finishes
        refresh_task = asyncio.create_task(refresh_brand_kit(app.state.prompt_cell, settings, http_client))
        app.state.brand_kit_task = refresh_task

        yield

        if not refresh_task.done():
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
        logger.info("Shutdown completed")

    app = FastAPI(
        title=settings.service_name,
        description="Win Brand Checker API - checks copy and designs against the AirOps brand guidelines",
        version="1.0.0",
        lifespan=lifespan,
    )

    prompt_cell = PromptCell()
    app.state.settings = settings
    app.state.prompt_cell = prompt_cell
    app.state.analysis_service = AnalysisService(build_invoker(settings, prompt_cell, http_client))

    # OpenTelemetry (optional via env)
    if os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"):
        try:
            from opentelemetry import trace
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
            from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
            from opentelemetry.sdk.resources import Resource
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor

            resource = Resource.create({"service.name": settings.service_name, "service.environment": settings.service_env})
            provider = TracerProvider(resource=resource)
            provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
            trace.set_tracer_provider(provider)

            FastAPIInstrumentor.instrument_app(app)
            HTTPXClientInstrumentor().instrument()
        except Exception as e:
            logger.warning(f"OTel init failed: {e}")

    app.add_middleware(RequestResponseMiddleware, max_request_size=settings.max_request_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    @app.exception_handler(InvalidRequestException)
    async def invalid_request_handler(request: Request, exc: InvalidRequestException):
        logger.info(f"Rejected request: {exc.message}", extra={"path": request.url.path})
        return invalid_request_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return invalid_request_response(InvalidRequestException(_validation_error_message(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(status_code=exc.status_code, content={"error": detail})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {exc}",
            extra={"method": request.method, "path": request.url.path, "error_type": type(exc).__name__},
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(analyze.router)
    app.include_router(health.router)
    return app


app = create_app()
