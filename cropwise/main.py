"""FastAPI application entrypoint: lifespan, routers, middleware, error envelopes."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cropwise.config import get_settings
from cropwise.context import build_context
from cropwise.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from cropwise.middleware.rate_limit import RateLimitMiddleware
from cropwise.routes import loss_analysis, natural_farming, next_crop_insights, profitable_crops, recommendations
from cropwise.schemas.common import ErrorResponse

SERVICE_NAME = "cropwise"
VERSION = "0.1.0"

logger = logging.getLogger("cropwise")


async def _connect_redis(url: str) -> Redis | None:
    """Shared client, or None when Redis is unreachable (caching and rate limits switch off)."""
    redis = Redis.from_url(url, decode_responses=True)
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis unavailable, continuing without cache", extra={"error": str(exc)})
        await redis.aclose()
        return None
    return redis


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Connect to Redis (optional)
      3. Build the shared service context

    Shutdown:
      1. Close Redis connection pool
    """
    settings = get_settings()
    configure_structured_logging(settings)

    redis = await _connect_redis(settings.redis_url) if settings.cache_enabled else None
    app.state.redis = redis
    app.state.context = build_context(settings, redis)
    logger.info(
        "Cropwise starting",
        extra={
            "log_level": settings.log_level,
            "cache": redis is not None,
            "llm_provider": app.state.context.llm.provider,
        },
    )

    yield

    logger.info("Cropwise shutting down")
    if redis is not None:
        await redis.aclose()


app = FastAPI(
    title="Cropwise API",
    description=(
        "Crop recommendation API for the KUPPAM/PALAMANER region: profitability "
        "from farmer stage costs and APMC/MSP reference prices, success-rate "
        "scoring, next-crop investment analysis, loss analysis and LLM-backed "
        "agronomic guidance."
    ),
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Error envelopes ─────────────────────────────────────────────────────────
def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    required = [_field_name(tuple(error.get("loc", ()))) for error in errors if error.get("type") == "missing"]
    if required:
        message = "Missing required fields"
    else:
        message = "; ".join(f"{_field_name(tuple(error.get('loc', ())))}: {error.get('msg')}" for error in errors)
    body = ErrorResponse(error=message, required=required or None)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check: verifies the API process is alive."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
    }


async def _run_readiness_checks(application: FastAPI) -> dict[str, dict[str, Any]]:
    settings = get_settings()
    checks: dict[str, dict[str, Any]] = {}

    redis = getattr(application.state, "redis", None)
    if not settings.cache_enabled:
        checks["redis"] = {"ok": True, "message": "cache disabled"}
    elif redis is None:
        checks["redis"] = {"ok": False, "message": "not connected"}
    else:
        try:
            await redis.ping()
            checks["redis"] = {"ok": True, "message": "ok"}
        except (RedisError, OSError) as exc:
            checks["redis"] = {"ok": False, "message": str(exc)}

    context = getattr(application.state, "context", None)
    provider = context.llm.provider if context is not None else None
    checks["llm"] = {
        "ok": True,
        "message": f"provider {provider}" if provider else "not configured, fallbacks active",
    }
    return checks


@app.get("/health/ready", tags=["system"])
async def readiness_check(request: Request) -> JSONResponse:
    """Dependency readiness; 503 when a required backing service is down."""
    checks = await _run_readiness_checks(request.app)
    ready = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(profitable_crops.router, prefix="/api/v1")
app.include_router(recommendations.router, prefix="/api/v1")
app.include_router(next_crop_insights.router, prefix="/api/v1")
app.include_router(loss_analysis.router, prefix="/api/v1")
app.include_router(natural_farming.router, prefix="/api/v1")
