"""
Mosaic API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.api.v1 import router as api_v1_router
from app.core.broadcast import publish_signals
from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.errors import MosaicError
from app.core.logging_config import configure_logging
from app.core.redis import close_redis, ping_redis
from app.core.signals import on_commit, remove_hook
from mosaic_shared.schemas.common import ErrorBody, ErrorResponse

settings = get_settings()
log = structlog.get_logger()


async def mosaic_error_handler(request: Request, exc: MosaicError) -> JSONResponse:
    log.info(
        "api.domain_error",
        path=request.url.path,
        code=exc.code,
        message=exc.message,
    )
    body = ErrorResponse(error=ErrorBody(**exc.to_dict()))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Mosaic",
        description="Workforce temporal-fact engine: employments, shifts, punches and payroll as events.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(MosaicError, mosaic_error_handler)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check: the database answers, and Redis too when broadcasting."""
        async with get_session_context() as session:
            await session.execute(text("SELECT 1"))
        if settings.broadcast_enabled and not await ping_redis():
            return JSONResponse(status_code=503, content={"status": "unavailable", "redis": "down"})
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        if settings.broadcast_enabled:
            on_commit(publish_signals)
        log.info("Mosaic starting", broadcast=settings.broadcast_enabled)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Mosaic shutting down")
        if settings.broadcast_enabled:
            remove_hook(publish_signals)
            await close_redis()

    return app


app = create_app()
