"""
Banking Resilience Service - Main Application Entry Point

FastAPI application exposing the resilience layer's status and admin
operations and the emergency-mode substitute datasets.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bank_resilience.api.routes.health import APP_VERSION, router as health_router
from bank_resilience.api.routes.resilience import (
    emergency_router,
    router as resilience_router,
)
from bank_resilience.core.config import Settings, get_settings
from bank_resilience.observability.logging import configure_logging, get_logger
from bank_resilience.observability.metrics import get_metrics_app
from bank_resilience.resilience.layer import ResilienceLayer

APP_NAME = "Banking Resilience Service"
APP_DESCRIPTION = "Circuit breaker, throttle and emergency mode for the banking backend"

logger = get_logger(__name__)


def get_cors_origins(settings: Settings) -> list[str]:
    """
    Get CORS allowed origins based on environment.

    - Development: Allow all origins (["*"])
    - Staging/Production: BANK_RESILIENCE_CORS_ORIGINS (comma-separated)
    - If not configured outside development: Empty list

    Returns:
        List of allowed origin strings.
    """
    if settings.environment == "development":
        return ["*"]

    if settings.cors_origins:
        return [
            origin.strip()
            for origin in settings.cors_origins.split(",")
            if origin.strip()
        ]

    return []


def create_app(
    settings: Optional[Settings] = None,
    redis_client: Optional[Any] = None,
    monitor: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings override (defaults to get_settings())
        redis_client: redis.asyncio client override; created from
            settings.redis_url when None
        monitor: Start the emergency mode background task on startup

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # =====================================================================
        # STARTUP
        # =====================================================================
        configure_logging(level=settings.log_level, force=True)
        logger.info(
            "service starting",
            service=settings.service_name,
            version=APP_VERSION,
            environment=settings.environment,
        )

        owns_client = redis_client is None
        client = (
            aioredis.from_url(settings.redis_url, decode_responses=True)
            if owns_client
            else redis_client
        )
        layer = ResilienceLayer.build(settings, redis_client=client)
        await layer.start(monitor=monitor)

        app.state.redis = client
        app.state.resilience = layer
        app.state.environment = settings.environment

        yield

        # =====================================================================
        # SHUTDOWN
        # =====================================================================
        logger.info("service shutting down", service=settings.service_name)
        await layer.stop()
        app.state.resilience = None
        if owns_client:
            await client.aclose()

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(resilience_router)
    app.include_router(emergency_router)
    app.mount("/metrics", get_metrics_app())

    @app.get("/", tags=["Info"])
    async def root() -> dict[str, Any]:
        """Root endpoint returning basic service information."""
        return {
            "service": APP_NAME,
            "version": APP_VERSION,
            "docs": "/docs" if settings.environment != "production" else "disabled",
        }

    return app


app = create_app()
